# Copyright 2021-present Kensho Technologies, LLC.
from dataclasses import dataclass
from typing import Union

from pydantic import ValidationError
from pydantic_settings import BaseSettings

from ..exceptions import AnalyzerConfigurationError
from ..typedefs import Number
from .hints import CacheScope


@dataclass(frozen=True)
class CacheControlConfig:
    """Settings for computing cache policies."""

    # If False, no cache policy is computed for responses.
    enabled: bool = True
    # Max-age of fields without a hint, other than leaf fields inheriting from their parent.
    # The default of 0 makes root fields and object-returning fields uncacheable unless hinted.
    default_max_age: Number = 0
    # Scope of fields whose hint does not specify one.
    default_scope: CacheScope = CacheScope.PUBLIC
    # If False, the cache policy is not turned into an HTTP Cache-Control header.
    calculate_http_headers: bool = True


class CacheControlSettings(BaseSettings):
    """Cache control settings read from GRAPHQL_CACHE_CONTROL_* environment variables."""

    enabled: bool = True
    default_max_age: Union[int, float] = 0
    default_scope: str = "PUBLIC"
    http_headers: bool = True

    model_config = {"env_prefix": "GRAPHQL_CACHE_CONTROL_"}

    def to_config(self) -> CacheControlConfig:
        """Return the equivalent CacheControlConfig. Any scope other than PRIVATE means PUBLIC."""
        default_scope = CacheScope.PUBLIC
        if self.default_scope == CacheScope.PRIVATE.value:
            default_scope = CacheScope.PRIVATE
        return CacheControlConfig(
            enabled=self.enabled,
            default_max_age=self.default_max_age,
            default_scope=default_scope,
            calculate_http_headers=self.http_headers,
        )


def load_cache_control_config_from_env() -> CacheControlConfig:
    """Load the CacheControlConfig from the environment.

    Environment variables:
    - GRAPHQL_CACHE_CONTROL_ENABLED: compute cache policies (default: true)
    - GRAPHQL_CACHE_CONTROL_DEFAULT_MAX_AGE: max-age of fields without hints (default: 0)
    - GRAPHQL_CACHE_CONTROL_DEFAULT_SCOPE: PUBLIC or PRIVATE (default: PUBLIC)
    - GRAPHQL_CACHE_CONTROL_HTTP_HEADERS: produce Cache-Control headers (default: true)

    Raises:
        AnalyzerConfigurationError: if any of the variables is set to an invalid value
    """
    try:
        settings = CacheControlSettings()
    except ValidationError as e:
        raise AnalyzerConfigurationError(
            "Invalid cache control configuration in environment: {}".format(e)
        ) from e

    return settings.to_config()
