# Copyright 2021-present Kensho Technologies, LLC.
from dataclasses import dataclass
from typing import Callable, Optional, Union

from pydantic import ValidationError
from pydantic_settings import BaseSettings

from ..exceptions import AnalyzerConfigurationError
from ..typedefs import Number
from .complexity import ComplexityCalculator, ComplexityExceededInfo


@dataclass(frozen=True)
class ComplexityConfig:
    """Limits placed on the cost of incoming queries. Limits set to None are not checked."""

    # Maximum nesting depth, e.g. "{ user { posts { title } } }" has depth 3.
    max_depth: Optional[Number] = None
    # Maximum sum of field costs.
    max_complexity: Optional[Number] = None
    # Maximum number of aliased field selections.
    max_aliases: Optional[Number] = None
    # Maximum number of field selections, including nested ones.
    max_fields: Optional[Number] = None
    # Cost of fields that have no entry in the field cost table.
    default_field_complexity: Number = 1
    # Used instead of the default calculator, if set.
    calculator: Optional[ComplexityCalculator] = None
    # Called with the details of the violation before a limit-exceeded error is raised.
    on_exceeded: Optional[Callable[[ComplexityExceededInfo], None]] = None


class ComplexitySettings(BaseSettings):
    """Complexity limits read from GRAPHQL_* environment variables."""

    max_depth: Optional[int] = None
    max_complexity: Optional[Union[int, float]] = None
    max_aliases: Optional[int] = None
    max_fields: Optional[int] = None
    default_field_complexity: Union[int, float] = 1

    model_config = {"env_prefix": "GRAPHQL_"}

    def to_config(
        self,
        calculator: Optional[ComplexityCalculator] = None,
        on_exceeded: Optional[Callable[[ComplexityExceededInfo], None]] = None,
    ) -> ComplexityConfig:
        """Return the ComplexityConfig with these limits and the given callables."""
        return ComplexityConfig(
            max_depth=self.max_depth,
            max_complexity=self.max_complexity,
            max_aliases=self.max_aliases,
            max_fields=self.max_fields,
            default_field_complexity=self.default_field_complexity,
            calculator=calculator,
            on_exceeded=on_exceeded,
        )


def load_complexity_config_from_env(
    calculator: Optional[ComplexityCalculator] = None,
    on_exceeded: Optional[Callable[[ComplexityExceededInfo], None]] = None,
) -> ComplexityConfig:
    """Load the ComplexityConfig from the environment.

    Environment variables:
    - GRAPHQL_MAX_DEPTH: maximum query depth
    - GRAPHQL_MAX_COMPLEXITY: maximum complexity score
    - GRAPHQL_MAX_ALIASES: maximum number of aliases
    - GRAPHQL_MAX_FIELDS: maximum number of fields
    - GRAPHQL_DEFAULT_FIELD_COMPLEXITY: cost of fields without explicit cost (default: 1)

    Raises:
        AnalyzerConfigurationError: if any of the variables is set to an invalid value
    """
    try:
        settings = ComplexitySettings()
    except ValidationError as e:
        raise AnalyzerConfigurationError(
            "Invalid query complexity configuration in environment: {}".format(e)
        ) from e

    return settings.to_config(calculator=calculator, on_exceeded=on_exceeded)
