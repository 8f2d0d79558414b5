# Copyright 2021-present Kensho Technologies, LLC.
"""Cache policy analysis, used to set HTTP caching headers on GraphQL responses."""
from .config import (  # noqa
    CacheControlConfig,
    CacheControlSettings,
    load_cache_control_config_from_env,
)
from .hints import (  # noqa
    CACHE_CONTROL_DIRECTIVE_SDL,
    CacheHint,
    CacheHintTable,
    CacheScope,
    get_cache_hints_from_schema,
    get_effective_cache_hint,
)
from .policy import (  # noqa
    CachePolicy,
    compute_cache_policy,
    compute_cache_policy_from_query,
    get_cache_control_header,
    to_cache_control_header,
)
