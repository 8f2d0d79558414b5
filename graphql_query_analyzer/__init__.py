# Copyright 2017-present Kensho Technologies, LLC.
"""Commonly-used functions and data types from this package."""
from .ast_manipulation import (  # noqa
    get_fragment_index,
    get_operation_definition,
    safe_parse_graphql,
)
from .cache_control import (  # noqa
    CACHE_CONTROL_DIRECTIVE_SDL,
    CacheControlConfig,
    CacheHint,
    CacheHintTable,
    CachePolicy,
    CacheScope,
    compute_cache_policy,
    compute_cache_policy_from_query,
    get_cache_control_header,
    get_cache_hints_from_schema,
    load_cache_control_config_from_env,
    to_cache_control_header,
)
from .exceptions import (  # noqa
    AnalyzerConfigurationError,
    ComplexityAnalysisError,
    ComplexityLimitExceededError,
    GraphQLAnalyzerError,
    GraphQLParsingError,
    OperationResolutionError,
    QueryAnalysisError,
)
from .query_cost import (  # noqa
    ComplexityAnalysisInfo,
    ComplexityCalculator,
    ComplexityConfig,
    ComplexityExceededInfo,
    ConstantCost,
    CostResult,
    DynamicCost,
    FieldCost,
    FieldCostTable,
    analyze_complexity,
    check_complexity_limits,
    combine_calculators,
    default_complexity_calculator,
    depth_only_calculator,
    load_complexity_config_from_env,
    make_field_cost_table,
    validate_complexity,
)


__package_name__ = "graphql-query-analyzer"
__version__ = "1.0.0"
