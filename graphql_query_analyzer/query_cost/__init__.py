# Copyright 2021-present Kensho Technologies, LLC.
"""Query cost analysis, used to reject overly expensive queries before executing them."""
from .complexity import (  # noqa
    ComplexityAnalysisInfo,
    ComplexityCalculator,
    ComplexityExceededInfo,
    CostResult,
    analyze_complexity,
    combine_calculators,
    default_complexity_calculator,
    depth_only_calculator,
)
from .config import ComplexityConfig, ComplexitySettings, load_complexity_config_from_env  # noqa
from .field_costs import (  # noqa
    ConstantCost,
    DynamicCost,
    FieldCost,
    FieldCostTable,
    as_field_cost,
    make_field_cost_table,
    resolve_field_cost,
)
from .limits import check_complexity_limits, validate_complexity  # noqa
