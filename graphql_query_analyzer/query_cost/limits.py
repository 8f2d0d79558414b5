# Copyright 2021-present Kensho Technologies, LLC.
import logging
from typing import Optional, Tuple, Union

from graphql import GraphQLSchema
from graphql.language.ast import DocumentNode
from graphql.language.printer import print_ast

from ..ast_manipulation import safe_parse_graphql
from ..exceptions import ComplexityLimitExceededError
from ..typedefs import LIMIT_TYPES_IN_CHECK_ORDER, LimitType, Number, Variables
from .complexity import ComplexityExceededInfo, CostResult, analyze_complexity
from .config import ComplexityConfig
from .field_costs import FieldCostTable


logger = logging.getLogger(__name__)


def _get_limit_and_actual(
    limit_type: LimitType, result: CostResult, config: ComplexityConfig
) -> Tuple[Optional[Number], Number]:
    """Return the configured ceiling for the given kind of limit, and the measured value."""
    if limit_type == "depth":
        return config.max_depth, result.depth
    elif limit_type == "complexity":
        return config.max_complexity, result.complexity
    elif limit_type == "aliases":
        return config.max_aliases, result.alias_count
    elif limit_type == "fields":
        return config.max_fields, result.field_count

    raise AssertionError("Unreachable code reached: {}".format(limit_type))


def check_complexity_limits(
    result: CostResult,
    config: ComplexityConfig,
    query: str,
    operation_name: Optional[str] = None,
) -> None:
    """Raise an error if the result exceeds any of the configured limits.

    Limits are checked in order: depth, complexity, aliases, fields. Only the first exceeded limit
    is reported. Before raising, the config's on_exceeded hook is called if set.

    Args:
        result: the measured cost of the query
        config: the limits to enforce
        query: text of the query, passed to the on_exceeded hook
        operation_name: name of the analyzed operation, passed to the on_exceeded hook

    Raises:
        ComplexityLimitExceededError: naming the exceeded limit, its value and the actual value
    """
    for limit_type in LIMIT_TYPES_IN_CHECK_ORDER:
        limit, actual = _get_limit_and_actual(limit_type, result, config)
        if limit is None or actual <= limit:
            continue

        logger.warning(
            "Rejecting query %(operation_name)s: %(limit_type)s of %(actual)s exceeds the "
            "limit of %(limit)s.",
            {
                "operation_name": operation_name,
                "limit_type": limit_type,
                "actual": actual,
                "limit": limit,
            },
        )

        if config.on_exceeded is not None:
            exceeded_info = ComplexityExceededInfo(
                result=result,
                exceeded_limit=limit_type,
                limit=limit,
                actual=actual,
                query=query,
                operation_name=operation_name,
            )
            try:
                config.on_exceeded(exceeded_info)
            except Exception:  # pylint: disable=broad-except
                logger.exception("The on_exceeded hook raised an error.")

        raise ComplexityLimitExceededError(limit_type, limit, actual)


def validate_complexity(
    query: Union[str, DocumentNode],
    schema: GraphQLSchema,
    field_costs: Optional[FieldCostTable],
    config: ComplexityConfig,
    operation_name: Optional[str] = None,
    variables: Variables = None,
) -> CostResult:
    """Compute the cost of the query, and ensure it is within the configured limits.

    Args:
        query: GraphQL query text, or an already-parsed GraphQL document
        schema: the schema the query is meant to be executed against
        field_costs: costs of the fields that do not have the default cost, if any
        config: limits and cost calculation settings
        operation_name: name of the operation to analyze; required if there are several
        variables: values of the variables used by the operation

    Returns:
        the CostResult of the query, if it is within all limits

    Raises:
        QueryAnalysisError: if the cost of the query could not be computed
        ComplexityLimitExceededError: if the query exceeds one of the configured limits
    """
    if isinstance(query, DocumentNode):
        document = query
        query_text = print_ast(document)
    else:
        document = safe_parse_graphql(query)
        query_text = query

    result = analyze_complexity(
        document,
        schema,
        field_costs=field_costs,
        operation_name=operation_name,
        variables=variables,
        default_field_complexity=config.default_field_complexity,
        calculator=config.calculator,
    )

    check_complexity_limits(result, config, query_text, operation_name=operation_name)
    return result
