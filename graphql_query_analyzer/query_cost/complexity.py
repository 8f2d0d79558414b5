# Copyright 2021-present Kensho Technologies, LLC.
"""Compute the cost profile of a GraphQL operation: depth, complexity, field and alias counts."""
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from graphql import GraphQLSchema
from graphql.language.ast import DocumentNode, OperationDefinitionNode

from ..ast_manipulation import get_fragment_index, get_operation_definition
from ..exceptions import ComplexityAnalysisError, GraphQLAnalyzerError
from ..schema import get_root_type
from ..selection_walker import FieldContext, WalkContext, get_selection_depth, walk_selection_set
from ..typedefs import LimitType, Number, Variables
from .field_costs import FieldCostTable, resolve_field_cost


@dataclass(frozen=True)
class CostResult:
    """The measured cost of a GraphQL operation."""

    # Length of the longest chain of nested field selections, counting the root selection set.
    depth: int
    # Sum of the costs of all selected fields, excluding introspection fields.
    complexity: Number
    # Number of field selections, including nested ones and excluding introspection fields.
    field_count: int
    # Number of field selections that use an alias.
    alias_count: int


@dataclass(frozen=True)
class ComplexityAnalysisInfo:
    """The inputs of a complexity calculator."""

    document: DocumentNode
    operation: OperationDefinitionNode
    schema: GraphQLSchema
    field_costs: FieldCostTable
    variables: Variables = None


@dataclass(frozen=True)
class ComplexityExceededInfo:
    """Context handed to the on_exceeded hook when a query exceeds one of the configured limits."""

    result: CostResult
    exceeded_limit: LimitType
    limit: Number
    actual: Number
    query: str
    operation_name: Optional[str] = None


# A complexity calculator computes the cost of the operation described by the analysis info.
# It must not have side effects, and should raise QueryAnalysisError if it cannot compute a cost.
ComplexityCalculator = Callable[[ComplexityAnalysisInfo], CostResult]

_EMPTY_COST = CostResult(depth=1, complexity=0, field_count=0, alias_count=0)


class ComplexityStrategy:
    """Aggregate CostResults over a selection tree."""

    def __init__(self, field_costs: FieldCostTable, default_cost: Number) -> None:
        """Use the given per-field costs, and the default cost for all other fields."""
        self.field_costs = field_costs
        self.default_cost = default_cost

    def field_value(self, field_context: FieldContext, inherited: None) -> CostResult:
        """Return the cost of the field itself, not including its sub-selection."""
        alias_count = 1 if field_context.is_aliased else 0

        if field_context.is_introspection:
            # Introspection is free, but its nesting still counts towards depth.
            depth = 1
            if field_context.field_ast.selection_set is not None:
                depth += get_selection_depth(
                    field_context.field_ast.selection_set, field_context.walk_context.fragments
                )
            return CostResult(depth=depth, complexity=0, field_count=0, alias_count=alias_count)

        if field_context.field_definition is None:
            cost = self.default_cost
        else:
            cost = resolve_field_cost(
                self.field_costs,
                field_context.parent_type.name,
                field_context.field_name,
                field_context.arguments,
                self.default_cost,
            )
        return CostResult(depth=1, complexity=cost, field_count=1, alias_count=alias_count)

    def nested_inherited(self, field_context: FieldContext, own_value: CostResult) -> None:
        """Costs are not inherited by nested selections."""
        return None

    def combine(self, values: Sequence[CostResult]) -> CostResult:
        """Sum the costs of sibling selections, and take the deepest of their depths."""
        if not values:
            return _EMPTY_COST

        return CostResult(
            depth=max(value.depth for value in values),
            complexity=sum(value.complexity for value in values),
            field_count=sum(value.field_count for value in values),
            alias_count=sum(value.alias_count for value in values),
        )

    def combine_nested(
        self, field_context: FieldContext, own_value: CostResult, child_value: CostResult
    ) -> CostResult:
        """Add the cost of the field's sub-selection to its own, one level deeper."""
        return CostResult(
            depth=max(own_value.depth, 1 + child_value.depth),
            complexity=own_value.complexity + child_value.complexity,
            field_count=own_value.field_count + child_value.field_count,
            alias_count=own_value.alias_count + child_value.alias_count,
        )


def default_complexity_calculator(default_cost: Number = 1) -> ComplexityCalculator:
    """Return a calculator that walks the operation against the schema, summing field costs.

    Args:
        default_cost: cost of every field that has no entry in the field cost table

    Returns:
        ComplexityCalculator computing all four measures of CostResult
    """

    def calculate(info: ComplexityAnalysisInfo) -> CostResult:
        """Compute the CostResult of the operation."""
        root_type = get_root_type(info.schema, info.operation.operation)
        if root_type is None:
            raise ComplexityAnalysisError(
                "No root type found for operation: {}".format(info.operation.operation.value)
            )

        walk_context = WalkContext(info.schema, get_fragment_index(info.document), info.variables)
        strategy = ComplexityStrategy(info.field_costs, default_cost)
        return walk_selection_set(
            info.operation.selection_set, root_type, walk_context, strategy, None
        )

    return calculate


def depth_only_calculator(info: ComplexityAnalysisInfo) -> CostResult:
    """Compute only the depth of the operation, reporting zero for all other measures.

    The schema is not consulted, which makes this calculator cheaper than the default one.
    """
    depth = get_selection_depth(info.operation.selection_set, get_fragment_index(info.document))
    return CostResult(depth=depth, complexity=0, field_count=0, alias_count=0)


def combine_calculators(*calculators: ComplexityCalculator) -> ComplexityCalculator:
    """Return a calculator reporting the maximum of each measure across the given calculators."""
    if not calculators:
        raise ValueError("combine_calculators() requires at least one calculator.")

    def calculate(info: ComplexityAnalysisInfo) -> CostResult:
        """Run all calculators, and take the maximum of each measure."""
        results = [calculator(info) for calculator in calculators]
        return CostResult(
            depth=max(result.depth for result in results),
            complexity=max(result.complexity for result in results),
            field_count=max(result.field_count for result in results),
            alias_count=max(result.alias_count for result in results),
        )

    return calculate


def run_complexity_calculator(
    calculator: ComplexityCalculator, info: ComplexityAnalysisInfo
) -> CostResult:
    """Run the calculator, converting any unexpected failure into a ComplexityAnalysisError."""
    try:
        return calculator(info)
    except GraphQLAnalyzerError:
        raise
    except Exception as e:
        raise ComplexityAnalysisError(
            "Failed to analyze query complexity: {}".format(e)
        ) from e


def analyze_complexity(
    document: DocumentNode,
    schema: GraphQLSchema,
    field_costs: Optional[FieldCostTable] = None,
    operation_name: Optional[str] = None,
    variables: Variables = None,
    default_field_complexity: Number = 1,
    calculator: Optional[ComplexityCalculator] = None,
) -> CostResult:
    """Compute the CostResult of an operation in a parsed GraphQL document.

    Args:
        document: parsed GraphQL document
        schema: the schema the document is meant to be executed against
        field_costs: costs of the fields that do not have the default cost, if any
        operation_name: name of the operation to analyze; required if there are several
        variables: values of the variables used by the operation, for dynamic field costs
        default_field_complexity: cost of fields absent from field_costs
        calculator: custom calculator to use instead of the default one

    Returns:
        the CostResult of the selected operation

    Raises:
        QueryAnalysisError: if the operation cannot be selected or its cost cannot be computed
    """
    operation = get_operation_definition(document, operation_name)
    info = ComplexityAnalysisInfo(
        document=document,
        operation=operation,
        schema=schema,
        field_costs=field_costs if field_costs is not None else {},
        variables=variables,
    )
    if calculator is None:
        calculator = default_complexity_calculator(default_field_complexity)

    return run_complexity_calculator(calculator, info)

