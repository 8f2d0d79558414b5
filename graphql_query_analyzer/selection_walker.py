# Copyright 2021-present Kensho Technologies, LLC.
"""Generic traversal of a GraphQL selection tree, resolved against a schema and its fragments.

The query cost and cache policy analyses both need to visit every field a query selects, with the
field's schema definition at hand, while descending through fragment spreads and inline fragments.
They differ only in what value each field contributes and how values are combined. This module
implements the traversal once, and delegates the rest to a SelectionAggregationStrategy.

The traversal uses an explicit work list rather than recursion: the documents being analyzed come
from untrusted clients, and their nesting must not be able to exhaust the interpreter stack before
the analysis gets a chance to reject them.
"""
from dataclasses import dataclass
from functools import cached_property
import logging
from typing import (
    Dict,
    FrozenSet,
    Generic,
    Iterator,
    List,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    TypeVar,
)

from graphql import GraphQLField, GraphQLSchema
from graphql.language.ast import (
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    InlineFragmentNode,
    SelectionNode,
    SelectionSetNode,
)

from .ast_manipulation import get_ast_field_name, resolve_argument_values
from .schema import (
    get_composite_output_type,
    get_composite_type_by_name,
    get_field_definition,
    is_introspection_field,
)
from .typedefs import ArgumentValues, CompositeGraphQLType, Variables


logger = logging.getLogger(__name__)

ValueT = TypeVar("ValueT")
InheritedT = TypeVar("InheritedT")


@dataclass(frozen=True)
class WalkContext:
    """Read-only inputs shared by the entire traversal of one operation."""

    schema: GraphQLSchema
    fragments: Dict[str, FragmentDefinitionNode]
    variables: Variables = None


@dataclass(frozen=True)
class FieldContext:
    """Everything known about a single field selection at the point it is visited."""

    field_ast: FieldNode
    parent_type: CompositeGraphQLType
    # None if the parent type has no such field, e.g. for introspection fields.
    field_definition: Optional[GraphQLField]
    walk_context: WalkContext

    @property
    def field_name(self) -> str:
        """Return the name of the selected field, ignoring any alias."""
        return get_ast_field_name(self.field_ast)

    @property
    def is_introspection(self) -> bool:
        """Return True if the field is an introspection meta field like __typename."""
        return is_introspection_field(self.field_name)

    @property
    def is_aliased(self) -> bool:
        """Return True if the selection renames the field in the response."""
        return self.field_ast.alias is not None

    @property
    def has_selection_set(self) -> bool:
        """Return True if the field carries a sub-selection."""
        return self.field_ast.selection_set is not None

    @property
    def composite_return_type(self) -> Optional[CompositeGraphQLType]:
        """Return the field's named output type if it can have a sub-selection, else None."""
        if self.field_definition is None:
            return None
        return get_composite_output_type(self.field_definition.type)

    @cached_property
    def arguments(self) -> ArgumentValues:
        """Return the field's argument values, with variables substituted."""
        return resolve_argument_values(self.field_ast, self.walk_context.variables)


class SelectionAggregationStrategy(Protocol[ValueT, InheritedT]):
    """The per-analysis behavior plugged into walk_selection_set().

    ValueT is the value aggregated over the tree, e.g. a query cost. InheritedT is the information
    a field passes down to the selections nested within it, e.g. its cache max-age.
    """

    def field_value(self, field_context: FieldContext, inherited: InheritedT) -> Optional[ValueT]:
        """Return the field's own value, or None if the field contributes nothing at all.

        Fields for which None is returned are not descended into.
        """

    def nested_inherited(self, field_context: FieldContext, own_value: ValueT) -> InheritedT:
        """Return the inherited value for the selections nested within the given field."""

    def combine(self, values: Sequence[ValueT]) -> ValueT:
        """Aggregate the values of sibling selections. The sequence may be empty."""

    def combine_nested(
        self, field_context: FieldContext, own_value: ValueT, child_value: ValueT
    ) -> ValueT:
        """Combine a field's own value with the aggregate of its sub-selection."""


class _SelectionSetFrame(Generic[ValueT, InheritedT]):
    """A selection set whose selections are in the process of being aggregated."""

    __slots__ = ("selections", "parent_type", "visited_fragments", "inherited", "values", "owner")

    def __init__(
        self,
        selection_set: SelectionSetNode,
        parent_type: CompositeGraphQLType,
        visited_fragments: FrozenSet[str],
        inherited: InheritedT,
        owner: Optional[Tuple[FieldContext, ValueT]],
    ) -> None:
        """Prepare to aggregate the given selection set."""
        self.selections: Iterator[SelectionNode] = iter(selection_set.selections)
        self.parent_type = parent_type
        # Fragments already spread on the path from the operation root down to this selection set.
        self.visited_fragments = visited_fragments
        self.inherited = inherited
        self.values: List[ValueT] = []
        # The field that owns this selection set, and its own value. None for the operation root,
        # fragment spreads and inline fragments: their aggregate is simply one more sibling value.
        self.owner = owner


def _visit_field(
    field_ast: FieldNode,
    frame: _SelectionSetFrame,
    walk_context: WalkContext,
    strategy: SelectionAggregationStrategy,
) -> Optional[_SelectionSetFrame]:
    """Record the field's value in the frame, or return a frame for its sub-selection."""
    field_name = get_ast_field_name(field_ast)
    field_definition = None
    if not is_introspection_field(field_name):
        field_definition = get_field_definition(frame.parent_type, field_name)
        if field_definition is None:
            logger.debug(
                "Field %(field_name)s not found on type %(type_name)s, using defaults.",
                {"field_name": field_name, "type_name": frame.parent_type.name},
            )

    field_context = FieldContext(field_ast, frame.parent_type, field_definition, walk_context)
    own_value = strategy.field_value(field_context, frame.inherited)
    if own_value is None:
        return None

    child_type = field_context.composite_return_type
    if field_ast.selection_set is None or child_type is None:
        frame.values.append(own_value)
        return None

    return _SelectionSetFrame(
        field_ast.selection_set,
        child_type,
        frame.visited_fragments,
        strategy.nested_inherited(field_context, own_value),
        (field_context, own_value),
    )


def _visit_fragment_spread(
    spread_ast: FragmentSpreadNode, frame: _SelectionSetFrame, walk_context: WalkContext
) -> Optional[_SelectionSetFrame]:
    """Return a frame for the spread fragment's selections, or None if it contributes nothing."""
    fragment_name = spread_ast.name.value
    if fragment_name in frame.visited_fragments:
        logger.debug("Fragment cycle through %s, not descending again.", fragment_name)
        return None

    fragment_ast = walk_context.fragments.get(fragment_name)
    if fragment_ast is None:
        return None

    fragment_type = get_composite_type_by_name(
        walk_context.schema, fragment_ast.type_condition.name.value
    )
    if fragment_type is None:
        return None

    return _SelectionSetFrame(
        fragment_ast.selection_set,
        fragment_type,
        frame.visited_fragments | {fragment_name},
        frame.inherited,
        None,
    )


def _visit_inline_fragment(
    fragment_ast: InlineFragmentNode, frame: _SelectionSetFrame, walk_context: WalkContext
) -> _SelectionSetFrame:
    """Return a frame for the inline fragment's selections."""
    target_type: Optional[CompositeGraphQLType] = None
    if fragment_ast.type_condition is not None:
        target_type = get_composite_type_by_name(
            walk_context.schema, fragment_ast.type_condition.name.value
        )
    if target_type is None:
        target_type = frame.parent_type

    return _SelectionSetFrame(
        fragment_ast.selection_set, target_type, frame.visited_fragments, frame.inherited, None
    )


def walk_selection_set(
    selection_set: SelectionSetNode,
    parent_type: CompositeGraphQLType,
    walk_context: WalkContext,
    strategy: SelectionAggregationStrategy[ValueT, InheritedT],
    inherited: InheritedT,
) -> ValueT:
    """Aggregate the strategy's values over the selection set and everything nested within it.

    Args:
        selection_set: the selection set to analyze, usually that of an operation definition
        parent_type: the schema type the selection set is selecting fields from
        walk_context: the schema, fragment index and variables of the request
        strategy: defines the value each field contributes and how values are combined
        inherited: the inherited value for the top-level selections

    Returns:
        the strategy's aggregate value for the selection set
    """
    stack: List[_SelectionSetFrame] = [
        _SelectionSetFrame(selection_set, parent_type, frozenset(), inherited, None)
    ]

    while True:
        frame = stack[-1]
        selection = next(frame.selections, None)

        if selection is None:
            stack.pop()
            if stack and frame.owner is None and not frame.values:
                # A fragment in which nothing contributed a value contributes nothing itself.
                continue

            aggregate = strategy.combine(frame.values)
            if frame.owner is not None:
                field_context, own_value = frame.owner
                aggregate = strategy.combine_nested(field_context, own_value, aggregate)

            if not stack:
                return aggregate
            stack[-1].values.append(aggregate)
            continue

        child_frame: Optional[_SelectionSetFrame]
        if isinstance(selection, FieldNode):
            child_frame = _visit_field(selection, frame, walk_context, strategy)
        elif isinstance(selection, FragmentSpreadNode):
            child_frame = _visit_fragment_spread(selection, frame, walk_context)
        elif isinstance(selection, InlineFragmentNode):
            child_frame = _visit_inline_fragment(selection, frame, walk_context)
        else:
            raise AssertionError(
                "Unexpected selection kind {} encountered: {}".format(type(selection), selection)
            )

        if child_frame is not None:
            stack.append(child_frame)


def get_selection_depth(
    selection_set: SelectionSetNode, fragments: Dict[str, FragmentDefinitionNode]
) -> int:
    """Return the nesting depth of the selection set, without consulting any schema.

    The selection set itself is at depth 1, and each field with a sub-selection adds a level.
    Fragments are transparent to depth, and fragment cycles are not followed.
    """
    max_depth = 1
    work_list: List[Tuple[SelectionSetNode, int, FrozenSet[str]]] = [
        (selection_set, 1, frozenset())
    ]

    while work_list:
        current_selection_set, depth, visited_fragments = work_list.pop()
        max_depth = max(max_depth, depth)

        for selection in current_selection_set.selections:
            if isinstance(selection, FieldNode):
                if selection.selection_set is not None:
                    work_list.append((selection.selection_set, depth + 1, visited_fragments))
            elif isinstance(selection, FragmentSpreadNode):
                fragment_name = selection.name.value
                fragment_ast = fragments.get(fragment_name)
                if fragment_ast is not None and fragment_name not in visited_fragments:
                    work_list.append(
                        (fragment_ast.selection_set, depth, visited_fragments | {fragment_name})
                    )
            elif isinstance(selection, InlineFragmentNode):
                work_list.append((selection.selection_set, depth, visited_fragments))

    return max_depth
