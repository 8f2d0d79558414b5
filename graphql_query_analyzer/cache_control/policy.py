# Copyright 2021-present Kensho Technologies, LLC.
"""Compute the cache policy of a GraphQL query from the cache hints of the fields it selects.

The policy is computed by walking the selection tree and aggregating the max-age and scope of every
selected field:
- the max-age of the response is the minimum max-age of all its fields;
- the response is PRIVATE if any of its fields is PRIVATE.

A field's own max-age is, in order of precedence:
1. its parent's max-age, if its hint sets inheritMaxAge and the field has a parent field;
2. the max-age of its hint;
3. its parent's max-age, if the field returns a scalar or enum and has a parent field;
4. the default max-age, usually 0. Hence root fields and object-returning fields are uncacheable
   unless they have a hint.
"""
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from graphql import GraphQLOutputType, GraphQLSchema
from graphql.language.ast import DocumentNode, OperationType

from ..ast_manipulation import get_fragment_index, get_operation_definition, safe_parse_graphql
from ..schema import get_root_type, is_leaf_output_type
from ..selection_walker import FieldContext, WalkContext, walk_selection_set
from ..typedefs import Number
from .config import CacheControlConfig
from .hints import CacheHint, CacheHintTable, CacheScope, get_effective_cache_hint


NO_STORE_HEADER_VALUE = "no-store"


@dataclass(frozen=True)
class CachePolicy:
    """How long, and by whom, a response may be cached."""

    # Number of seconds the response may be cached for. 0 means the response must not be cached.
    max_age: Number
    scope: CacheScope

    @property
    def is_cacheable(self) -> bool:
        """Return True if the response may be cached at all."""
        return self.max_age > 0


def _get_field_max_age(
    hint: Optional[CacheHint],
    field_type: GraphQLOutputType,
    parent_max_age: Optional[Number],
    default_max_age: Number,
) -> Number:
    """Return the field's own max-age, not taking its sub-selection into account."""
    if hint is not None:
        if hint.inherit_max_age and parent_max_age is not None:
            return parent_max_age
        if hint.max_age is not None:
            return hint.max_age

    if is_leaf_output_type(field_type) and parent_max_age is not None:
        return parent_max_age

    return default_max_age


class CachePolicyStrategy:
    """Aggregate CachePolicies over a selection tree. The inherited value is the parent max-age."""

    def __init__(
        self, cache_hints: CacheHintTable, default_max_age: Number, default_scope: CacheScope
    ) -> None:
        """Use the given hints, and the given defaults for fields without hints."""
        self.cache_hints = cache_hints
        self.default_max_age = default_max_age
        self.default_scope = default_scope

    def field_value(
        self, field_context: FieldContext, parent_max_age: Optional[Number]
    ) -> Optional[CachePolicy]:
        """Return the policy of the field itself, or None for introspection fields."""
        if field_context.is_introspection:
            return None

        field_definition = field_context.field_definition
        if field_definition is None:
            return CachePolicy(self.default_max_age, self.default_scope)

        hint = get_effective_cache_hint(
            self.cache_hints,
            field_context.parent_type.name,
            field_context.field_name,
            field_definition.type,
        )
        max_age = _get_field_max_age(
            hint, field_definition.type, parent_max_age, self.default_max_age
        )
        scope = self.default_scope
        if hint is not None and hint.scope is not None:
            scope = hint.scope

        return CachePolicy(max_age, scope)

    def nested_inherited(self, field_context: FieldContext, own_value: CachePolicy) -> Number:
        """Nested fields may inherit the max-age of the field they are nested in."""
        return own_value.max_age

    def combine(self, values: Sequence[CachePolicy]) -> CachePolicy:
        """Take the smallest max-age of the sibling selections. Any PRIVATE one makes it PRIVATE."""
        if not values:
            return CachePolicy(self.default_max_age, self.default_scope)

        max_age = min(value.max_age for value in values)
        if any(value.scope == CacheScope.PRIVATE for value in values):
            return CachePolicy(max_age, CacheScope.PRIVATE)
        return CachePolicy(max_age, self.default_scope)

    def combine_nested(
        self, field_context: FieldContext, own_value: CachePolicy, child_value: CachePolicy
    ) -> CachePolicy:
        """Limit the field's policy by that of its sub-selection."""
        scope = CacheScope.PUBLIC
        if CacheScope.PRIVATE in (own_value.scope, child_value.scope):
            scope = CacheScope.PRIVATE
        return CachePolicy(min(own_value.max_age, child_value.max_age), scope)


def compute_cache_policy(
    document: DocumentNode,
    schema: GraphQLSchema,
    cache_hints: CacheHintTable,
    config: Optional[CacheControlConfig] = None,
    operation_name: Optional[str] = None,
) -> CachePolicy:
    """Compute the cache policy of an operation in a parsed GraphQL document.

    Args:
        document: parsed GraphQL document
        schema: the schema the document is meant to be executed against
        cache_hints: field-level and type-level cache hints
        config: default max-age and scope; defaults to CacheControlConfig()
        operation_name: name of the operation to analyze; required if there are several

    Returns:
        the CachePolicy of the selected operation. Mutations are never cacheable.

    Raises:
        OperationResolutionError: if the operation to analyze cannot be selected
    """
    if config is None:
        config = CacheControlConfig()

    operation = get_operation_definition(document, operation_name)
    if operation.operation == OperationType.MUTATION:
        return CachePolicy(0, config.default_scope)

    root_type = get_root_type(schema, operation.operation)
    if root_type is None:
        return CachePolicy(0, CacheScope.PUBLIC)

    walk_context = WalkContext(schema, get_fragment_index(document))
    strategy = CachePolicyStrategy(cache_hints, config.default_max_age, config.default_scope)
    return walk_selection_set(operation.selection_set, root_type, walk_context, strategy, None)


def compute_cache_policy_from_query(
    query: str,
    schema: GraphQLSchema,
    cache_hints: CacheHintTable,
    config: Optional[CacheControlConfig] = None,
    operation_name: Optional[str] = None,
) -> CachePolicy:
    """Parse the GraphQL query text, and compute the cache policy of the selected operation.

    Raises:
        GraphQLParsingError: if the query text cannot be parsed
        OperationResolutionError: if the operation to analyze cannot be selected
    """
    document = safe_parse_graphql(query)
    return compute_cache_policy(
        document, schema, cache_hints, config=config, operation_name=operation_name
    )


def to_cache_control_header(policy: CachePolicy) -> str:
    """Return the value of the HTTP Cache-Control header that implements the policy."""
    if not policy.is_cacheable:
        return NO_STORE_HEADER_VALUE

    scope_directive = "private" if policy.scope == CacheScope.PRIVATE else "public"
    return "{}, max-age={}".format(scope_directive, int(policy.max_age))


def get_cache_control_header(
    query: Union[str, DocumentNode],
    schema: GraphQLSchema,
    cache_hints: CacheHintTable,
    config: Optional[CacheControlConfig] = None,
    operation_name: Optional[str] = None,
) -> Optional[str]:
    """Return the Cache-Control header value for the query's response, or None if disabled.

    Args:
        query: GraphQL query text, or an already-parsed GraphQL document
        schema: the schema the query is meant to be executed against
        cache_hints: field-level and type-level cache hints
        config: cache control settings; defaults to CacheControlConfig()
        operation_name: name of the operation to analyze; required if there are several

    Returns:
        the header value, or None if the config disables cache policies or HTTP headers

    Raises:
        QueryAnalysisError: if the query cannot be parsed or its operation cannot be selected
    """
    if config is None:
        config = CacheControlConfig()
    if not config.enabled or not config.calculate_http_headers:
        return None

    document = safe_parse_graphql(query) if isinstance(query, str) else query
    policy = compute_cache_policy(
        document, schema, cache_hints, config=config, operation_name=operation_name
    )
    return to_cache_control_header(policy)
