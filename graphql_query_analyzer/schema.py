# Copyright 2017-present Kensho Technologies, LLC.
from typing import Optional

from graphql import (
    GraphQLField,
    GraphQLNamedType,
    GraphQLObjectType,
    GraphQLOutputType,
    GraphQLSchema,
    get_named_type,
    is_composite_type,
    is_interface_type,
    is_leaf_type,
    is_object_type,
)
from graphql.language.ast import OperationType

from .typedefs import CompositeGraphQLType


# Names starting with this prefix are reserved for GraphQL introspection, e.g. "__typename",
# "__schema" and "__type".
INTROSPECTION_FIELD_PREFIX = "__"


def is_introspection_field(field_name: str) -> bool:
    """Return True if the field is a GraphQL introspection meta field, and False otherwise."""
    return field_name.startswith(INTROSPECTION_FIELD_PREFIX)


def get_root_type(
    schema: GraphQLSchema, operation_type: OperationType
) -> Optional[GraphQLObjectType]:
    """Return the root type the schema defines for the given operation type, if any."""
    if operation_type == OperationType.QUERY:
        return schema.query_type
    elif operation_type == OperationType.MUTATION:
        return schema.mutation_type
    elif operation_type == OperationType.SUBSCRIPTION:
        return schema.subscription_type

    raise AssertionError("Unreachable code reached: {}".format(operation_type))


def get_composite_type_by_name(
    schema: GraphQLSchema, type_name: str
) -> Optional[CompositeGraphQLType]:
    """Return the object, interface or union type with the given name, or None if there is none."""
    graphql_type = schema.get_type(type_name)
    if graphql_type is not None and is_composite_type(graphql_type):
        return graphql_type  # type: ignore[return-value]
    return None


def get_field_definition(
    parent_type: CompositeGraphQLType, field_name: str
) -> Optional[GraphQLField]:
    """Return the definition of the named field on the parent type, or None if there is none.

    Union types have no fields of their own, so looking up a field on a union always yields None.
    """
    if is_object_type(parent_type) or is_interface_type(parent_type):
        return parent_type.fields.get(field_name)  # type: ignore[union-attr]
    return None


def get_composite_output_type(output_type: GraphQLOutputType) -> Optional[CompositeGraphQLType]:
    """Strip list and non-null wrappers, and return the underlying type if it has fields."""
    named_type: GraphQLNamedType = get_named_type(output_type)
    if is_composite_type(named_type):
        return named_type  # type: ignore[return-value]
    return None


def is_leaf_output_type(output_type: GraphQLOutputType) -> bool:
    """Return True if the output type, stripped of list and non-null wrappers, is a leaf type."""
    return is_leaf_type(get_named_type(output_type))
