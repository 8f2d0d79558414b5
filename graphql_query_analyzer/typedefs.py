# Copyright 2020-present Kensho Technologies, LLC.
from typing import Any, Dict, Literal, Mapping, Optional, Tuple, Union

from graphql import GraphQLInterfaceType, GraphQLObjectType, GraphQLUnionType


# The kinds of ceilings that can be placed on a query's cost, in the order they are checked.
LimitType = Literal["depth", "complexity", "aliases", "fields"]

LIMIT_TYPES_IN_CHECK_ORDER: Tuple[LimitType, ...] = ("depth", "complexity", "aliases", "fields")

# Numeric values produced by cost functions and configured as ceilings.
Number = Union[int, float]

# Variable values supplied alongside the query, keyed by variable name without the "$".
Variables = Optional[Mapping[str, Any]]

# Argument values of a single field, after literals were parsed and variables substituted.
ArgumentValues = Dict[str, Any]

# The types that may be the parent of a selection set, i.e. the types that have fields.
CompositeGraphQLType = Union[GraphQLObjectType, GraphQLInterfaceType, GraphQLUnionType]
