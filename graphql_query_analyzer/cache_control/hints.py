# Copyright 2021-present Kensho Technologies, LLC.
"""Cache hints: per-field and per-type caching instructions, in the style of Apollo Server.

Hints are looked up in a CacheHintTable, keyed either by "ParentTypeName.fieldName" for hints on a
single field, or by "TypeName" for hints that apply to every field returning that type. A
field-level hint always takes precedence over the type-level hint of the field's return type; the
two are never merged.
"""
from dataclasses import dataclass
from enum import Enum
import logging
from typing import Any, Dict, Iterable, Mapping, Optional

from graphql import GraphQLOutputType, GraphQLSchema, get_named_type, value_from_ast_untyped
from graphql.language.ast import DirectiveNode, Node

from ..exceptions import AnalyzerConfigurationError
from ..schema import INTROSPECTION_FIELD_PREFIX
from ..typedefs import Number


logger = logging.getLogger(__name__)

CACHE_CONTROL_DIRECTIVE_NAME = "cacheControl"

# Include this in a schema's SDL to be able to annotate types and fields with cache hints.
CACHE_CONTROL_DIRECTIVE_SDL = """
enum CacheControlScope {
    PUBLIC
    PRIVATE
}

directive @cacheControl(
    maxAge: Int
    scope: CacheControlScope
    inheritMaxAge: Boolean
) on FIELD_DEFINITION | OBJECT | INTERFACE | UNION
"""


class CacheScope(Enum):
    """Who may cache a response.

    PUBLIC: shared caches such as CDNs may store the response.
    PRIVATE: only the requesting client may store the response.
    """

    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"


@dataclass(frozen=True)
class CacheHint:
    """Caching instructions for a field, or for all fields returning a given type."""

    # Number of seconds the value may be cached for. None if the hint does not specify it.
    max_age: Optional[Number] = None
    # None if the hint does not specify a scope, in which case the default scope applies.
    scope: Optional[CacheScope] = None
    # If True, the field uses the max-age of its parent field instead of its own.
    inherit_max_age: bool = False


CacheHintTable = Mapping[str, CacheHint]


def get_field_hint_key(parent_type_name: str, field_name: str) -> str:
    """Return the key under which the field-level hint of the given field is found."""
    return "{}.{}".format(parent_type_name, field_name)


def get_effective_cache_hint(
    cache_hints: CacheHintTable,
    parent_type_name: str,
    field_name: str,
    return_type: GraphQLOutputType,
) -> Optional[CacheHint]:
    """Return the hint that applies to the field: its field-level hint, else its return type's."""
    field_hint = cache_hints.get(get_field_hint_key(parent_type_name, field_name))
    if field_hint is not None:
        return field_hint

    return cache_hints.get(get_named_type(return_type).name)


def _make_cache_hint_from_directive(directive: DirectiveNode, location: str) -> CacheHint:
    """Convert the arguments of a @cacheControl directive into a CacheHint."""
    arguments: Dict[str, Any] = {
        argument.name.value: value_from_ast_untyped(argument.value)
        for argument in directive.arguments or ()
    }

    scope = arguments.get("scope")
    try:
        parsed_scope = CacheScope(scope) if scope is not None else None
    except ValueError as e:
        raise AnalyzerConfigurationError(
            "Invalid cache scope {} in @cacheControl directive on {}.".format(scope, location)
        ) from e

    return CacheHint(
        max_age=arguments.get("maxAge"),
        scope=parsed_scope,
        inherit_max_age=bool(arguments.get("inheritMaxAge", False)),
    )


def _find_cache_control_directive(nodes: Iterable[Optional[Node]]) -> Optional[DirectiveNode]:
    """Return the first @cacheControl directive applied to any of the given definition nodes."""
    for node in nodes:
        if node is None:
            continue
        for directive in getattr(node, "directives", None) or ():
            if directive.name.value == CACHE_CONTROL_DIRECTIVE_NAME:
                return directive
    return None


def get_cache_hints_from_schema(schema: GraphQLSchema) -> Dict[str, CacheHint]:
    """Collect the cache hints declared with @cacheControl directives in the schema's SDL.

    Only schemas built from SDL, e.g. with graphql.build_schema(), retain their directives. The SDL
    must declare the directive, for example by including CACHE_CONTROL_DIRECTIVE_SDL.

    Args:
        schema: GraphQL schema, whose types and fields may be annotated with @cacheControl

    Returns:
        CacheHintTable with type-level and field-level hints
    """
    cache_hints: Dict[str, CacheHint] = {}

    for type_name, graphql_type in schema.type_map.items():
        if type_name.startswith(INTROSPECTION_FIELD_PREFIX):
            continue

        type_nodes = [graphql_type.ast_node] + list(graphql_type.extension_ast_nodes or ())
        type_directive = _find_cache_control_directive(type_nodes)
        if type_directive is not None:
            cache_hints[type_name] = _make_cache_hint_from_directive(type_directive, type_name)

        for field_name, field in (getattr(graphql_type, "fields", None) or {}).items():
            field_directive = _find_cache_control_directive([field.ast_node])
            if field_directive is not None:
                hint_key = get_field_hint_key(type_name, field_name)
                cache_hints[hint_key] = _make_cache_hint_from_directive(field_directive, hint_key)

    logger.debug("Found %d cache hints in the schema.", len(cache_hints))
    return cache_hints
