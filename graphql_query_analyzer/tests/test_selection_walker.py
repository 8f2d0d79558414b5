# Copyright 2021-present Kensho Technologies, LLC.
from typing import List
import unittest

from graphql import build_schema

from ..ast_manipulation import get_fragment_index, get_operation_definition, safe_parse_graphql
from ..query_cost.complexity import ComplexityStrategy
from ..selection_walker import WalkContext, get_selection_depth, walk_selection_set
from .test_helpers import FieldNameCollectingStrategy, get_schema, make_nested_field_selection_set


def _collect_field_names(query: str) -> List[str]:
    """Return the names of the fields the walker visits in the query, in traversal order."""
    schema = get_schema()
    document = safe_parse_graphql(query)
    operation = get_operation_definition(document)
    walk_context = WalkContext(schema, get_fragment_index(document))
    return walk_selection_set(
        operation.selection_set,
        schema.query_type,
        walk_context,
        FieldNameCollectingStrategy(),
        None,
    )


def _get_query_depth(query: str) -> int:
    """Return the schema-free depth of the only operation in the query."""
    document = safe_parse_graphql(query)
    operation = get_operation_definition(document)
    return get_selection_depth(operation.selection_set, get_fragment_index(document))


class SelectionWalkerTests(unittest.TestCase):
    def test_fields_and_nested_fields(self) -> None:
        self.assertEqual(
            ["users", "id", "posts", "title", "hello"],
            _collect_field_names("{ users { id posts { title } } hello }"),
        )

    def test_introspection_fields_skipped_by_strategy(self) -> None:
        self.assertEqual(
            ["users", "id"], _collect_field_names("{ __typename users { __typename id } }")
        )

    def test_fragment_spread(self) -> None:
        query = """
            { me { ...UserFields } }
            fragment UserFields on User { id name }
        """
        self.assertEqual(["me", "id", "name"], _collect_field_names(query))

    def test_unknown_fragment_contributes_nothing(self) -> None:
        self.assertEqual(["me", "id"], _collect_field_names("{ me { id ...Missing } }"))

    def test_fragment_on_unknown_type_contributes_nothing(self) -> None:
        query = """
            { me { id ...Strange } }
            fragment Strange on DoesNotExist { name }
        """
        self.assertEqual(["me", "id"], _collect_field_names(query))

    def test_inline_fragments_on_interface(self) -> None:
        query = """{
            node(id: "1") {
                id
                ... on User { name }
                ... on Post { title }
                ... { id }
            }
        }"""
        self.assertEqual(
            ["node", "id", "name", "title", "id"], _collect_field_names(query)
        )

    def test_inline_fragments_on_union(self) -> None:
        query = """{
            search(term: "abc") {
                __typename
                ... on User { email }
                ... on Post { content }
            }
        }"""
        self.assertEqual(["search", "email", "content"], _collect_field_names(query))

    def test_inline_fragment_with_unknown_type_keeps_parent_type(self) -> None:
        query = '{ user(id: "1") { ... on DoesNotExist { name } } }'
        self.assertEqual(["user", "name"], _collect_field_names(query))

    def test_fragment_cycle_is_not_followed(self) -> None:
        query = """
            { me { ...A } }
            fragment A on User { id ...B }
            fragment B on User { name ...A }
        """
        self.assertEqual(["me", "id", "name"], _collect_field_names(query))

    def test_fragment_cycle_through_nested_field(self) -> None:
        query = """
            { me { ...A } }
            fragment A on User { ...B }
            fragment B on User { id friends { ...A } }
        """
        self.assertEqual(["me", "id", "friends"], _collect_field_names(query))

    def test_sibling_branches_do_not_share_visited_fragments(self) -> None:
        query = """
            { me { ...F friends { ...F } } user(id: "1") { ...F } }
            fragment F on User { id }
        """
        self.assertEqual(
            ["me", "id", "friends", "id", "user", "id"], _collect_field_names(query)
        )

    def test_unknown_field_is_not_descended_into(self) -> None:
        self.assertEqual(
            ["me", "unknown"], _collect_field_names("{ me { unknown { id } } }")
        )

    def test_deep_nesting_does_not_exhaust_the_stack(self) -> None:
        schema = build_schema(
            """
            type Query { child: Nested leaf: String }
            type Nested { child: Nested leaf: String }
            """
        )
        nesting = 5000
        selection_set = make_nested_field_selection_set(nesting)
        walk_context = WalkContext(schema, {})

        result = walk_selection_set(
            selection_set, schema.query_type, walk_context, ComplexityStrategy({}, 1), None
        )

        self.assertEqual(nesting + 1, result.depth)
        self.assertEqual(nesting + 1, result.field_count)
        self.assertEqual(nesting + 1, get_selection_depth(selection_set, {}))


class SelectionDepthTests(unittest.TestCase):
    def test_flat_query(self) -> None:
        self.assertEqual(1, _get_query_depth("{ hello }"))

    def test_nested_query(self) -> None:
        self.assertEqual(
            4, _get_query_depth('{ user(id: "1") { posts { comments { text } } } hello }')
        )

    def test_fragments_are_transparent(self) -> None:
        query = """
            { user(id: "1") { ...UserFields ... on User { posts { title } } } }
            fragment UserFields on User { friends { id } }
        """
        self.assertEqual(3, _get_query_depth(query))

    def test_fragment_cycles_terminate(self) -> None:
        query = """
            { user(id: "1") { ...A } }
            fragment A on User { ...B }
            fragment B on User { id friends { ...A } }
        """
        self.assertEqual(3, _get_query_depth(query))
