# Copyright 2021-present Kensho Technologies, LLC.
from typing import Any, Dict, Optional
import unittest

from graphql import build_schema

from ..ast_manipulation import safe_parse_graphql
from ..exceptions import ComplexityAnalysisError, OperationResolutionError, QueryAnalysisError
from ..query_cost import (
    ComplexityAnalysisInfo,
    ConstantCost,
    CostResult,
    DynamicCost,
    FieldCostTable,
    analyze_complexity,
    as_field_cost,
    combine_calculators,
    depth_only_calculator,
    make_field_cost_table,
    resolve_field_cost,
)
from .test_helpers import get_schema


def _analyze(
    query: str,
    field_costs: Optional[FieldCostTable] = None,
    variables: Optional[Dict[str, Any]] = None,
    **kwargs: Any,
) -> CostResult:
    """Return the CostResult of the query against the test schema."""
    return analyze_complexity(
        safe_parse_graphql(query),
        get_schema(),
        field_costs=field_costs,
        variables=variables,
        **kwargs,
    )


def _paginated_users_cost(arguments: Dict[str, Any]) -> int:
    """Cost twice the number of requested users, 10 if the limit is not given."""
    return arguments.get("limit", 10) * 2


class ComplexityTests(unittest.TestCase):
    def test_simple_query(self) -> None:
        self.assertEqual(
            CostResult(depth=2, complexity=3, field_count=3, alias_count=0),
            _analyze("{ users { id name } }"),
        )

    def test_nested_query_depth(self) -> None:
        result = _analyze('{ user(id: "1") { posts { comments { text } } } }')
        self.assertEqual(4, result.depth)
        self.assertEqual(4, result.field_count)

    def test_field_count_across_siblings(self) -> None:
        result = _analyze('{ user(id: "1") { id name posts { id title } } }')
        self.assertEqual(6, result.field_count)
        self.assertEqual(6, result.complexity)
        self.assertEqual(3, result.depth)

    def test_constant_field_costs(self) -> None:
        field_costs = make_field_cost_table({"Query.users": 10, "User.posts": 5})
        result = _analyze("{ users { id posts { title } } hello }", field_costs=field_costs)
        # users, posts, then id, title and hello at the default cost.
        self.assertEqual(10 + 5 + 3, result.complexity)
        self.assertEqual(5, result.field_count)

    def test_field_cost_keys_are_exact(self) -> None:
        field_costs = make_field_cost_table({"query.users": 10, "Query.Users": 10})
        self.assertEqual(2, _analyze("{ users { id } }", field_costs=field_costs).complexity)

    def test_dynamic_cost_with_literal_argument(self) -> None:
        field_costs = make_field_cost_table({"Query.users": _paginated_users_cost})
        result = _analyze("{ users(limit: 100) { id } }", field_costs=field_costs)
        self.assertEqual(201, result.complexity)

    def test_dynamic_cost_with_variable_argument(self) -> None:
        field_costs = make_field_cost_table({"Query.users": _paginated_users_cost})
        query = "query Users($limit: Int) { users(limit: $limit) { id } }"

        self.assertEqual(
            61, _analyze(query, field_costs=field_costs, variables={"limit": 30}).complexity
        )
        # Missing variables are omitted, so the cost function falls back to its own default.
        self.assertEqual(21, _analyze(query, field_costs=field_costs).complexity)

    def test_default_field_complexity(self) -> None:
        result = _analyze("{ users { id name } }", default_field_complexity=5)
        self.assertEqual(15, result.complexity)
        self.assertEqual(3, result.field_count)

    def test_typename_is_free(self) -> None:
        self.assertEqual(
            CostResult(depth=1, complexity=0, field_count=0, alias_count=0),
            _analyze("{ __typename }"),
        )
        self.assertEqual(
            CostResult(depth=2, complexity=2, field_count=2, alias_count=0),
            _analyze("{ users { __typename id } }"),
        )

    def test_introspection_nesting_counts_towards_depth(self) -> None:
        result = _analyze("{ __schema { types { name } } }")
        self.assertEqual(CostResult(depth=3, complexity=0, field_count=0, alias_count=0), result)

    def test_aliased_introspection_field_counts_as_alias(self) -> None:
        result = _analyze("{ kind: __typename }")
        self.assertEqual(1, result.alias_count)
        self.assertEqual(0, result.field_count)

    def test_aliases(self) -> None:
        query = """{
            first: user(id: "1") { id }
            second: user(id: "2") { handle: name }
        }"""
        self.assertEqual(
            CostResult(depth=2, complexity=4, field_count=4, alias_count=3), _analyze(query)
        )

    def test_fragment_spreads_and_inline_fragments(self) -> None:
        query = """
            { user(id: "1") { ...UserFields ... on User { email } } }
            fragment UserFields on User { id name }
        """
        self.assertEqual(
            CostResult(depth=2, complexity=4, field_count=4, alias_count=0), _analyze(query)
        )

    def test_interface_return_type_is_descended_into(self) -> None:
        query = """{
            node(id: "1") {
                id
                ... on User { name }
                ... on Post { title comments { text } }
            }
        }"""
        self.assertEqual(
            CostResult(depth=3, complexity=6, field_count=6, alias_count=0), _analyze(query)
        )

    def test_union_return_type_is_descended_into(self) -> None:
        query = """{
            search(term: "abc") {
                ... on User { name }
                ... on Post { title }
            }
        }"""
        self.assertEqual(3, _analyze(query).field_count)

    def test_fragment_cycle_counts_like_acyclic_query(self) -> None:
        cyclic_query = """
            { me { ...A } }
            fragment A on User { id ...B }
            fragment B on User { name ...A }
        """
        self.assertEqual(_analyze("{ me { id name } }"), _analyze(cyclic_query))

    def test_pure_fragment_cycle_contributes_nothing(self) -> None:
        cyclic_query = """
            { me { id ...A } }
            fragment A on User { ...B }
            fragment B on User { ...A }
        """
        self.assertEqual(_analyze("{ me { id } }"), _analyze(cyclic_query))

    def test_fragment_reused_by_siblings_is_counted_each_time(self) -> None:
        query = """
            { me { ...F } user(id: "1") { ...F } }
            fragment F on User { id }
        """
        self.assertEqual(4, _analyze(query).complexity)

    def test_unknown_field_uses_default_cost(self) -> None:
        field_costs = make_field_cost_table({"User.unknown": 50})
        result = _analyze(
            "{ me { unknown } }", field_costs=field_costs, default_field_complexity=5
        )
        self.assertEqual(10, result.complexity)
        self.assertEqual(2, result.field_count)

    def test_mutation_uses_mutation_root(self) -> None:
        result = _analyze('mutation { createUser(name: "x") { id } }')
        self.assertEqual(2, result.complexity)

    def test_missing_root_type(self) -> None:
        schema = build_schema("type Query { hello: String }")
        document = safe_parse_graphql('mutation { createUser(name: "x") { id } }')
        with self.assertRaises(ComplexityAnalysisError):
            analyze_complexity(document, schema)

    def test_operation_selection(self) -> None:
        query = """
            query Small { hello }
            query Large { users { id name email } }
        """
        self.assertEqual(1, _analyze(query, operation_name="Small").complexity)
        self.assertEqual(4, _analyze(query, operation_name="Large").complexity)
        with self.assertRaises(OperationResolutionError):
            _analyze(query)

    def test_depth_only_calculator(self) -> None:
        result = _analyze('{ user(id: "1") { posts { title } } }', calculator=depth_only_calculator)
        self.assertEqual(CostResult(depth=3, complexity=0, field_count=0, alias_count=0), result)

    def test_combine_calculators(self) -> None:
        def deep_calculator(info: ComplexityAnalysisInfo) -> CostResult:
            return CostResult(depth=100, complexity=1, field_count=50, alias_count=0)

        def expensive_calculator(info: ComplexityAnalysisInfo) -> CostResult:
            return CostResult(depth=1, complexity=5, field_count=2, alias_count=25)

        calculator = combine_calculators(deep_calculator, expensive_calculator)
        self.assertEqual(
            CostResult(depth=100, complexity=5, field_count=50, alias_count=25),
            _analyze("{ hello }", calculator=calculator),
        )

    def test_combine_calculators_requires_calculators(self) -> None:
        with self.assertRaises(ValueError):
            combine_calculators()

    def test_calculator_failure_is_wrapped(self) -> None:
        def broken_calculator(info: ComplexityAnalysisInfo) -> CostResult:
            raise KeyError("oops")

        with self.assertRaises(ComplexityAnalysisError):
            _analyze("{ hello }", calculator=broken_calculator)

    def test_calculator_analysis_error_is_not_wrapped(self) -> None:
        def refusing_calculator(info: ComplexityAnalysisInfo) -> CostResult:
            raise OperationResolutionError("Not today")

        with self.assertRaises(OperationResolutionError):
            _analyze("{ hello }", calculator=refusing_calculator)

    def test_dynamic_cost_failure_is_wrapped(self) -> None:
        field_costs = make_field_cost_table({"Query.users": lambda arguments: arguments["limit"]})
        with self.assertRaises(ComplexityAnalysisError) as context:
            _analyze("{ users { id } }", field_costs=field_costs)

        self.assertIsInstance(context.exception, QueryAnalysisError)
        self.assertIsInstance(context.exception.__cause__, KeyError)


class FieldCostTests(unittest.TestCase):
    def test_as_field_cost(self) -> None:
        self.assertEqual(ConstantCost(3), as_field_cost(3))
        self.assertEqual(ConstantCost(0.5), as_field_cost(0.5))
        self.assertEqual(ConstantCost(7), as_field_cost(ConstantCost(7)))
        self.assertEqual(DynamicCost(len), as_field_cost(len))

    def test_as_field_cost_rejects_invalid_costs(self) -> None:
        for invalid_cost in (True, "3", None, [1]):
            with self.assertRaises(TypeError):
                as_field_cost(invalid_cost)  # type: ignore[arg-type]

    def test_make_field_cost_table(self) -> None:
        table = make_field_cost_table({"Query.users": 10, "User.posts": _paginated_users_cost})
        self.assertEqual(ConstantCost(10), table["Query.users"])
        self.assertEqual(DynamicCost(_paginated_users_cost), table["User.posts"])

    def test_resolve_field_cost(self) -> None:
        table = make_field_cost_table({"Query.users": 10, "User.posts": _paginated_users_cost})

        self.assertEqual(10, resolve_field_cost(table, "Query", "users", {}, 1))
        self.assertEqual(8, resolve_field_cost(table, "User", "posts", {"limit": 4}, 1))
        self.assertEqual(20, resolve_field_cost(table, "User", "posts", {}, 1))
        self.assertEqual(3, resolve_field_cost(table, "User", "name", {}, 3))
