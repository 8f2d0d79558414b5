#!/usr/bin/env python
# Copyright 2017-present Kensho Technologies, LLC.
"""Utility modeled after json.tool, analyzes GraphQL read from stdin and outputs JSON to stdout.

Used as: python -m graphql_query_analyzer.tool --schema schema.graphql < query.graphql

Limits not given on the command line are read from the GRAPHQL_* environment variables.
"""
import argparse
from dataclasses import replace
import json
import sys
from typing import Any, Dict, List, Optional

from graphql import build_schema

from .ast_manipulation import safe_parse_graphql
from .cache_control import (
    compute_cache_policy,
    get_cache_hints_from_schema,
    load_cache_control_config_from_env,
    to_cache_control_header,
)
from .exceptions import ComplexityLimitExceededError, GraphQLAnalyzerError, QueryAnalysisError
from .query_cost import load_complexity_config_from_env, validate_complexity


def _make_argument_parser() -> argparse.ArgumentParser:
    """Return the parser for the tool's command line arguments."""
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--schema", required=True, help="path to the schema, in SDL format")
    parser.add_argument("--operation-name", default=None, help="name of the operation to analyze")
    parser.add_argument("--variables", default=None, help="JSON object of variable values")
    parser.add_argument("--max-depth", type=int, default=None)
    parser.add_argument("--max-complexity", type=float, default=None)
    parser.add_argument("--max-aliases", type=int, default=None)
    parser.add_argument("--max-fields", type=int, default=None)
    return parser


def _parse_variables(variables_json: Optional[str]) -> Optional[Dict[str, Any]]:
    """Parse the variables given on the command line, which must be a JSON object if present."""
    if not variables_json:
        return None

    try:
        variables = json.loads(variables_json)
    except ValueError as e:
        raise QueryAnalysisError("Invalid JSON in --variables: {}".format(e)) from e

    if not isinstance(variables, dict):
        raise QueryAnalysisError(
            "Expected --variables to be a JSON object, got: {}".format(variables_json)
        )
    return variables


def main(argv: Optional[List[str]] = None) -> int:
    """Read a GraphQL query from standard input, and output its cost and cache policy as JSON."""
    args = _make_argument_parser().parse_args(argv)

    with open(args.schema, "r") as f:
        schema = build_schema(f.read())
    query = " ".join(sys.stdin.readlines())

    complexity_config = load_complexity_config_from_env()
    overrides = {
        name: value
        for name, value in (
            ("max_depth", args.max_depth),
            ("max_complexity", args.max_complexity),
            ("max_aliases", args.max_aliases),
            ("max_fields", args.max_fields),
        )
        if value is not None
    }
    complexity_config = replace(complexity_config, **overrides)

    try:
        variables = _parse_variables(args.variables)
        document = safe_parse_graphql(query)
        cost = validate_complexity(
            document,
            schema,
            None,
            complexity_config,
            operation_name=args.operation_name,
            variables=variables,
        )
        policy = compute_cache_policy(
            document,
            schema,
            get_cache_hints_from_schema(schema),
            config=load_cache_control_config_from_env(),
            operation_name=args.operation_name,
        )
    except ComplexityLimitExceededError as e:
        sys.stderr.write("Query rejected: {}\n".format(e))
        return 1
    except GraphQLAnalyzerError as e:
        sys.stderr.write("Query could not be analyzed: {}\n".format(e))
        return 2

    output = {
        "depth": cost.depth,
        "complexity": cost.complexity,
        "field_count": cost.field_count,
        "alias_count": cost.alias_count,
        "cache_max_age": policy.max_age,
        "cache_scope": policy.scope.value,
        "cache_control": to_cache_control_header(policy),
    }
    sys.stdout.write(json.dumps(output, indent=4, sort_keys=True) + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
