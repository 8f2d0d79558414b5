# Copyright 2021-present Kensho Technologies, LLC.
from io import StringIO
import json
import os
import tempfile
from typing import Any, Dict, List, Tuple
import unittest
from unittest import mock

from ..tool import main
from .test_helpers import CACHE_HINTED_SCHEMA_TEXT


class ToolTests(unittest.TestCase):
    def setUp(self) -> None:
        """Write the schema to a temporary file, and isolate the tool from the environment."""
        schema_file = tempfile.NamedTemporaryFile(mode="w", suffix=".graphql", delete=False)
        with schema_file:
            schema_file.write(CACHE_HINTED_SCHEMA_TEXT)
        self.addCleanup(os.remove, schema_file.name)
        self.schema_path = schema_file.name

        environment_patch = mock.patch.dict(os.environ, {}, clear=True)
        environment_patch.start()
        self.addCleanup(environment_patch.stop)

    def _run_tool(self, query: str, *extra_args: str) -> Tuple[int, str, str]:
        """Run the tool on the query, returning its exit status, stdout and stderr."""
        argv: List[str] = ["--schema", self.schema_path] + list(extra_args)
        stdout = StringIO()
        stderr = StringIO()
        with mock.patch("sys.stdin", StringIO(query)), mock.patch(
            "sys.stdout", stdout
        ), mock.patch("sys.stderr", stderr):
            status = main(argv)
        return status, stdout.getvalue(), stderr.getvalue()

    def _run_tool_successfully(self, query: str, *extra_args: str) -> Dict[str, Any]:
        """Run the tool on the query, and return its parsed output."""
        status, stdout, stderr = self._run_tool(query, *extra_args)
        self.assertEqual(0, status, msg=stderr)
        return json.loads(stdout)

    def test_analysis_output(self) -> None:
        expected_output = {
            "depth": 2,
            "complexity": 3,
            "field_count": 3,
            "alias_count": 0,
            "cache_max_age": 30,
            "cache_scope": "PUBLIC",
            "cache_control": "public, max-age=30",
        }
        self.assertEqual(expected_output, self._run_tool_successfully("{ users { id name } }"))

    def test_private_uncacheable_output(self) -> None:
        output = self._run_tool_successfully("{ me { name } hello }")
        self.assertEqual(0, output["cache_max_age"])
        self.assertEqual("PRIVATE", output["cache_scope"])
        self.assertEqual("no-store", output["cache_control"])

    def test_operation_name_and_variables(self) -> None:
        query = """
            query First($id: ID!) { me { id } }
            query Second { users { id name posts { id title } } }
        """
        output = self._run_tool_successfully(
            query, "--operation-name", "Second", "--variables", '{"id": "1"}'
        )
        self.assertEqual(3, output["depth"])
        self.assertEqual(6, output["field_count"])

    def test_limit_exceeded(self) -> None:
        status, stdout, stderr = self._run_tool("{ users { id name } }", "--max-depth", "1")
        self.assertEqual(1, status)
        self.assertEqual("", stdout)
        self.assertEqual(
            "Query rejected: Query depth of 2 exceeds maximum allowed depth of 1\n", stderr
        )

    def test_limit_from_environment(self) -> None:
        with mock.patch.dict(os.environ, {"GRAPHQL_MAX_FIELDS": "2"}):
            status, _, stderr = self._run_tool("{ users { id name } }")
        self.assertEqual(1, status)
        self.assertIn("fields", stderr)

        # Limits given on the command line take precedence over the environment.
        with mock.patch.dict(os.environ, {"GRAPHQL_MAX_FIELDS": "2"}):
            status, _, _ = self._run_tool("{ users { id name } }", "--max-fields", "3")
        self.assertEqual(0, status)

    def test_invalid_query(self) -> None:
        status, stdout, stderr = self._run_tool("{ users {")
        self.assertEqual(2, status)
        self.assertEqual("", stdout)
        self.assertTrue(stderr.startswith("Query could not be analyzed: "))

    def test_ambiguous_operation(self) -> None:
        status, _, stderr = self._run_tool("query A { hello } query B { hello }")
        self.assertEqual(2, status)
        self.assertIn("operationName required", stderr)

    def test_invalid_variables(self) -> None:
        for invalid_variables in ("{not json", "[1, 2]", '"abc"'):
            status, stdout, stderr = self._run_tool(
                "{ users { id } }", "--variables", invalid_variables
            )
            self.assertEqual(2, status)
            self.assertEqual("", stdout)
            self.assertTrue(stderr.startswith("Query could not be analyzed: "))
