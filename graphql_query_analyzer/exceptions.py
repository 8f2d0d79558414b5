# Copyright 2017-present Kensho Technologies, LLC.
from typing import Union

from .typedefs import LimitType


class GraphQLAnalyzerError(Exception):
    """Generic error when analyzing GraphQL."""


class AnalyzerConfigurationError(GraphQLAnalyzerError):
    """Exception raised when the analyzer configuration is invalid."""


class QueryAnalysisError(GraphQLAnalyzerError):
    """Exception raised when a verdict could not be computed for the provided GraphQL.

    This is not evidence that the query is malicious, only that it is structurally unusual.
    Callers may choose to fail open on this error, e.g. log it and execute the query anyway.
    """


class GraphQLParsingError(QueryAnalysisError):
    """Exception raised when the provided GraphQL string could not be parsed."""


class OperationResolutionError(QueryAnalysisError):
    """Exception raised when the operation to analyze cannot be selected from the document.

    This could be due to:
    - the document containing no operation definitions;
    - the document containing multiple operations, without an operation name to pick one;
    - the requested operation name not matching any operation in the document.
    """


class ComplexityAnalysisError(QueryAnalysisError):
    """Exception raised when a complexity calculator fails to produce a result."""


class ComplexityLimitExceededError(GraphQLAnalyzerError):
    """Exception raised when the query's measured cost exceeds a configured ceiling.

    Unlike QueryAnalysisError, this is a policy decision: the cost was computed and is too high.
    """

    limit_type: LimitType
    limit: Union[int, float]
    actual: Union[int, float]

    def __init__(
        self, limit_type: LimitType, limit: Union[int, float], actual: Union[int, float]
    ) -> None:
        """Record which ceiling was exceeded, and by how much."""
        super().__init__(
            f"Query {limit_type} of {actual} exceeds maximum allowed {limit_type} of {limit}"
        )
        self.limit_type = limit_type
        self.limit = limit
        self.actual = actual
