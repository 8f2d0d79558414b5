# Copyright 2019-present Kensho Technologies, LLC.
from typing import Dict, List, Optional

from graphql import value_from_ast_untyped
from graphql.error import GraphQLSyntaxError
from graphql.language.ast import (
    DocumentNode,
    FieldNode,
    FragmentDefinitionNode,
    OperationDefinitionNode,
)
from graphql.language.parser import parse
from graphql.pyutils import Undefined

from .exceptions import GraphQLParsingError, OperationResolutionError
from .typedefs import ArgumentValues, Variables


def get_ast_field_name(ast: FieldNode) -> str:
    """Return the field name for the given AST node."""
    return ast.name.value


def safe_parse_graphql(graphql_string: str) -> DocumentNode:
    """Return an AST representation of the given GraphQL input, reraising GraphQL library errors."""
    try:
        ast = parse(graphql_string)
    except GraphQLSyntaxError as e:
        raise GraphQLParsingError(e) from e

    return ast


def get_fragment_index(document_ast: DocumentNode) -> Dict[str, FragmentDefinitionNode]:
    """Return a dict of fragment name -> fragment definition, for all fragments in the document.

    Fragments that are never spread are included as well. If two fragments share a name, the one
    defined last wins; such documents do not pass validation in the first place.
    """
    return {
        definition.name.value: definition
        for definition in document_ast.definitions
        if isinstance(definition, FragmentDefinitionNode)
    }


def get_operation_definition(
    document_ast: DocumentNode, operation_name: Optional[str] = None
) -> OperationDefinitionNode:
    """Select the operation to analyze from the document, following GraphQL execution rules.

    Args:
        document_ast: parsed GraphQL document, possibly containing several operations
        operation_name: optional name of the operation to select. Required if the document
                        contains more than one operation.

    Returns:
        the selected OperationDefinitionNode

    Raises:
        OperationResolutionError: if no operation exists, if the named operation does not exist,
                                  or if no name was given and the document has several operations
    """
    operations: List[OperationDefinitionNode] = [
        definition
        for definition in document_ast.definitions
        if isinstance(definition, OperationDefinitionNode)
    ]

    if not operations:
        raise OperationResolutionError("No operation found in query")

    if operation_name:
        for operation in operations:
            if operation.name is not None and operation.name.value == operation_name:
                return operation
        raise OperationResolutionError('Operation "{}" not found'.format(operation_name))

    if len(operations) > 1:
        raise OperationResolutionError("Multiple operations found - operationName required")

    return operations[0]


def resolve_argument_values(field_ast: FieldNode, variables: Variables) -> ArgumentValues:
    """Return the field's argument values, with any variables replaced by their supplied values.

    Literal values are converted to the corresponding Python values without consulting the schema:
    ints, floats, strings, booleans, enum names (as strings), lists, and input objects (as dicts).
    Arguments referencing a variable that was not supplied are omitted.
    """
    variable_values = dict(variables) if variables else None

    argument_values: ArgumentValues = {}
    for argument_ast in field_ast.arguments or ():
        value = value_from_ast_untyped(argument_ast.value, variable_values)
        if value is Undefined:
            continue
        argument_values[argument_ast.name.value] = value

    return argument_values
