"""
Pass the delegated root field's arguments as operation variables.
"""

from typing import Any, Dict, Mapping

from graphql import (
    ArgumentNode,
    FieldNode,
    GraphQLSchema,
    OperationDefinitionNode,
    VariableDefinitionNode,
    VariableNode,
)

from graphweave.transforms.ast_utils import name_node, replace_node, root_type, type_to_ast
from graphweave.transforms.base import Request, Transform


class AddArgumentsAsVariables(Transform):
    """
    Attach ``args`` to every root field of the request declared by the target schema.

    Each argument becomes a generated variable typed after the target field's
    own argument type. Arguments the target field does not declare are
    skipped, and existing arguments with the same name are replaced.
    """

    def __init__(self, target_schema: GraphQLSchema, args: Mapping[str, Any]):
        self.target_schema = target_schema
        self.args = dict(args or {})

    def transform_request(self, request: Request) -> Request:
        if not self.args:
            return request

        variables = dict(request.variables or {})
        definitions = []
        for definition in request.document.definitions:
            if isinstance(definition, OperationDefinitionNode):
                definition = self._add_to_operation(definition, variables)
            definitions.append(definition)

        document = replace_node(request.document, definitions=tuple(definitions))
        return request.with_document(document, variables=variables)

    def _add_to_operation(
        self, operation: OperationDefinitionNode, variables: Dict[str, Any]
    ) -> OperationDefinitionNode:
        parent = root_type(self.target_schema, operation.operation)
        if parent is None:
            return operation

        variable_definitions = list(operation.variable_definitions or ())
        taken = {variable.variable.name.value for variable in variable_definitions} | set(variables)
        selections = []
        for selection in operation.selection_set.selections:
            field_def = (
                parent.fields.get(selection.name.value)
                if isinstance(selection, FieldNode)
                else None
            )
            if field_def is None:
                selections.append(selection)
                continue

            arguments = {argument.name.value: argument for argument in selection.arguments or ()}
            for index, (arg_name, value) in enumerate(self.args.items()):
                arg_def = field_def.args.get(arg_name)
                if arg_def is None:
                    continue
                variable_name = _unique_name(f"_v{index}_{arg_name}", taken)
                taken.add(variable_name)
                variable_definitions.append(
                    VariableDefinitionNode(
                        variable=VariableNode(name=name_node(variable_name)),
                        type=type_to_ast(arg_def.type),
                        directives=(),
                    )
                )
                arguments[arg_name] = ArgumentNode(
                    name=name_node(arg_name),
                    value=VariableNode(name=name_node(variable_name)),
                )
                variables[variable_name] = value
            selections.append(replace_node(selection, arguments=tuple(arguments.values())))

        return replace_node(
            operation,
            variable_definitions=tuple(variable_definitions),
            selection_set=replace_node(operation.selection_set, selections=tuple(selections)),
        )


def _unique_name(name: str, taken: set) -> str:
    candidate, suffix = name, 1
    while candidate in taken:
        candidate = f"{name}_{suffix}"
        suffix += 1
    return candidate
