"""
Request/response units and the transform pipeline they flow through.

A request travels forward through every transform of a pipeline before it is
executed against a subschema; the response travels back through the same
transforms in reverse order, so the last transform to touch the request is
the first to see the response.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from graphql import DocumentNode, ExecutionResult, GraphQLError, GraphQLSchema


@dataclass(frozen=True)
class Request:
    """A GraphQL document with the variables and operation kind it runs with."""

    document: DocumentNode
    variables: Dict[str, Any] = field(default_factory=dict)
    operation_type: str = "query"
    operation_name: Optional[str] = None

    def with_document(self, document: DocumentNode, **changes: Any) -> "Request":
        """Return a copy carrying another document."""
        return replace(self, document=document, **changes)


@dataclass(frozen=True)
class Response:
    """Result data plus the ordered errors produced while computing it."""

    data: Optional[Dict[str, Any]] = None
    errors: Tuple[GraphQLError, ...] = ()

    @classmethod
    def from_execution_result(cls, result: ExecutionResult) -> "Response":
        return cls(data=result.data, errors=tuple(result.errors or ()))

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "Response":
        """
        Build a response from a GraphQL-over-HTTP JSON body.

        Args:
            payload: Decoded body with optional ``data`` and ``errors`` keys

        Returns:
            Response with each error rebuilt as a GraphQLError
        """
        errors = tuple(
            GraphQLError(
                error.get("message", "Unknown error"),
                path=error.get("path"),
                extensions=error.get("extensions"),
            )
            for error in payload.get("errors") or ()
        )
        return cls(data=payload.get("data"), errors=errors)

    def with_data(self, data: Optional[Dict[str, Any]]) -> "Response":
        return replace(self, data=data)

    @property
    def formatted(self) -> Dict[str, Any]:
        """JSON-ready form of the response."""
        body: Dict[str, Any] = {"data": self.data}
        if self.errors:
            body["errors"] = [error.formatted for error in self.errors]
        return body


class Transform:
    """
    A reversible rewrite applied around a delegated execution.

    Every hook defaults to the identity, so subclasses override only what
    they change.
    """

    def transform_schema(self, schema: GraphQLSchema) -> GraphQLSchema:
        return schema

    def transform_request(self, request: Request) -> Request:
        return request

    def transform_response(self, response: Response, request: Request) -> Response:
        return response


class TransformPipeline(Transform):
    """
    Ordered composition of transforms.

    Schemas and requests are folded left to right. Responses are folded right
    to left, and each transform receives the request it produced itself.
    """

    def __init__(self, transforms: Sequence[Transform] = ()):
        self.transforms: List[Transform] = list(transforms)

    def __len__(self) -> int:
        return len(self.transforms)

    def transform_schema(self, schema: GraphQLSchema) -> GraphQLSchema:
        for transform in self.transforms:
            schema = transform.transform_schema(schema)
        return schema

    def transform_request(self, request: Request) -> Request:
        for transform in self.transforms:
            request = transform.transform_request(request)
        return request

    def run(self, request: Request) -> Tuple[Request, List[Request]]:
        """
        Fold a request through the pipeline, remembering every stage.

        Returns:
            The final request and the request produced by each transform, in order
        """
        produced = []
        for transform in self.transforms:
            request = transform.transform_request(request)
            produced.append(request)
        return request, produced

    def transform_response(
        self,
        response: Response,
        request: Request,
        produced: Optional[Sequence[Request]] = None,
    ) -> Response:
        if produced is None:
            produced = [request] * len(self.transforms)
        for transform, stage_request in zip(reversed(self.transforms), reversed(produced)):
            response = transform.transform_response(response, stage_request)
        return response
