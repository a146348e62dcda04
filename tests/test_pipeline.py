"""Tests for the request/response transform pipeline."""

from graphql import GraphQLError, parse

from graphweave.transforms.base import Request, Response, Transform, TransformPipeline


class Tagging(Transform):
    def __init__(self, tag, log):
        self.tag = tag
        self.log = log

    def transform_request(self, request):
        self.log.append(("request", self.tag))
        return Request(
            request.document,
            variables={**request.variables, self.tag: True},
            operation_type=request.operation_type,
        )

    def transform_response(self, response, request):
        self.log.append(("response", self.tag, tuple(sorted(request.variables))))
        return response.with_data({**(response.data or {}), self.tag: True})


def test_requests_flow_forward_and_responses_backward():
    log = []
    pipeline = TransformPipeline([Tagging("a", log), Tagging("b", log)])
    final, produced = pipeline.run(Request(parse("{ hello }")))

    assert final.variables == {"a": True, "b": True}
    assert len(produced) == 2

    response = pipeline.transform_response(Response(data={}), final, produced)

    assert response.data == {"a": True, "b": True}
    assert log == [
        ("request", "a"),
        ("request", "b"),
        ("response", "b", ("a", "b")),
        ("response", "a", ("a",)),
    ]


def test_empty_pipeline_is_identity():
    pipeline = TransformPipeline()
    request = Request(parse("{ hello }"), variables={"x": 1})

    final, produced = pipeline.run(request)

    assert final is request
    assert produced == []
    response = Response(data={"hello": "world"})
    assert pipeline.transform_response(response, final, produced) is response


def test_response_from_json_rebuilds_errors():
    response = Response.from_json(
        {
            "data": {"user": None},
            "errors": [{"message": "boom", "path": ["user"], "extensions": {"code": "X"}}],
        }
    )

    assert response.data == {"user": None}
    assert len(response.errors) == 1
    assert response.errors[0].message == "boom"
    assert response.errors[0].path == ["user"]
    assert response.formatted["errors"][0]["extensions"] == {"code": "X"}


def test_formatted_omits_errors_when_there_are_none():
    assert Response(data={"a": 1}).formatted == {"data": {"a": 1}}
    body = Response(errors=(GraphQLError("nope"),)).formatted
    assert body["data"] is None
    assert body["errors"][0]["message"] == "nope"
