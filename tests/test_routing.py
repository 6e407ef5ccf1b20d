import json

import pytest

from postapi.dispatch.routing import HandlerContext, RouteTable
from postapi.errors import (
    NotFound,
    ResponseAlreadySent,
    StoreFailure,
    ValidationFailure,
)
from postapi.models.posts import PostCreate


def echo_id(ctx):
    ctx.respond(200, {"id": ctx.param("id")})


def test_dispatch_extracts_param():
    table = RouteTable()
    table.register("GET", "/delete-post/:id", echo_id)

    outcome = table.dispatch("GET", "/delete-post/abc")

    assert outcome.status_code == 200
    assert json.loads(outcome.body) == {"id": "abc"}


def test_method_is_case_insensitive_and_exact():
    table = RouteTable()
    table.register("get", "/get-post", lambda ctx: ctx.respond(200, []))

    assert table.dispatch("GET", "/get-post").status_code == 200
    assert table.dispatch("POST", "/get-post").status_code == 404


def test_unmatched_path_is_not_found():
    table = RouteTable()
    table.register("GET", "/delete-post/:id", echo_id)

    outcome = table.dispatch("GET", "/delete-post/")
    assert outcome.status_code == 404
    assert json.loads(outcome.body)["error"] == "NotFound"

    assert table.dispatch("GET", "/delete-post/a/b").status_code == 404
    assert table.dispatch("GET", "/nothing").status_code == 404


def test_root_route():
    table = RouteTable()
    table.register("GET", "/", lambda ctx: ctx.respond(200, {"data": "ok"}))

    assert table.dispatch("GET", "/").body == b'{"data":"ok"}'
    assert table.dispatch("GET", "/other").status_code == 404


def test_first_registered_match_wins():
    table = RouteTable()
    table.register("GET", "/get-post/latest", lambda ctx: ctx.respond(200, "literal"))
    table.register("GET", "/get-post/:id", lambda ctx: ctx.respond(200, "param"))

    assert table.dispatch("GET", "/get-post/latest").body == b'"literal"'
    assert table.dispatch("GET", "/get-post/1").body == b'"param"'


def test_register_rejects_duplicates_and_multiple_params():
    table = RouteTable()
    table.register("GET", "/a/:id", echo_id)

    with pytest.raises(ValueError):
        table.register("GET", "/a/:other", echo_id)
    with pytest.raises(ValueError):
        table.register("GET", "/a/:x/:y", echo_id)


def test_handler_errors_are_encoded():
    def missing(ctx):
        raise NotFound("post 'xyz' not found")

    def broken(ctx):
        raise StoreFailure("database is down")

    table = RouteTable()
    table.register("GET", "/missing", missing)
    table.register("GET", "/broken", broken)

    outcome = table.dispatch("GET", "/missing")
    assert outcome.status_code == 404
    assert json.loads(outcome.body) == {"error": "NotFound", "detail": "post 'xyz' not found"}

    outcome = table.dispatch("GET", "/broken")
    assert outcome.status_code == 500
    assert json.loads(outcome.body)["error"] == "StoreFailure"


def test_respond_twice_fails_loudly():
    def twice(ctx):
        ctx.respond(200, {})
        ctx.respond(200, {})

    table = RouteTable()
    table.register("GET", "/twice", twice)

    with pytest.raises(ResponseAlreadySent):
        table.dispatch("GET", "/twice")


def test_handler_that_never_responds_is_an_error():
    table = RouteTable()
    table.register("GET", "/silent", lambda ctx: None)

    with pytest.raises(RuntimeError):
        table.dispatch("GET", "/silent")


def test_context_accessors():
    ctx = HandlerContext({"id": "1"}, query={"title": "Hi"}, body=b'{"a": 1}')

    assert ctx.param("id") == "1"
    assert ctx.param("missing") is None
    assert ctx.query("title") == "Hi"
    assert ctx.query("missing") is None
    assert ctx.json() == {"a": 1}
    assert HandlerContext({}).json() == {}


@pytest.mark.parametrize("body", [b"{not json", b"[1, 2]"])
def test_context_rejects_bad_json(body):
    with pytest.raises(ValidationFailure):
        HandlerContext({}, body=body).json()


def test_read_retries_store_failures():
    calls = []

    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise StoreFailure("try again")
        return "ok"

    ctx = HandlerContext({}, read_attempts=3)
    assert ctx.read(flaky) == "ok"
    assert len(calls) == 3


def test_read_gives_up_after_attempts():
    calls = []

    def down():
        calls.append(1)
        raise StoreFailure("down")

    ctx = HandlerContext({}, read_attempts=2)
    with pytest.raises(StoreFailure):
        ctx.read(down)
    assert len(calls) == 2


def test_read_does_not_retry_not_found():
    calls = []

    def missing():
        calls.append(1)
        raise NotFound("missing")

    ctx = HandlerContext({}, read_attempts=3)
    with pytest.raises(NotFound):
        ctx.read(missing)
    assert len(calls) == 1


def test_describe_lists_routes_in_order():
    table = RouteTable()
    table.register("GET", "/", echo_id, "Health.", ("root",))
    table.register("GET", "/delete-post/:id", echo_id)

    assert table.describe() == [
        {
            "method": "GET",
            "pattern": "/",
            "param": None,
            "summary": "Health.",
            "tags": ["root"],
            "query": [],
            "body": None,
        },
        {
            "method": "GET",
            "pattern": "/delete-post/:id",
            "param": "id",
            "summary": None,
            "tags": [],
            "query": [],
            "body": None,
        },
    ]


def test_describe_includes_query_and_body_schema():
    table = RouteTable()
    table.register("GET", "/create-post", echo_id, query=("title", "published"))
    table.register("POST", "/create-post", echo_id, body=PostCreate)

    by_method = {entry["method"]: entry for entry in table.describe()}

    assert by_method["GET"]["query"] == ["title", "published"]
    assert by_method["GET"]["body"] is None
    schema = by_method["POST"]["body"]
    assert schema["required"] == ["title"]
    assert set(schema["properties"]) == {"title", "description", "published"}


def test_unexpected_handler_exception_is_encoded_as_500():
    def buggy(ctx):
        raise KeyError("oops")

    table = RouteTable()
    table.register("GET", "/buggy", buggy)

    outcome = table.dispatch("GET", "/buggy")

    assert outcome.status_code == 500
    body = json.loads(outcome.body)
    assert body["error"] == "StoreFailure"
    assert "KeyError" in body["detail"]
