# postapi/api/posts.py

from typing import Any, Dict

from pydantic import ValidationError

from postapi.dispatch.routing import HandlerContext, RouteTable
from postapi.errors import ValidationFailure
from postapi.models.posts import HealthOut, PostCreate

HEALTH_MESSAGE = "Server is up and running"
POST_FIELDS = ("title", "description", "published")


def _validate_post(fields: Dict[str, Any]) -> PostCreate:
    try:
        return PostCreate.model_validate(fields)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ValidationFailure(problems) from exc


def health_check(ctx: HandlerContext) -> None:
    ctx.respond(200, HealthOut(data=HEALTH_MESSAGE))


def create_post_from_query(ctx: HandlerContext) -> None:
    """
    Create a post from query-string fields (title, description, published).
    """
    fields = {
        name: ctx.query(name)
        for name in POST_FIELDS
        if ctx.query(name) is not None
    }
    post = ctx.store.create(_validate_post(fields))
    ctx.respond(201, post)


def create_post_from_body(ctx: HandlerContext) -> None:
    """
    Create a post from a JSON object body.
    """
    post = ctx.store.create(_validate_post(ctx.json()))
    ctx.respond(201, post)


def list_posts(ctx: HandlerContext) -> None:
    ctx.respond(200, ctx.read(ctx.store.find_all))


def get_post(ctx: HandlerContext) -> None:
    ctx.respond(200, ctx.read(ctx.store.find_by_id, ctx.param("id")))


def delete_post(ctx: HandlerContext) -> None:
    ctx.respond(200, ctx.store.delete_by_id(ctx.param("id")))


def build_route_table(read_attempts: int = 1) -> RouteTable:
    table = RouteTable(read_attempts=read_attempts)
    table.register("GET", "/", health_check, "Show the status of server.", ("root",))
    table.register(
        "GET", "/create-post", create_post_from_query, "Create a post from query parameters.", ("posts",),
        query=POST_FIELDS,
    )
    table.register(
        "POST", "/create-post", create_post_from_body, "Create a post from a JSON body.", ("posts",),
        body=PostCreate,
    )
    table.register("GET", "/get-post", list_posts, "List all posts.", ("posts",))
    table.register("GET", "/get-post/:id", get_post, "Get a post by id.", ("posts",))
    table.register("GET", "/delete-post/:id", delete_post, "Delete a post by id.", ("posts",))
    return table
