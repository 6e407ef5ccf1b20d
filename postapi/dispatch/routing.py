# postapi/dispatch/routing.py
"""
Method + path routing independent of the web framework.

A pattern is a ``/`` separated path made of literal segments and at most one
``:name`` parameter segment, e.g. ``/delete-post/:id``. ``RouteTable.dispatch``
resolves the route, runs the handler with a ``HandlerContext`` and returns the
single committed ``Outcome``. Dispatch errors raised by a handler are encoded
here and nowhere else.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from postapi.dispatch.encoding import JSON_MEDIA_TYPE, ResponseEncoder
from postapi.errors import (
    DispatchError,
    NotFound,
    ResponseAlreadySent,
    StoreFailure,
    ValidationFailure,
)

logger = logging.getLogger(__name__)

Handler = Callable[["HandlerContext"], None]


@dataclass(frozen=True)
class Outcome:
    status_code: int
    body: bytes
    media_type: str = JSON_MEDIA_TYPE


def _split(path: str) -> List[str]:
    return path.strip("/").split("/")


@dataclass(frozen=True)
class Route:
    method: str
    pattern: str
    handler: Handler
    summary: Optional[str] = None
    tags: Tuple[str, ...] = ()
    # documentation only: query names the handler reads, pydantic model of the body
    query: Tuple[str, ...] = ()
    body: Optional[type] = None
    segments: Tuple[str, ...] = field(init=False, repr=False)

    def __post_init__(self):
        segments = tuple(_split(self.pattern))
        if sum(1 for s in segments if s.startswith(":")) > 1:
            raise ValueError(f"at most one parameter segment allowed: {self.pattern}")
        if any(s == ":" for s in segments):
            raise ValueError(f"unnamed parameter segment: {self.pattern}")
        object.__setattr__(self, "segments", segments)

    @property
    def param_name(self) -> Optional[str]:
        for segment in self.segments:
            if segment.startswith(":"):
                return segment[1:]
        return None

    def match(self, path: str) -> Optional[Dict[str, str]]:
        parts = _split(path)
        if len(parts) != len(self.segments):
            return None

        params: Dict[str, str] = {}
        for segment, part in zip(self.segments, parts):
            if segment.startswith(":"):
                if not part:
                    return None
                params[segment[1:]] = part
            elif segment != part:
                return None
        return params


class HandlerContext:
    """Per-request view handed to a handler."""

    def __init__(
        self,
        params: Mapping[str, str],
        query: Optional[Mapping[str, str]] = None,
        body: bytes = b"",
        store: Any = None,
        encoder: Optional[ResponseEncoder] = None,
        read_attempts: int = 1,
    ):
        self._params = dict(params)
        self._query = dict(query or {})
        self._body = body or b""
        self.store = store
        self.encoder = encoder or ResponseEncoder()
        self.read_attempts = read_attempts
        self._outcome: Optional[Outcome] = None

    def param(self, name: str) -> Optional[str]:
        return self._params.get(name)

    def query(self, name: str) -> Optional[str]:
        return self._query.get(name)

    def json(self) -> Dict[str, Any]:
        if not self._body.strip():
            return {}
        try:
            payload = json.loads(self._body)
        except ValueError as exc:
            raise ValidationFailure(f"request body is not valid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise ValidationFailure("request body must be a JSON object")
        return payload

    def read(self, fn: Callable[..., Any], *args: Any) -> Any:
        """
        Run a read-only store call, retrying on StoreFailure.

        Writes must call the store directly; they are never retried.
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.read_attempts),
            wait=wait_exponential(multiplier=0.05, max=1),
            retry=retry_if_exception_type(StoreFailure),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return retrying(fn, *args)

    def respond(self, status_code: int, body: Any) -> None:
        if self._outcome is not None:
            raise ResponseAlreadySent(
                f"response already sent with status {self._outcome.status_code}"
            )
        if not isinstance(body, bytes):
            body = self.encoder.encode(body)
        self._outcome = Outcome(status_code, body, self.encoder.media_type)

    @property
    def responded(self) -> bool:
        return self._outcome is not None

    @property
    def outcome(self) -> Optional[Outcome]:
        return self._outcome


class RouteTable:
    def __init__(self, encoder: Optional[ResponseEncoder] = None, read_attempts: int = 1):
        self.encoder = encoder or ResponseEncoder()
        self.read_attempts = read_attempts
        self._routes: List[Route] = []

    def register(
        self,
        method: str,
        pattern: str,
        handler: Handler,
        summary: Optional[str] = None,
        tags: Tuple[str, ...] = (),
        query: Tuple[str, ...] = (),
        body: Optional[type] = None,
    ) -> Route:
        route = Route(
            method.upper(), pattern, handler, summary, tuple(tags), tuple(query), body
        )
        for existing in self._routes:
            if existing.method == route.method and existing.segments == route.segments:
                raise ValueError(f"route already registered: {route.method} {pattern}")
        self._routes.append(route)
        return route

    @property
    def routes(self) -> List[Route]:
        return list(self._routes)

    def resolve(self, method: str, path: str) -> Optional[Tuple[Route, Dict[str, str]]]:
        method = method.upper()
        for route in self._routes:
            if route.method != method:
                continue
            params = route.match(path)
            if params is not None:
                return route, params
        return None

    def dispatch(
        self,
        method: str,
        path: str,
        *,
        query: Optional[Mapping[str, str]] = None,
        body: bytes = b"",
        store: Any = None,
    ) -> Outcome:
        resolved = self.resolve(method, path)
        if resolved is None:
            status_code, payload = self.encoder.encode_error(
                NotFound(f"no route for {method.upper()} {path}")
            )
            return Outcome(status_code, payload, self.encoder.media_type)

        route, params = resolved
        ctx = HandlerContext(
            params,
            query=query,
            body=body,
            store=store,
            encoder=self.encoder,
            read_attempts=self.read_attempts,
        )

        try:
            route.handler(ctx)
        except DispatchError as exc:
            if exc.status_code >= 500:
                logger.exception("%s %s failed: %s", route.method, path, exc.detail)
            else:
                logger.warning("%s %s -> %s: %s", route.method, path, exc.kind, exc.detail)
            ctx.respond(*self.encoder.encode_error(exc))
        except ResponseAlreadySent:
            raise
        except Exception as exc:
            logger.exception("%s %s crashed", route.method, path)
            ctx.respond(
                *self.encoder.encode_error(
                    StoreFailure(f"internal error: {type(exc).__name__}")
                )
            )

        if ctx.outcome is None:
            raise RuntimeError(f"handler for {route.method} {route.pattern} did not respond")
        return ctx.outcome

    def describe(self) -> List[Dict[str, Any]]:
        """Machine-readable listing of the table, in registration order."""
        return [
            {
                "method": route.method,
                "pattern": route.pattern,
                "param": route.param_name,
                "summary": route.summary,
                "tags": list(route.tags),
                "query": list(route.query),
                "body": route.body.model_json_schema() if route.body is not None else None,
            }
            for route in self._routes
        ]
