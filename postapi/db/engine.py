# postapi/db/engine.py

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool


def get_engine(url: str) -> Engine:
    kwargs = {"future": True}
    parsed = make_url(url)

    if parsed.get_backend_name() == "sqlite":
        # requests are served from a threadpool
        kwargs["connect_args"] = {"check_same_thread": False}
        if parsed.database in (None, "", ":memory:"):
            # one shared connection, otherwise every checkout sees an empty DB
            kwargs["poolclass"] = StaticPool

    return create_engine(url, **kwargs)
