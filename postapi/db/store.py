# postapi/db/store.py

import logging
import threading
import uuid
from contextlib import nullcontext
from typing import List

from sqlalchemy import delete, insert, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from postapi.config import Settings
from postapi.db.engine import get_engine
from postapi.db.schema import metadata, posts
from postapi.errors import NotFound, StartupError, StoreFailure
from postapi.models.posts import PostCreate, PostOut

logger = logging.getLogger(__name__)

_POST_COLUMNS = (
    posts.c.id,
    posts.c.title,
    posts.c.description,
    posts.c.published,
)


def _row_to_post(row) -> PostOut:
    return PostOut(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        published=row["published"],
    )


class PostStore:
    """
    Persistence for posts on top of a SQLAlchemy engine.

    Each method is a single atomic operation. Driver errors surface as
    StoreFailure and a missing id as NotFound.

    A StaticPool engine hands every thread the same DBAPI connection, so calls
    on such an engine are serialized; pooled engines run concurrently.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        if isinstance(engine.pool, StaticPool):
            self._guard = threading.Lock()
        else:
            self._guard = nullcontext()

    def create(self, fields: PostCreate) -> PostOut:
        post_id = uuid.uuid4().hex
        stmt = insert(posts).values(
            id=post_id,
            title=fields.title,
            description=fields.description,
            published=fields.published,
        )
        try:
            with self._guard, self.engine.begin() as conn:
                conn.execute(stmt)
        except SQLAlchemyError as exc:
            logger.error("create post failed: %s", exc)
            raise StoreFailure("could not create post") from exc

        return PostOut(id=post_id, **fields.model_dump())

    def find_all(self) -> List[PostOut]:
        stmt = select(*_POST_COLUMNS).order_by(posts.c.seq)
        try:
            with self._guard, self.engine.connect() as conn:
                rows = conn.execute(stmt).mappings().all()
        except SQLAlchemyError as exc:
            logger.error("list posts failed: %s", exc)
            raise StoreFailure("could not list posts") from exc

        return [_row_to_post(row) for row in rows]

    def find_by_id(self, post_id: str) -> PostOut:
        stmt = select(*_POST_COLUMNS).where(posts.c.id == post_id)
        try:
            with self._guard, self.engine.connect() as conn:
                row = conn.execute(stmt).mappings().first()
        except SQLAlchemyError as exc:
            logger.error("find post %s failed: %s", post_id, exc)
            raise StoreFailure("could not read post") from exc

        if row is None:
            raise NotFound(f"post {post_id!r} not found")
        return _row_to_post(row)

    def delete_by_id(self, post_id: str) -> PostOut:
        lookup = select(*_POST_COLUMNS).where(posts.c.id == post_id)
        removal = delete(posts).where(posts.c.id == post_id)
        try:
            with self._guard, self.engine.begin() as conn:
                row = conn.execute(lookup).mappings().first()
                # the DELETE decides: a concurrent delete may have won since the lookup
                deleted = conn.execute(removal).rowcount if row is not None else 0
        except SQLAlchemyError as exc:
            logger.error("delete post %s failed: %s", post_id, exc)
            raise StoreFailure("could not delete post") from exc

        if deleted == 0:
            raise NotFound(f"post {post_id!r} not found")
        return _row_to_post(row)

    def close(self) -> None:
        self.engine.dispose()


def open_store(settings: Settings) -> PostStore:
    """
    Connect to the configured database and make sure the schema exists.

    Raises StartupError if the database cannot be reached; the caller must not
    start serving in that case.
    """
    try:
        engine = get_engine(settings.database_url)
    except (SQLAlchemyError, ValueError) as exc:
        raise StartupError(f"invalid database url: {exc}") from exc

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        metadata.create_all(engine)
    except SQLAlchemyError as exc:
        engine.dispose()
        raise StartupError(f"cannot connect to database: {exc}") from exc

    logger.info("Connected to %s", engine.url.render_as_string(hide_password=True))
    return PostStore(engine)
