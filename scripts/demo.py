# scripts/demo.py
"""
Walk through the store once: create a post, read it back by id and report
its description.

Usage example:
    python -m scripts.demo
"""

import json
import logging
import sys

from postapi.config import get_settings
from postapi.db.store import open_store
from postapi.errors import DispatchError, StartupError
from postapi.logging_config import configure_logging
from postapi.models.posts import PostCreate

logger = logging.getLogger(__name__)


def run() -> int:
    settings = get_settings()
    configure_logging(settings.log_level)

    try:
        store = open_store(settings)
    except StartupError as exc:
        logger.error("%s", exc)
        return 1

    try:
        created = store.create(
            PostCreate(
                title="Hi from the demo!",
                published=True,
                description="SQLAlchemy is a database toolkit and makes databases easy.",
            )
        )
        print(f"created post: {json.dumps(created.model_dump(), indent=2)}")

        post = store.find_by_id(created.id)
        print(f"post: {json.dumps(post.model_dump(), indent=2)}")
    except DispatchError as exc:
        logger.error("%s: %s", exc.kind, exc.detail)
        return 1
    finally:
        store.close()

    # description is nullable
    if post.description is None:
        logger.error("post's description is null")
        return 1

    print(f"The post's description is: {post.description}")
    return 0


if __name__ == "__main__":
    sys.exit(run())
