import logging

from postapi.config import get_settings
from postapi.db.engine import get_engine
from postapi.db.schema import metadata
from postapi.logging_config import configure_logging

logger = logging.getLogger(__name__)

def main():
    settings = get_settings()
    configure_logging(settings.log_level)

    engine = get_engine(settings.database_url)
    try:
        metadata.drop_all(engine)
        metadata.create_all(engine)
    finally:
        engine.dispose()
    logger.info("DB schema created at %s", engine.url.render_as_string(hide_password=True))

if __name__ == "__main__":
    main()
