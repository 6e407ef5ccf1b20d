# postapi/__main__.py
"""
Serve the API with uvicorn on the configured host and port.

Usage example:
    python -m postapi
"""

import uvicorn

from postapi.config import get_settings


def main():
    settings = get_settings()
    uvicorn.run("postapi:app", host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
