"""ASGI entry point: ``uvicorn timely.main:app`` or the ``timely`` script.

Configuration is loaded here, at import time, so a missing backend endpoint,
API key or token secret stops the process before it accepts a request.
"""

from __future__ import annotations

import uvicorn

from . import create_app
from .core.config import get_settings
from .core.logging import configure_logging

settings = get_settings()
configure_logging(settings.LOG_LEVEL)
app = create_app(settings)


def run() -> None:
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    run()
