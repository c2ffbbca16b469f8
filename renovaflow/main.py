from __future__ import annotations

import uvicorn

from . import create_app
from .core.config import get_settings
from .core.logging import setup_logging

settings = get_settings()
setup_logging(settings.LOG_LEVEL)
app = create_app(settings)


def run() -> None:
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    run()
