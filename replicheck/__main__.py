"""Run the demo server: ``python -m replicheck``."""

from __future__ import annotations

import uvicorn

from .api import create_app
from .logger import configure_logging, get_logger
from .settings import ServerSettings

logger = get_logger(__name__)


def main() -> None:
    configure_logging()
    settings = ServerSettings()
    logger.info("Loading database topology", config_path=str(settings.config_path))

    # log_config=None keeps uvicorn on the root handler configured above.
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
