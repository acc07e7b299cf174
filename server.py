"""
server.py
---------
Flow-server entry point.

Builds settings from the environment, then serves every flow declared in
flows.yaml as ``POST /{flowName}`` (port 3400 by default).

Usage:
  python server.py
  uvicorn api:app --port 3400      # equivalent, settings read on import
"""

import logging

from dotenv import load_dotenv

# Load .env before any project imports so env vars are set
load_dotenv(override=True)

import uvicorn

from api.app import create_app
from weather_agent.config import Settings, configure_logging

logger = logging.getLogger(__name__)


def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    app = create_app(settings)
    logger.info("Starting flow server on %s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
