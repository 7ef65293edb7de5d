"""
Userbase Backend - Server Entrypoint
=====================================

What:  Runs the app under uvicorn using APP_HOST / APP_PORT from settings.
Who:   The `userbase` console script and `python -m app.server`.

Process lifecycle:
    - SIGINT / SIGTERM: uvicorn stops accepting connections, drains in-flight
      requests, then runs the lifespan shutdown (engine disposal)
    - Startup failure (e.g. database unreachable): the lifespan disposes the
      engine and re-raises; uvicorn reports it and we exit with status 1
    - Any other crash escaping uvicorn: logged, then exit status 1
"""

import logging
import sys

import uvicorn

from app.config import settings

logger = logging.getLogger(__name__)


def main() -> int:
    try:
        config = uvicorn.Config(
            "app.main:app",
            host=settings.app_host,
            port=settings.app_port,
            log_level=settings.log_level.lower(),
            access_log=False,
        )
        server = uvicorn.Server(config)
        server.run()
    except Exception:
        logger.critical("Server crashed", exc_info=True)
        return 1

    # uvicorn leaves `started` False when the lifespan startup failed
    if not server.started:
        logger.critical("Server failed to start")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
