from __future__ import annotations

import logging
import sys

import uvicorn

from . import db
from .app import create_app
from .docker_ops import DockerGateway, GatewayError
from .settings import ConfigError, settings


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        settings.validate()
    except ConfigError as e:
        db.logger.error("Invalid configuration: %s", e)
        return 2

    try:
        gateway = DockerGateway(settings)
    except GatewayError as e:
        db.logger.error("%s", e)
        return 1
    if not gateway.ping():
        db.logger.error("Docker Engine did not answer ping (API version %s)", settings.docker_api_version)
        gateway.close()
        return 1

    app = create_app(settings, gateway=gateway)
    try:
        uvicorn.run(app, host=settings.host, port=settings.port, log_level="info")
    finally:
        gateway.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
