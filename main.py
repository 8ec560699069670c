import logging

from aiohttp import web

from pompey import config
from webapp.app import create_app


logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
log = logging.getLogger("pompey")


if __name__ == "__main__":
    config.validate_required_env()
    log.info("Pompey News starting on %s:%s (%s)", config.HOST, config.PORT, config.APP_ENV)
    web.run_app(create_app(), host=config.HOST, port=config.PORT, print=None)
