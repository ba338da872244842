"""
Logging setup for the Wallet API.

Services log through module-level loggers (`logging.getLogger(__name__)`).
This module installs the root handler once, at application startup, at the
level configured by LOG_LEVEL. Uvicorn keeps its own access log handlers.

Never log passwords, password hashes, or JWTs. Identifiers (user id,
account id, transaction id) and amounts are fine.
"""

import logging

from wallet.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger for the `wallet` package."""
    level_name = (level or settings.LOG_LEVEL).upper()
    logging.basicConfig(level=level_name, format=LOG_FORMAT)
    logging.getLogger("wallet").setLevel(level_name)

    # SQL echo is controlled by DEBUG on the engine, keep the logger quiet otherwise
    if not settings.DEBUG:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
