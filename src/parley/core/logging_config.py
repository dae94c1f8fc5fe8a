"""Logging setup for the Parley service."""

from __future__ import annotations

import logging
import sys

_CONFIGURED_HANDLER_NAME = "parley-stdout"


def setup_logging(level: str = "INFO", fmt: str | None = None) -> None:
    """Attach a single stdout handler to the root logger.

    Calling this more than once only updates the level and format of the
    handler installed by the first call.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    formatter = logging.Formatter(fmt or "%(asctime)s %(levelname)s [%(name)s] %(message)s")
    for handler in root.handlers:
        if handler.get_name() == _CONFIGURED_HANDLER_NAME:
            handler.setFormatter(formatter)
            return

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_CONFIGURED_HANDLER_NAME)
    handler.setFormatter(formatter)
    root.addHandler(handler)

    # Keep SQL echo and access logs out of the application log unless asked for.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
