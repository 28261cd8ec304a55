from __future__ import annotations

import logging
from typing import Optional, Union

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def configure_logging(level: Union[str, int] = "INFO", fmt: Optional[str] = None) -> None:
    """
    Attach a stream handler to the ``custodynet`` logger.

    Calling it again only updates the level.
    """
    root = logging.getLogger("custodynet")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt or _FORMAT))
        root.addHandler(handler)
