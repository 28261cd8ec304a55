from .json import json_dumps, json_loads, canonical_json
from .timestamps import now_iso, utc_now, unix_now
from .logging import get_logger, configure_logging

__all__ = [
    "json_dumps",
    "json_loads",
    "canonical_json",
    "now_iso",
    "utc_now",
    "unix_now",
    "get_logger",
    "configure_logging",
]
