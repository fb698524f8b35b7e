# src/evreactor/core/log.py
from __future__ import annotations

import json
import logging
import os
import sys
from typing import Optional

from dotenv import find_dotenv, load_dotenv

_configured = False

DEFAULT_FMT = "[%(asctime)s] %(levelname)s %(name)s %(threadName)s | %(message)s"


def load_env() -> None:
    """Load ./.env (searched from the working directory) into os.environ; set vars win."""
    load_dotenv(find_dotenv(usecwd=True))


class JsonHandler(logging.StreamHandler):
    """One JSON object per line on stdout."""
    def __init__(self):
        super().__init__(stream=sys.stdout)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            obj = {
                "ts": record.created,
                "lvl": record.levelname,
                "name": record.name,
                "thread": record.threadName,
                "msg": record.getMessage(),
            }
            if record.exc_info:
                obj["exc"] = logging.Formatter().formatException(record.exc_info)
            self.stream.write(json.dumps(obj, ensure_ascii=False, default=str) + "\n")
            self.flush()
        except Exception:  # pragma: no cover
            self.handleError(record)


def _level_from(name: str) -> int:
    lvl = logging.getLevelName(name.upper())
    return lvl if isinstance(lvl, int) else logging.INFO


def setup(level: Optional[str] = None, json_mode: Optional[bool] = None, *, force: bool = False) -> None:
    """Configure the root logger once per process.

    ``level`` and ``json_mode`` fall back to LOG_LEVEL / LOG_JSON (a local
    .env file is loaded first). Calling again is a no-op unless ``force``.
    """
    global _configured
    if _configured and not force:
        return

    load_env()

    py_level = _level_from(level or os.getenv("LOG_LEVEL", "INFO"))
    json_flag = json_mode if json_mode is not None else (os.getenv("LOG_JSON", "0") == "1")

    root = logging.getLogger()
    # pytest may call setup() repeatedly
    root.handlers.clear()
    root.setLevel(py_level)

    if json_flag:
        root.addHandler(JsonHandler())
    else:
        handler = logging.StreamHandler(stream=sys.stdout)
        handler.setFormatter(logging.Formatter(fmt=DEFAULT_FMT))
        root.addHandler(handler)

    _configured = True


def get(name: str) -> logging.Logger:
    return logging.getLogger(name)


def set_level(level: str) -> None:
    """Adjust the root level at runtime (tests use this)."""
    logging.getLogger().setLevel(_level_from(level))
