from __future__ import annotations

import logging
import sys
import uuid

_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def new_request_id() -> str:
    return uuid.uuid4().hex[:12]


def configure_logging(level: str = "INFO") -> None:
    """
    Install a single stdout handler on the root logger.

    Messages follow the `[request_id] event key=value` convention, e.g.
    `[3f2a9c0d1e4b] gateway_returned chars=412`.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
