"""Logging helpers.

Every logger returned by :func:`get_logger` writes JSON lines carrying the
request id of the HTTP request being served (``-`` outside of a request).
"""

import logging
from contextvars import ContextVar

from pythonjsonlogger.json import JsonFormatter

from shop.utils.settings import LOG_LEVEL

REQUEST_ID_CTX: ContextVar[str] = ContextVar("request_id", default="-")


class RequestIdFilter(logging.Filter):
    """Attach ``request_id`` to every record so formatters can reference it."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = REQUEST_ID_CTX.get()
        return True


def _build_handler() -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setFormatter(
        JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s")
    )
    handler.addFilter(RequestIdFilter())
    return handler


_root = logging.getLogger("shop")
if not _root.handlers:
    _root.addHandler(_build_handler())
    _root.setLevel(LOG_LEVEL)


def get_logger(name: str) -> logging.Logger:
    # module names already live under the "shop" namespace
    return logging.getLogger(name)
