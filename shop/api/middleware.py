"""Request id propagation.

Every request gets an id, taken from the ``X-Request-ID`` header or
generated, kept in ``REQUEST_ID_CTX`` for the logging filter and echoed
back in the response headers.
"""

import time
import uuid

from fastapi import Request

from shop.utils.logging import REQUEST_ID_CTX, get_logger

logger = get_logger(__name__)


async def request_id_middleware(request: Request, call_next):
    rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    token = REQUEST_ID_CTX.set(rid)
    request.state.request_id = rid
    started = time.perf_counter()
    try:
        response = await call_next(request)
    finally:
        logger.info(
            "request handled",
            extra={
                "path": request.url.path,
                "method": request.method,
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )
        REQUEST_ID_CTX.reset(token)
    response.headers["X-Request-ID"] = rid
    return response
