from __future__ import annotations

import logging
import time
import uuid
from typing import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "x-request-id"


class RequestIDLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and log it on the way in and out.

    Responses to game routes also carry the ``game_id`` resolved by routing,
    so a session's traffic can be followed through the log.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        start = time.perf_counter()
        # Honour an id forwarded by a proxy, otherwise mint one
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        logger.info(
            "request %s %s",
            request.method,
            request.url.path,
            extra={"request_id": request_id},
        )

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id

        fields = {
            "request_id": request_id,
            "status_code": response.status_code,
            "duration_ms": int((time.perf_counter() - start) * 1000),
        }
        # Populated once the router has matched a /api/games/{game_id}/... path
        game_id = request.path_params.get("game_id")
        if game_id is not None:
            fields["game_id"] = game_id
        log = logger.warning if response.status_code >= 500 else logger.info
        log("response %d", response.status_code, extra=fields)
        return response
