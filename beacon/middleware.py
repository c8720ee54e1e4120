import logging
import time
from collections.abc import Iterable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response


class HTTPLogMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, logger_name: str = "beacon.http"):
        super().__init__(app)
        self._logger = logging.getLogger(logger_name)

    async def dispatch(self, request: Request, call_next):
        start = time.time()
        path = request.url.path
        method = request.method
        client = request.client.host if request.client else "-"
        self._logger.debug("http.request start method=%s path=%s client=%s", method, path, client)
        try:
            response: Response = await call_next(request)
            dur_ms = int((time.time() - start) * 1000)
            self._logger.debug("http.request end method=%s path=%s status=%s dur_ms=%s",
                               method, path, response.status_code, dur_ms)
            return response
        except Exception as e:
            dur_ms = int((time.time() - start) * 1000)
            self._logger.warning("http.request error method=%s path=%s dur_ms=%s err=%r",
                                 method, path, dur_ms, e)
            raise


class OriginAllowListMiddleware(BaseHTTPMiddleware):
    """Reject any request whose Origin header is not on the allow-list.

    CORSMiddleware only withholds response headers from unknown origins; the
    request still reaches the route. This stops it before routing. Requests
    without an Origin header (same-origin, curl, beacons) pass through.
    """

    def __init__(self, app, allowed_origins: Iterable[str], logger_name: str = "beacon.cors"):
        super().__init__(app)
        self._allowed = set(allowed_origins)
        self._allow_all = "*" in self._allowed
        self._logger = logging.getLogger(logger_name)

    async def dispatch(self, request: Request, call_next):
        origin = request.headers.get("origin")
        if origin is None or self._allow_all or origin in self._allowed:
            return await call_next(request)
        self._logger.warning("cors.blocked origin=%s method=%s path=%s",
                             origin, request.method, request.url.path)
        return JSONResponse(
            status_code=403,
            content={"error": "forbidden", "detail": f"CORS not allowed for this origin: {origin}"},
        )
