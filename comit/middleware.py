import logging
import time
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


class HTTPLogMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, logger_name: str = "comit.http"):
        super().__init__(app)
        self._logger = logging.getLogger(logger_name)

    async def dispatch(self, request: Request, call_next):
        start = time.monotonic()
        path = request.url.path
        method = request.method
        self._logger.debug("http.request start method=%s path=%s", method, path)
        try:
            response: Response = await call_next(request)
        except Exception as e:
            dur_ms = int((time.monotonic() - start) * 1000)
            self._logger.warning("http.request error method=%s path=%s dur_ms=%s err=%r",
                                 method, path, dur_ms, e)
            raise
        dur_ms = int((time.monotonic() - start) * 1000)
        self._logger.debug("http.request end method=%s path=%s status=%s dur_ms=%s",
                           method, path, response.status_code, dur_ms)
        return response
