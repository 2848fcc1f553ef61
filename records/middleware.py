import logging
import time

logger = logging.getLogger(__name__)


class RequestLogMiddleware:
    """Access log line per request: method, path, status, duration and size."""
    SLOW_MS = 500

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        started = time.monotonic()
        response = self.get_response(request)
        elapsed_ms = (time.monotonic() - started) * 1000
        level = logging.WARNING if elapsed_ms > self.SLOW_MS else logging.INFO
        size = response.get('Content-Length') or (len(response.content) if not response.streaming else '-')
        logger.log(level, "%s %s %s %.2fms - %s",
                   request.method, request.get_full_path(), response.status_code, elapsed_ms, size)
        return response
