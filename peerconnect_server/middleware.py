import logging
import time


class RequestLogMiddleware:
    """
    Log every API request with method, path, status and duration.
    The Authorization header is reduced to its scheme so tokens never reach the logs.
    """
    def __init__(self, get_response):
        self.get_response = get_response
        self.logger = logging.getLogger('request_log')

    def __call__(self, request):
        started = time.monotonic()
        response = self.get_response(request)
        elapsed_ms = (time.monotonic() - started) * 1000
        auth = request.headers.get('Authorization', '')
        auth_scheme = auth.split(' ', 1)[0] if auth else '-'
        self.logger.info(
            f"{request.method} {request.path} -> {response.status_code} "
            f"({elapsed_ms:.1f}ms, auth={auth_scheme})"
        )
        return response
