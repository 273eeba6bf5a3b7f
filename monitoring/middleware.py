import logging
import time

from django.conf import settings
from django.db import connection

from .health import memory_usage
from .metrics import metrics

request_logger = logging.getLogger("farmlink.requests")
db_logger = logging.getLogger("farmlink.db")


def route_of(request):
    match = getattr(request, "resolver_match", None)
    if match is not None and match.route:
        return "/" + match.route
    return request.path


def client_ip(request):
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR", "")


class QueryTimer:
    """connection.execute_wrapper hook counting queries and flagging slow ones."""

    def __call__(self, execute, sql, params, many, context):
        start = time.perf_counter()
        try:
            return execute(sql, params, many, context)
        finally:
            duration = (time.perf_counter() - start) * 1000
            operation = sql.split(None, 1)[0].upper() if sql else "UNKNOWN"
            metrics.record_db_op(operation, duration)
            if duration > settings.FARMLINK["MONITORING"]["SLOW_QUERY_MS"]:
                db_logger.warning("Slow query: %s took %.2fms: %s", operation, duration, sql[:200])
            else:
                db_logger.debug("%s took %.2fms", operation, duration)


class RequestLoggingMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request_logger.debug("Incoming request: %s %s ip=%s", request.method, request.path, client_ip(request))
        start = time.perf_counter()
        response = self.get_response(request)
        duration = (time.perf_counter() - start) * 1000

        user = getattr(request, "user", None)
        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        request_logger.log(
            level,
            "%s %s %s %.1fms ip=%s user=%s agent=%s",
            request.method,
            request.get_full_path(),
            response.status_code,
            duration,
            client_ip(request),
            user.pk if user is not None and user.is_authenticated else "-",
            request.META.get("HTTP_USER_AGENT", "-"),
        )
        return response


class PerformanceMonitorMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response
        self.query_timer = QueryTimer()

    def __call__(self, request):
        start = time.perf_counter()
        with connection.execute_wrapper(self.query_timer):
            response = self.get_response(request)
        duration = (time.perf_counter() - start) * 1000

        route = route_of(request)
        metrics.record_response_time(duration)
        metrics.record_request(request.method, route, response.status_code)
        if response.status_code >= 400:
            metrics.record_error("HTTPError", route)

        metrics.sample_memory(memory_usage)
        return response
