import logging

from django.conf import settings
from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    NotAuthenticated,
    ValidationError,
)
from rest_framework.response import Response
from rest_framework.views import exception_handler
from rest_framework_simplejwt.exceptions import InvalidToken

from monitoring.metrics import metrics

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("farmlink.security")


class BadRequest(APIException):
    """400 carrying a single human readable message."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Bad request."
    default_code = "bad_request"


def _flatten_errors(detail, field=None):
    """Turn DRF's nested error detail into a flat [{field, message}] list."""
    errors = []
    if isinstance(detail, dict):
        for key, value in detail.items():
            name = key if field is None else f"{field}.{key}"
            if name == "non_field_errors":
                name = field
            errors.extend(_flatten_errors(value, name))
    elif isinstance(detail, list):
        for item in detail:
            errors.extend(_flatten_errors(item, field))
    else:
        errors.append({"field": field, "message": str(detail)})
    return errors


def _route_of(context):
    request = context.get("request")
    if request is None:
        return "unknown"
    match = getattr(request, "resolver_match", None)
    if match is not None and match.route:
        return "/" + match.route
    return request.path


def farmlink_exception_handler(exc, context):
    response = exception_handler(exc, context)
    route = _route_of(context)
    metrics.record_error(exc.__class__.__name__, route)

    if response is None:
        logger.exception("Unhandled error on %s", route, exc_info=exc)
        body = {"success": False, "message": "Internal server error", "errors": []}
        if settings.DEBUG:
            body["errors"].append({"field": None, "message": str(exc)})
        return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, NotAuthenticated):
        message = "Access token is required"
        errors = []
    elif isinstance(exc, InvalidToken):
        message = "Invalid token"
        errors = []
    elif isinstance(exc, ValidationError):
        if isinstance(exc.detail, dict):
            message = "Validation failed"
            errors = _flatten_errors(exc.detail)
        else:
            errors = _flatten_errors(exc.detail)
            message = errors[0]["message"] if errors else "Validation failed"
    else:
        detail = getattr(exc, "detail", None)
        if isinstance(detail, (dict, list)):
            errors = _flatten_errors(detail)
            message = errors[0]["message"] if errors else str(exc)
        else:
            message = str(detail) if detail is not None else str(exc)
            errors = []

    if response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN):
        request = context.get("request")
        security_logger.warning(
            "Unauthorized access attempt: %s %s (%s)",
            getattr(request, "method", "?"), route, message,
        )

    response.data = {"success": False, "message": message, "errors": errors}
    return response
