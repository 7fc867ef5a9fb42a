"""
API error taxonomy and the envelope exception handler.

Every failure leaves the API as
    {"success": false, "message": "...", "error": {"statusCode": 4xx/5xx}}
Serializer errors ride along in error.details; tracebacks only when DEBUG is on.
"""

import logging
import traceback

from django.conf import settings
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger("aggrekart.errors")

# Malformed or missing input. DRF's own class so serializer.is_valid(raise_exception=True) fits in.
ValidationError = exceptions.ValidationError


class BadRequestError(exceptions.APIException):
    status_code    = status.HTTP_400_BAD_REQUEST
    default_detail = "Bad request."
    default_code   = "bad_request"


class NotFoundError(exceptions.APIException):
    """Unknown or not-eligible entity. Unapproved pilots are reported this way too."""
    status_code    = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code   = "not_found"


class UnauthorizedError(exceptions.APIException):
    """Bad credentials, OTP or token.

    Not an AuthenticationFailed subclass: DRF rewrites those to 403
    on views without an authenticator, and the public login views have none.
    """
    status_code    = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized."
    default_code   = "unauthorized"


class ForbiddenError(exceptions.APIException):
    status_code    = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have access to this resource."
    default_code   = "forbidden"


class ConflictError(exceptions.APIException):
    """State-machine violation: double assignment, illegal ticket transition, etc."""
    status_code    = status.HTTP_409_CONFLICT
    default_detail = "Request conflicts with the current state."
    default_code   = "conflict"


class InternalError(exceptions.APIException):
    status_code    = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Something went wrong!"
    default_code   = "internal_error"


def _message_for(exc) -> str:
    detail = getattr(exc, "detail", None)
    if isinstance(exc, exceptions.ValidationError):
        if isinstance(detail, list) and len(detail) == 1:
            return str(detail[0])
        return "Validation failed"
    if isinstance(detail, dict):
        # simplejwt's InvalidToken carries {"detail": ..., "code": ..., "messages": [...]}
        detail = detail.get("detail") or next(iter(detail.values()), "")
    if isinstance(detail, list):
        detail = detail[0] if detail else ""
    return str(detail) if detail else "Request failed"


def _stack(exc) -> str:
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


def envelope_exception_handler(exc, context):
    """DRF EXCEPTION_HANDLER: wrap every error in the standard envelope."""
    response = exception_handler(exc, context)
    view = context.get("view")
    view_name = type(view).__name__ if view is not None else "unknown"

    if response is None:
        logger.error(
            "Unhandled error in %s: %s", view_name, exc,
            exc_info=(type(exc), exc, exc.__traceback__),
        )
        error = {"statusCode": status.HTTP_500_INTERNAL_SERVER_ERROR}
        if settings.DEBUG:
            error["stack"] = _stack(exc)
        return Response(
            {"success": False, "message": InternalError.default_detail, "error": error},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    error = {"statusCode": response.status_code}
    if isinstance(exc, exceptions.ValidationError):
        error["details"] = response.data
    if response.status_code >= 500:
        logger.error("%s failed with %s: %s", view_name, response.status_code, exc)
        if settings.DEBUG:
            error["stack"] = _stack(exc)

    response.data = {"success": False, "message": _message_for(exc), "error": error}
    return response
