"""Maps domain and framework errors to JSON responses.

Registered as REST_FRAMEWORK["EXCEPTION_HANDLER"]. Internal details never
reach the response body.
"""

import logging

from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from marketplace.domain.errors import DomainError, ErrorCode

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_LESSON_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_ORDER_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.LESSON_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.ORDER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INSUFFICIENT_CAPACITY: status.HTTP_400_BAD_REQUEST,
    ErrorCode.LESSON_IN_USE: status.HTTP_409_CONFLICT,
    ErrorCode.STORE_UNAVAILABLE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

INTERNAL_ERROR_MESSAGE = "An internal server error occurred"


def domain_error_response(exc: DomainError) -> Response:
    body = {"error": exc.message, "code": exc.code.value}
    lesson_id = getattr(exc, "lesson_id", None)
    if lesson_id is not None:
        body["lessonId"] = lesson_id
    return Response(body, status=STATUS_BY_CODE[exc.code])


def _flatten(detail) -> str:
    if isinstance(detail, dict):
        return "; ".join(f"{key}: {_flatten(value)}" for key, value in detail.items())
    if isinstance(detail, list):
        return " ".join(_flatten(item) for item in detail)
    return str(detail)


def _framework_code(exc) -> str:
    if isinstance(exc, exceptions.APIException):
        return exc.default_code.upper()
    if isinstance(exc, Http404):
        return "NOT_FOUND"
    return "PERMISSION_DENIED"


def domain_exception_handler(exc, context):
    if isinstance(exc, DomainError):
        if exc.code is ErrorCode.STORE_UNAVAILABLE:
            logger.error("Store unavailable while handling %s", context.get("view"))
        return domain_error_response(exc)

    if isinstance(exc, exceptions.ValidationError):
        return Response(
            {"error": _flatten(exc.detail), "code": ErrorCode.VALIDATION_ERROR.value},
            status=status.HTTP_400_BAD_REQUEST,
        )

    response = exception_handler(exc, context)
    if response is not None:
        response.data = {
            "error": _flatten(response.data.get("detail", response.data)),
            "code": _framework_code(exc),
        }
        return response

    logger.exception("Unhandled error in %s", context.get("view"), exc_info=exc)
    return Response(
        {"error": INTERNAL_ERROR_MESSAGE, "code": "INTERNAL_ERROR"},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
