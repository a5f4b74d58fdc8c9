from __future__ import annotations

import logging

from django.db import DatabaseError
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class GameError(APIException):
    """Business-rule failure returned to the caller as a typed error."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request could not be processed."
    default_code = "game_error"


class InvalidTransition(GameError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Invalid state transition."
    default_code = "invalid_transition"


class EventNotOpen(GameError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Event is not open for submissions."
    default_code = "event_not_open"


class DuplicateSubmission(GameError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Already submitted to this event."
    default_code = "duplicate_submission"


class NotFound(GameError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "not_found"


class Forbidden(GameError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Not allowed for this member."
    default_code = "forbidden"


class AlreadyUsed(GameError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Power has already been used."
    default_code = "already_used"


class Expired(GameError):
    status_code = status.HTTP_410_GONE
    default_detail = "Expired."
    default_code = "expired"


class InvalidTarget(GameError):
    default_detail = "Invalid target."
    default_code = "invalid_target"


class ValidationFailed(GameError):
    default_detail = "Validation failed."
    default_code = "validation_failed"


class StoreUnavailable(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Storage temporarily unavailable."
    default_code = "store_unavailable"


def game_exception_handler(exc, context):
    """
    DRF exception handler: business errors render through DRF as usual, store
    failures become a 503 distinct from every business-rule error.
    """
    if isinstance(exc, DatabaseError):
        logger.error("store failure in %s: %s", context.get("view").__class__.__name__, exc)
        exc = StoreUnavailable()
    response = exception_handler(exc, context)
    if response is not None and isinstance(exc, (GameError, StoreUnavailable)):
        response.data = {"detail": response.data.get("detail", exc.detail), "code": exc.get_codes()}
    return response
