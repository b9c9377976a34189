"""Error kinds raised by the workflow core.

Each kind is a DRF `APIException`, so views can let them propagate and
the framework renders `{"detail": ...}` with the matching status code.
All of them are recoverable by the caller; none are retried here.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.exceptions import APIException


class WorkflowError(APIException):
    """Base class for guard failures; no state is changed when raised."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "The request could not be completed."
    default_code = "workflow_error"


class NotFoundError(WorkflowError):
    """Missing entity, or one the caller is not allowed to see."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "not_found"


class ForbiddenError(WorkflowError):
    """The caller's resolved roles do not include the one required."""

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have the role required for this action."
    default_code = "forbidden"


class InvalidStateError(WorkflowError):
    """The transition is not permitted from the current status."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "This action is not allowed at the current status."
    default_code = "invalid_state"


class WorkflowValidationError(WorkflowError):
    """Missing or malformed input (reason text, course, required documents)."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input."
    default_code = "validation_error"


class ConflictError(WorkflowError):
    """Duplicate unique key, dependent rows, or a lost transition race."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "The request conflicts with the current state."
    default_code = "conflict"
