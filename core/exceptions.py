#!/usr/bin/env python3
"""
Service-layer exceptions.

Each exception carries a status code and a machine-readable code so the
calling layer (HTTP handlers, CLI) can map it without inspecting messages.
"""

from typing import Dict, List, Optional


class ServiceException(Exception):
    """Base exception for service layer errors."""
    status_code = 500
    code = 'INTERNAL_ERROR'
    default_message = 'Internal error'

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, object]:
        return {
            "success": False,
            "error": self.message,
            "code": self.code,
            "type": self.__class__.__name__
        }


class NotFoundError(ServiceException):
    """Raised when a user, course or tee time does not exist."""
    status_code = 404
    code = 'NOT_FOUND'
    default_message = 'Resource not found'


class ForbiddenError(ServiceException):
    """Raised when someone other than the host mutates a tee time."""
    status_code = 403
    code = 'FORBIDDEN'
    default_message = 'Forbidden'


class ValidationError(ServiceException):
    """Raised when input fails validation."""
    status_code = 400
    code = 'VALIDATION_ERROR'
    default_message = 'Validation failed'

    def __init__(self, errors: Optional[Dict[str, List[str]]] = None, message: Optional[str] = None):
        super().__init__(message)
        self.errors = errors or {}

    def to_dict(self) -> Dict[str, object]:
        payload = super().to_dict()
        payload["errors"] = self.errors
        return payload


class ConflictError(ServiceException):
    """Raised on optimistic-lock version mismatches and when a host tries to leave."""
    status_code = 409
    code = 'CONFLICT'
    default_message = 'Resource conflict'


class SlotUnavailableError(ServiceException):
    """Raised when the tee time cannot be joined or the chosen slot was lost to a race.

    Retryable after re-reading the tee time.
    """
    status_code = 409
    code = 'SLOT_UNAVAILABLE'
    default_message = 'Slot is no longer available'


class TeeTimeFullError(ServiceException):
    """Raised when no vacant slot remains."""
    status_code = 409
    code = 'TEE_TIME_FULL'
    default_message = 'Tee time is full'


class AlreadyJoinedError(ServiceException):
    """Raised when the user already holds a slot in the tee time."""
    status_code = 409
    code = 'ALREADY_JOINED'
    default_message = 'You have already joined this tee time'
