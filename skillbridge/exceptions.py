"""
skillbridge/exceptions.py
Typed exceptions for the progression engine and the services around it.

- InvalidInputError: malformed or out-of-range arguments
- NotFoundError: unknown profile, task or listing
- ExternalServiceError: grader (or another collaborator) failed
- ConcurrencyConflictError: compare-and-swap on a profile kept failing
"""
from typing import Any, Dict, Optional

from skillbridge.errors import ErrorCode


class SkillBridgeException(Exception):
    """Base exception for SkillBridge"""
    status_code: int = 500
    code: str = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        if code:
            self.code = code
        self.details = details or {}
        super().__init__(self.message)


class InvalidInputError(SkillBridgeException):
    """
    Raised when a call carries arguments the engine cannot accept.

    Examples:
    - Negative XP award
    - Simulation score outside [0, 100]
    - Unknown phase name
    - Completing a task that is still locked
    """
    status_code = 400
    code = ErrorCode.INVALID_INPUT


class NotFoundError(SkillBridgeException):
    """
    Raised when requested resource doesn't exist.
    """
    status_code = 404
    code = ErrorCode.NOT_FOUND

    def __init__(self, resource: str, identifier: Any = None, code: Optional[str] = None):
        message = f"{resource} not found"
        if identifier is not None:
            message = f"{resource} with id '{identifier}' not found"
        super().__init__(message, code, {"resource": resource, "id": identifier})


class ExternalServiceError(SkillBridgeException):
    """
    Raised when an external collaborator (grader) fails or times out.
    No profile state is touched when this is raised.
    """
    status_code = 503
    code = ErrorCode.SERVICE_UNAVAILABLE

    def __init__(self, service: str, message: str = "Service unavailable"):
        self.service = service
        super().__init__(f"{service}: {message}", details={"service": service})


class ConcurrencyConflictError(SkillBridgeException):
    """
    Raised when a profile was modified between read and write
    and retrying did not resolve it.
    """
    status_code = 409
    code = ErrorCode.CONCURRENT_MODIFICATION

    def __init__(self, user_id: str, expected_version: Optional[int] = None):
        self.user_id = user_id
        self.expected_version = expected_version
        super().__init__(
            f"Profile {user_id} was modified concurrently. Please retry.",
            details={"user_id": user_id, "expected_version": expected_version},
        )
