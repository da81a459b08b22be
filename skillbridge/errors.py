"""
skillbridge/errors.py
Centralized Error Codes and Response Format

CORE PRINCIPLES:
- No 500 errors caused by user input
- All errors follow consistent structure
- Errors are user-safe (no stack traces)
- Errors are machine-readable

ERROR RESPONSE STRUCTURE:
{
    "success": false,
    "error": "ErrorType",
    "message": "Human-readable description",
    "code": "UNIQUE_ERROR_CODE",
    "details": {} (optional)
}

HTTP STATUS CODE DISCIPLINE:
- 400: Invalid input (negative XP, out-of-range score, locked task)
- 401: Bearer credential missing or invalid
- 404: Profile, task or listing does not exist
- 409: Concurrent modification of the same profile
- 422: Validation error (Pydantic)
- 429: Rate limit exceeded
- 503: Grader unavailable
- 500: NEVER caused by user input (internal only)
"""

from typing import Optional, Dict, Any


class ErrorCode:
    """Unique error codes for machine-readable error handling"""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"

    AUTH_REQUIRED = "AUTH_REQUIRED"
    AUTH_INVALID = "AUTH_INVALID"

    NOT_FOUND = "NOT_FOUND"
    PROFILE_NOT_FOUND = "PROFILE_NOT_FOUND"
    TASK_NOT_FOUND = "TASK_NOT_FOUND"
    LISTING_NOT_FOUND = "LISTING_NOT_FOUND"

    TASK_LOCKED = "TASK_LOCKED"
    SWAP_NOT_FOUND = "SWAP_NOT_FOUND"
    SWAP_UNAVAILABLE = "SWAP_UNAVAILABLE"
    POD_NOT_FOUND = "POD_NOT_FOUND"
    CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"

    RATE_LIMITED = "RATE_LIMITED"

    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


ERROR_NAMES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    422: "Validation Error",
    429: "Too Many Requests",
    500: "Internal Error",
    503: "Service Unavailable",
}


def error_body(
    status_code: int,
    message: str,
    code: str,
    details: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Build the standard error payload"""
    content = {
        "success": False,
        "error": ERROR_NAMES.get(status_code, "Error"),
        "message": message,
        "code": code,
    }
    if details:
        content["details"] = details
    return content


def code_for_status(status_code: int) -> str:
    """Best-effort error code for framework-raised HTTP errors"""
    if status_code == 401:
        return ErrorCode.AUTH_REQUIRED
    if status_code == 404:
        return ErrorCode.NOT_FOUND
    if status_code == 429:
        return ErrorCode.RATE_LIMITED
    if status_code >= 500:
        return ErrorCode.INTERNAL_ERROR
    return ErrorCode.INVALID_INPUT


def get_error_summary() -> Dict[str, Any]:
    """Return summary of error handling system for documentation"""
    return {
        "service": "skillbridge-error-handler",
        "response_structure": {
            "success": "boolean (always false for errors)",
            "error": "string (error type)",
            "message": "string (human-readable)",
            "code": "string (machine-readable)",
            "details": "object (optional)"
        },
        "status_codes": {str(code): name for code, name in ERROR_NAMES.items()},
        "error_codes": [
            attr for attr in dir(ErrorCode)
            if not attr.startswith('_')
        ]
    }
