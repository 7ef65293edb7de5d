"""
Userbase Backend - Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for the error scenarios of the API.
Why:   Services raise these instead of building error responses by hand; the
       global handlers in main.py turn each type into the FAILED envelope
       with the right HTTP status code.
Who:   Raised by services; caught by global handlers.

Exception Hierarchy:
    UserbaseError (base)     → 500 Internal Server Error
    ├── ValidationError      → 400 Bad Request (client can fix)
    ├── NotFoundError        → 404 Not Found
    └── DatabaseError        → 500 Internal Server Error (detail logged only)
"""

from typing import Any, Dict, List, Optional


class UserbaseError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(UserbaseError):
    """
    Raised when client input fails validation.

    When:    Malformed id, out-of-range pagination, or entity rule violations.
    HTTP:    400 Bad Request

    `violations` is the list returned as the envelope's `data`, one entry per
    violated rule:

        [{"field": "firstName", "constraints": {"isNotEmpty": "First name is required"}}]

    It is None for single-parameter errors such as "Invalid user ID".
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        violations: Optional[List[Dict[str, Any]]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.violations = violations


class NotFoundError(UserbaseError):
    """
    Raised when a requested resource does not exist.

    The repository returns None / False for missing rows; the service layer
    converts that into this exception so routes stay free of branching.
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=f"{resource} not found", context=ctx)


class DatabaseError(UserbaseError):
    """
    Raised when a database operation fails unexpectedly.

    The client always receives the generic "Internal server error" message;
    the driver error and statement details stay in the server log.
    """

    def __init__(
        self,
        message: str = "Internal server error",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
