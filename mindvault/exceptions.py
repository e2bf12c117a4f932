"""
MindVault Backend — Custom Exception Hierarchy
================================================

What:  Defines application-specific exceptions for different error scenarios.
Why:   Custom exceptions enable targeted error handling with appropriate HTTP
       status codes and user-friendly messages.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services, the field cipher and dependencies; caught by
       global handlers.

Exception Hierarchy:
    MindVaultError (base)
    ├── ValidationError          → 400 Bad Request (client can fix)
    ├── AuthenticationError      → 401 Unauthorized
    ├── NotFoundError            → 404 Not Found
    ├── ConflictError            → 409 Conflict
    ├── DatabaseError            → 500 Internal Server Error
    └── FieldCipherError         → 500 Internal Server Error
        ├── EncryptionError      (cipher primitive failed while protecting)
        ├── DecodeFormatError    (stored token is malformed)
        └── DecryptionError      (tag mismatch, wrong key, corrupt token)

Cipher errors never carry plaintext, tokens or key material in their
message or context.
"""

from typing import Any, Dict, Optional


class MindVaultError(Exception):
    """
    Base exception for all MindVault application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(MindVaultError):
    """
    Raised when client input fails a business rule.

    HTTP: 400 Bad Request. Schema-level problems are already answered by
    FastAPI with 422; this covers rules the schema cannot express.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class AuthenticationError(MindVaultError):
    """Raised when the caller identity supplied by the auth gateway is missing or malformed."""

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(MindVaultError):
    """
    Raised when a requested resource does not exist (or belongs to another user).

    SQLAlchemy returns None for missing records; services convert that into
    NotFoundError so the global handler can answer with a 404.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(MindVaultError):
    """Raised when a write would violate a one-per-period rule (e.g. daily wellness check)."""

    def __init__(
        self,
        message: str = "The resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(MindVaultError):
    """
    Raised when database operations fail unexpectedly.

    Security Note:
        The message returned to the client is always generic.
        Detailed error info is logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


# ══════════════════════════════════════════════════════════════════════════
# Field Cipher Errors
# ══════════════════════════════════════════════════════════════════════════


class FieldCipherError(MindVaultError):
    """
    Base class for failures of the field encryption layer.

    These propagate unchanged to the caller of protect()/reveal(); the
    cipher never retries and never tries another key.
    """

    def __init__(
        self,
        message: str = "Field encryption failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class EncryptionError(FieldCipherError):
    """The AES-GCM primitive failed while protecting a value. Aborts the write."""

    def __init__(
        self,
        message: str = "Failed to encrypt data",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DecodeFormatError(FieldCipherError):
    """
    A stored value looked like a token but was malformed.

    Raised for a wrong segment count or a segment that is not hex.
    """

    def __init__(
        self,
        message: str = "Invalid encrypted data format",
        segments: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if segments is not None:
            ctx["segments"] = segments
        super().__init__(message=message, context=ctx)
        self.segments = segments


class DecryptionError(FieldCipherError):
    """Authentication tag mismatch or cipher failure while revealing a token."""

    def __init__(
        self,
        message: str = "Failed to decrypt data",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
