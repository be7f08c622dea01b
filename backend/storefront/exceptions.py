"""
Storefront Backend — Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions for every failure a request can hit.
Why:   Each exception carries its HTTP status and the user-facing message, so
       route handlers never build error responses by hand.
How:   A single global handler (registered in main.py) renders any
       StorefrontError as the JSON envelope
       {"success": false, "message": ..., "errors": {...}}.

Exception Hierarchy:
    StorefrontError (base)                  → 500
    ├── UnauthenticatedError                → 401 "No token provided"
    ├── InvalidTokenError                   → 401 "Invalid token"
    ├── ValidationFailedError               → 400 field → first message
    ├── MissingImageError                   → 400
    ├── UnsupportedImageFormatError         → 400
    ├── PayloadTooLargeError                → 400
    ├── InvalidCredentialsError             → 400
    ├── NotFoundError                       → 404
    ├── UploadFailedError                   → 500
    ├── AssetUploadFailedError              → 500
    └── DatabaseError                       → 500
"""

from typing import Any, Dict, Optional


class StorefrontError(Exception):
    """
    Base exception for all Storefront application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        errors:   Optional field-keyed error map, returned to the client
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        errors: Optional[Dict[str, str]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.errors = errors
        self.context = context or {}
        super().__init__(self.message)


class UnauthenticatedError(StorefrontError):
    """No bearer credential was presented on a guarded route."""

    status_code = 401

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="No token provided", context=context)


class InvalidTokenError(StorefrontError):
    """
    The bearer credential failed verification.

    Covers bad signatures, expired tokens, malformed tokens and tokens that
    decode but lack the user identifier claim. The client is never told which.
    """

    status_code = 401

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(message="Invalid token", context=context)


class ValidationFailedError(StorefrontError):
    """
    Raised when one or more request fields break their rules.

    `errors` maps each failing field to the message of its first failed rule.

    Example response:
        {
            "success": false,
            "message": "Validation failed",
            "errors": {"price": "Price must be less than 100000"}
        }
    """

    status_code = 400

    def __init__(
        self,
        errors: Dict[str, str],
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message="Validation failed", errors=errors, context=context)


class MissingImageError(StorefrontError):
    """Create requires an image; none was uploaded."""

    status_code = 400

    def __init__(self):
        super().__init__(
            message="No image file uploaded",
            errors={"image": "No image file uploaded"},
        )


class UnsupportedImageFormatError(StorefrontError):
    """The uploaded file is not a JPEG or PNG image."""

    status_code = 400

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="Invalid image format. Only JPEG and PNG are allowed.",
            errors={"image": "Invalid image format"},
            context=context,
        )


class PayloadTooLargeError(StorefrontError):
    """The uploaded file exceeds the configured byte ceiling."""

    status_code = 400

    def __init__(self, max_size: int, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["max_size"] = max_size
        super().__init__(
            message="Image size is too large",
            errors={"image": "File too large"},
            context=ctx,
        )
        self.max_size = max_size


class InvalidCredentialsError(StorefrontError):
    """
    Login failed.

    The same message is used for an unknown email and a wrong password so the
    response does not reveal which accounts exist.
    """

    status_code = 400

    def __init__(self):
        super().__init__(message="Invalid email or password")


class NotFoundError(StorefrontError):
    """The requested record does not exist."""

    status_code = 404

    def __init__(
        self,
        resource: str = "Resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=f"{resource} not found", context=ctx)


class UploadFailedError(StorefrontError):
    """The multipart file part could not be read."""

    status_code = 500

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="Error uploading file",
            errors={"image": "Upload failed"},
            context=context,
        )


class AssetUploadFailedError(StorefrontError):
    """
    One or both image derivatives could not be stored remotely.

    The product is never persisted with a mismatched image pair; any derivative
    that did upload is removed best-effort before this is raised.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "Error processing upload",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(StorefrontError):
    """
    A database operation failed unexpectedly.

    The message returned to the client is always generic; the underlying
    error type is kept in `context` for the server log.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
