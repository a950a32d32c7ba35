"""
Exception types used across the registration backend.

``OTPError`` and its subclasses are raised by the in-memory OTP store and
describe *why* an issue/verify call was refused. ``UdyamAPIError`` and its
subclasses are HTTP-facing: they carry the status code, a user-visible
message, an optional per-field error map and an optional ``data`` payload,
and are rendered by the handlers registered in ``main.py``.
"""

from typing import Optional

from fastapi import HTTPException


class OTPError(Exception):
    """Base exception for refused OTP operations."""

    def __init__(self, code: str, message: str, details: Optional[dict] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class OTPRateLimited(OTPError):
    def __init__(self, message: str = "Too many OTP requests. Please try again after an hour.", details: Optional[dict] = None):
        super().__init__("RATE_LIMITED", message, details)


class OTPNotFound(OTPError):
    def __init__(self, message: str = "OTP not found. Please request a new OTP.", details: Optional[dict] = None):
        super().__init__("NOT_FOUND", message, details)


class OTPExpired(OTPError):
    def __init__(self, message: str = "OTP has expired. Please request a new OTP.", details: Optional[dict] = None):
        super().__init__("EXPIRED", message, details)


class OTPAlreadyVerified(OTPError):
    def __init__(self, message: str = "OTP already verified.", details: Optional[dict] = None):
        super().__init__("ALREADY_VERIFIED", message, details)


class OTPAttemptsExceeded(OTPError):
    def __init__(self, message: str = "Maximum OTP attempts exceeded. Please request a new OTP.", details: Optional[dict] = None):
        super().__init__("ATTEMPTS_EXCEEDED", message, details)


class OTPInvalidCode(OTPError):
    """Wrong code; ``remaining`` is how many more tries the record allows."""

    def __init__(self, remaining: int, details: Optional[dict] = None):
        self.remaining = remaining
        super().__init__("INVALID_CODE", f"Invalid OTP. {remaining} attempts remaining.", details)


class UdyamAPIError(HTTPException):
    def __init__(self, status_code: int, message: str, errors: Optional[dict] = None, data: Optional[dict] = None):
        super().__init__(status_code=status_code, detail=message)
        self.errors = errors
        self.data = data


class ValidationFailed(UdyamAPIError):
    def __init__(self, errors: dict, message: Optional[str] = None):
        if message is None:
            message = next(iter(errors.values()), "Validation failed")
        super().__init__(400, message, errors=errors)


class RateLimited(UdyamAPIError):
    def __init__(self, message: str):
        super().__init__(429, message)


class ResourceNotFound(UdyamAPIError):
    def __init__(self, message: str):
        super().__init__(404, message)


class DuplicateSubmission(UdyamAPIError):
    def __init__(self, message: str, data: dict):
        super().__init__(409, message, data=data)


class IntegrityFailed(UdyamAPIError):
    def __init__(self, errors: dict, message: str = "Form validation failed"):
        super().__init__(400, message, errors=errors)
