"""
Custom exceptions for kswift.
"""


class SwiftError(Exception):
    """Base exception for all kswift errors."""

    default_code = ""

    def __init__(self, message: str, code: str = "", original: Exception = None):
        super().__init__(message)
        self.code = code or self.default_code
        self.original = original

    def __str__(self):
        if self.code:
            return f"[{self.code}] {super().__str__()}"
        return super().__str__()


class TransportError(SwiftError):
    """Raised when sending a request or reading its response fails."""

    default_code = "HTTP"


class ConfigError(SwiftError):
    """Raised when required credentials or settings are missing."""

    default_code = "CONFIG"


class AuthError(SwiftError):
    """Base exception for failures while obtaining an auth token."""

    default_code = "AUTH"


class EncodingError(AuthError):
    """Raised when the login payload cannot be serialized."""

    default_code = "JSON_ENCODE"


class DecodingError(AuthError):
    """Raised when the identity response is not valid JSON."""

    default_code = "JSON_DECODE"


class ContentError(AuthError):
    """Raised when the identity response lacks a required field or has the wrong shape."""

    default_code = "JSON_CONTENT"


class RegionNotFoundError(ContentError):
    """Raised when no catalog endpoint matches the configured region."""

    def __init__(self, region: str):
        super().__init__(f"No region matching '{region}' located")
        self.region = region


class ExpiryParseError(ContentError):
    """Raised when the token expiry cannot be parsed as a timestamp."""


class CoordinationError(AuthError):
    """Raised when the shared session could not be locked or holds no token."""

    default_code = "COORDINATION"
