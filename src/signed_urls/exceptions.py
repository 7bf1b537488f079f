"""
Exception classes for signed download URLs
"""

from typing import Optional, Dict, Any


class SignedUrlError(Exception):
    """Base exception for all signed URL errors"""

    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class MalformedInputError(SignedUrlError):
    """Exception raised when a URL or query string is missing required parts"""
    pass


class FormatError(MalformedInputError):
    """Exception raised when a packed download descriptor cannot be decoded"""
    pass


class LookupMissError(SignedUrlError):
    """Exception raised when no payment matches a purchase key"""
    pass


class SecretUnavailableError(SignedUrlError):
    """Exception raised when the shared signing secret cannot be read"""
    pass


class ConfigurationError(SignedUrlError):
    """Exception raised for invalid configuration values"""
    pass


class PaymentLookupError(SignedUrlError):
    """Exception raised when the payment store cannot be reached"""

    def __init__(self, message: str, error_code: str = "PAYMENT_STORE_ERROR",
                 http_status: int = 0, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, details)
        self.http_status = http_status
