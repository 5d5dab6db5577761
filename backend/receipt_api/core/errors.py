"""
Domain exceptions raised by services and mapped to HTTP responses in main.
"""


class ReceiptApiError(Exception):
    """Base class for errors the service layer reports to the boundary."""


class ConfigurationError(ReceiptApiError):
    """Required configuration is missing or unsafe."""


class AuthenticationError(ReceiptApiError):
    """Credentials could not be verified.

    Every failure reason (missing header, bad signature, expired token,
    unknown API key, wrong password) collapses into this one error so callers
    cannot tell which check failed.
    """

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message)
        self.message = message


class DuplicateUserError(ReceiptApiError):
    """A user with this email already exists."""
