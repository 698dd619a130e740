"""
Error taxonomy shared by the store clients, the contracts and the HTTP layer.
"""

from __future__ import annotations


class PortfolioError(Exception):
    """Base class for every failure the contracts surface."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class NotFound(PortfolioError):
    """The requested record does not exist."""


class PermissionDenied(PortfolioError):
    """A mutation targeted a record the requester does not own."""


class ValidationFailure(PortfolioError):
    """A required field is missing or blank."""


class TransportFailure(PortfolioError):
    """The store or object store call failed for network or server reasons."""


class UploadInProgress(PortfolioError):
    pass


class SessionRequired(PortfolioError):
    """No active session; callers redirect to the login entry point."""


class AuthenticationFailed(PortfolioError):
    pass
