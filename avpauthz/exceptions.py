"""
Custom exceptions for avpauthz.

All exceptions inherit from AVPAuthzError for easy catching of library-specific errors.
Only configuration problems and programming defects are raised; failures of the
remote decision call are reported through the ``error`` result instead.
"""

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from avpauthz.authz.base import AuthorizationResult


class AVPAuthzError(Exception):
    """
    Base exception for all avpauthz errors.

    All library exceptions inherit from this class, allowing users to catch
    any avpauthz-specific error with a single exception handler.
    """

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigurationError(AVPAuthzError):
    """
    Raised when the engine configuration is invalid.

    This includes:
    - Missing or empty policy store id
    - Call type outside accessToken / identityToken / isAuthorized
    - Unreadable or malformed YAML configuration files
    - Missing required environment variables

    Note:
        Configuration errors are raised while the engine is being built,
        never from a decision call.
    """

    pass


class UnreachableCallTypeError(AVPAuthzError):
    """
    Raised when a call type has no dispatch strategy.

    Construction-time validation makes this impossible for the known call
    types; seeing it means a new call type was added without a strategy.
    """

    pass


class AuthorizationDeniedError(AVPAuthzError):
    """
    Raised by the enforcement helpers when a request may not proceed.

    Both ``deny`` and ``error`` results raise this error (fail closed). The
    normalized result is attached so callers can tell them apart.

    Examples:
        - No Cedar policy permits the action
        - Verified Permissions throttled or rejected the decision call
    """

    def __init__(
        self,
        message: str,
        result: Optional["AuthorizationResult"] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details=details)
        self.result = result
