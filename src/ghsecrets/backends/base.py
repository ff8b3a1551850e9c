"""Abstract base class for backup store adapters."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ghsecrets.core.exceptions import BackendAuthError

# Substrings that identify credential problems regardless of the error type
# the SDK used to report them.
AUTH_ERROR_MARKERS = (
    "ExpiredToken",
    "InvalidToken",
    "NoCredentialProviders",
    "UnauthorizedException",
    "UnrecognizedClient",
    "AccessDenied",
    "no valid credential",
    "Unable to locate credentials",
    "failed to retrieve credentials",
    "token has expired",
    "permission denied",
    "unauthenticated",
)


def looks_like_auth_error(message: str) -> bool:
    """Return True if an error message points at a credential problem."""
    lowered = message.lower()
    return any(marker.lower() in lowered for marker in AUTH_ERROR_MARKERS)


def sdk_error_message(error: BaseException) -> str:
    """
    The message an SDK raised with, without request context.

    Some SDKs append the URL or resource name in ``__str__``; those must not
    be searched for auth markers.
    """
    if error.args and isinstance(error.args[0], str):
        return error.args[0]
    return ""


class KeyedBlobStoreBase(ABC):
    """
    Abstract base class for backup store implementations.

    A backup store keeps exactly one opaque string per name. Adapters
    translate their SDK's errors into ``SecretNotFoundError``,
    ``BackendAuthError`` or ``BackendError``.
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Get the backend name."""
        pass

    @abstractmethod
    async def get(self, name: str) -> str:
        """
        Retrieve the value stored under a name.

        Args:
            name: Slot name.

        Returns:
            The stored value ("" for an empty slot).

        Raises:
            SecretNotFoundError: If the slot does not exist.
            BackendAuthError: If credentials are missing, expired or denied.
            BackendError: For any other failure.
        """
        pass

    @abstractmethod
    async def put(self, name: str, value: str) -> None:
        """
        Replace the value stored under a name.

        Args:
            name: Slot name.
            value: New value; replaces the previous one entirely.
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the backend is reachable with the current credentials.

        Returns:
            True if healthy.
        """
        pass

    def _auth_error(self, name: str, error: Exception, hint: str = "") -> BackendAuthError:
        message = f"{self.backend_name} authentication error: {error}"
        if hint:
            message = f"{message}. {hint}"
        return BackendAuthError(message, self.backend_name, name)
