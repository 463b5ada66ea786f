"""Exceptions raised by drone_secrets_sync."""
from typing import Optional


class DroneSecretsSyncError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(DroneSecretsSyncError, ValueError):
    """Malformed input, arguments or environment.

    Raised before any call to the secret store is made.
    """


class TransportError(DroneSecretsSyncError):
    """A call to the remote secret store failed."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        if self.status is None:
            return self.message
        return f"{self.message} (HTTP {self.status})"


class SyncError(DroneSecretsSyncError):
    """A batch synchronisation stopped at its first failing secret.

    Attributes:
        updated: Names of the secrets changed before the failure. Includes
            the failing secret when ``partial`` is set.
        secret_name: Name of the secret whose synchronisation failed.
        error: The underlying error, also available as ``__cause__``.
        partial: Some writes for the failing secret (e.g. its new value)
            reached the store before the error.
    """

    def __init__(
        self,
        updated: list[str],
        secret_name: str,
        error: Exception,
        partial: bool = False,
    ):
        super().__init__(
            f"Failed to sync secret {secret_name!r}"
            f"{' (partially applied)' if partial else ''}: {error}"
        )
        self.updated = updated
        self.secret_name = secret_name
        self.error = error
        self.partial = partial
