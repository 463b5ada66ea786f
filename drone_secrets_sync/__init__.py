"""Drone Secrets Sync.

Keeps Drone CI secrets synchronised with a desired set of name/value pairs,
detecting changed values without ever reading a secret back.
"""
from .version import __version__
from .exceptions import (
    DroneSecretsSyncError,
    ConfigurationError,
    TransportError,
    SyncError,
)
from .sync import (
    DesiredSecret,
    HashConfig,
    MaskedSecret,
    PrefixIndex,
    SecretManager,
    SecretStore,
    RepositorySecretStore,
    OrganisationSecretStore,
)

__all__ = [
    "__version__",
    "DroneSecretsSyncError",
    "ConfigurationError",
    "TransportError",
    "SyncError",
    "DesiredSecret",
    "HashConfig",
    "MaskedSecret",
    "PrefixIndex",
    "SecretManager",
    "SecretStore",
    "RepositorySecretStore",
    "OrganisationSecretStore",
]
