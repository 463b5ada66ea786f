"""Secret synchronisation for write-only stores.

Security Note (Threat Model):
    Marker names reveal an Argon2id hash of each secret value to anyone who
    can list the store's secrets. Values with little entropy remain
    guessable given enough compute; raise the hash parameters to slow that
    down. This is an accepted limitation of detecting drift without
    reading values back.
"""

from .index import PrefixIndex
from .crypto import derive_marker_name, marker_prefix
from .models import DesiredSecret, HashConfig, MaskedSecret, SecretName
from .stores import SecretStore, RepositorySecretStore, OrganisationSecretStore
from .manager import SecretManager

__all__ = [
    "PrefixIndex",
    "derive_marker_name",
    "marker_prefix",
    "DesiredSecret",
    "HashConfig",
    "MaskedSecret",
    "SecretName",
    "SecretStore",
    "RepositorySecretStore",
    "OrganisationSecretStore",
    "SecretManager",
]
