"""
Marker Crypto — Content-addressed marker names for write-only secret stores.

A Drone secret can be written but never read back, so the value held by the
store cannot be compared with the desired one. Instead every synchronised
secret gets a companion "marker" entry whose *name* encodes a hash of the
value:

    <name>___<hex(Argon2id(value, salt=SHA256(name)))>

The salt is derived from the name alone, so the marker can be recomputed from
the name/value pair without storing anything else.

Security Note:
    Marker names are visible to anyone able to list secrets. Argon2id is
    memory-hard and iteration-tunable to make brute-forcing short values from
    a leaked marker expensive. Never log secret values.
"""
import time
import logging

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.argon2 import Argon2id

from ..conf import MARKER_DELIMITER

logger = logging.getLogger("drone_secrets_sync.sync")


def marker_prefix(name: str) -> str:
    """Return the prefix shared by every marker of the secret ``name``."""
    return f"{name}{MARKER_DELIMITER}"


def derive_salt(name: str) -> bytes:
    """Derive the 32-byte Argon2 salt for a secret from its name (SHA-256)."""
    digest = hashes.Hash(hashes.SHA256())
    digest.update(name.encode("utf-8"))
    return digest.finalize()


def derive_marker_digest(
    name: str,
    value: str,
    iterations: int,
    memory_cost: int,
    parallelism: int,
    output_length: int,
) -> str:
    """Hash a secret value with Argon2id.

    Args:
        name: Secret name, used to derive the salt.
        value: Secret value to hash.
        iterations: Argon2 time cost.
        memory_cost: Argon2 memory cost in KiB.
        parallelism: Argon2 lanes.
        output_length: Digest length in bytes.

    Returns:
        Lower-case hex digest (``2 * output_length`` characters).
    """
    kdf = Argon2id(
        salt=derive_salt(name),
        length=output_length,
        iterations=iterations,
        lanes=parallelism,
        memory_cost=memory_cost,
    )
    start = time.perf_counter()
    key = kdf.derive(value.encode("utf-8"))
    logger.debug(
        "Marker hash for %s created in %.3fs",
        name, time.perf_counter() - start,
    )
    return key.hex()


def derive_marker_name(name: str, value: str, hash_config) -> str:
    """Return the full marker name for a name/value pair.

    Args:
        name: Secret name.
        value: Secret value.
        hash_config: A ``HashConfig`` holding the Argon2id parameters.

    Returns:
        ``marker_prefix(name)`` followed by the hex digest.
    """
    digest = derive_marker_digest(
        name,
        value,
        iterations=hash_config.iterations,
        memory_cost=hash_config.memory_cost,
        parallelism=hash_config.parallelism,
        output_length=hash_config.output_length,
    )
    return marker_prefix(name) + digest
