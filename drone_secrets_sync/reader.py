"""Read desired secrets from a flat JSON object of name -> value."""
import sys
import logging
from pathlib import Path
from typing import Union

import orjson
from pydantic import ValidationError

from .conf import STDIN_SOURCE
from .exceptions import ConfigurationError
from .sync.models import DesiredSecret, HashConfig

logger = logging.getLogger("drone_secrets_sync.reader")


def parse_secrets(
    data: Union[bytes, str], hash_config: HashConfig
) -> list[DesiredSecret]:
    """Parse desired secrets from JSON.

    Secrets keep the order in which they appear in the document.

    Args:
        data: JSON text, e.g. ``{"API_KEY": "abc"}``.
        hash_config: Hash parameters given to every secret.

    Returns:
        List of DesiredSecret.

    Raises:
        ConfigurationError: If the document is not a JSON object of
            non-empty names to string values.
    """
    try:
        parsed = orjson.loads(data)
    except orjson.JSONDecodeError as err:
        raise ConfigurationError(f"Error parsing secrets JSON: {err}") from err
    if not isinstance(parsed, dict):
        raise ConfigurationError(
            f"Secrets must be a JSON object, got {type(parsed).__name__}"
        )

    secrets = []
    for name, value in parsed.items():
        if not isinstance(value, str):
            raise ConfigurationError(
                f"Value of secret {name!r} must be a string, "
                f"got {type(value).__name__}"
            )
        try:
            secrets.append(
                DesiredSecret(name=name, value=value, hash_config=hash_config)
            )
        except ValidationError as err:
            raise ConfigurationError(f"Invalid secret name {name!r}") from err
    logger.debug("Read %d secret(s): %s", len(secrets), [s.name for s in secrets])
    return secrets


def read_secrets(source: str, hash_config: HashConfig) -> list[DesiredSecret]:
    """Read desired secrets from a file, or stdin when ``source`` is ``-``.

    Raises:
        ConfigurationError: If the source cannot be read or parsed.
    """
    try:
        if source == STDIN_SOURCE:
            data = sys.stdin.buffer.read()
        else:
            data = Path(source).read_bytes()
    except OSError as err:
        raise ConfigurationError(f"Error reading secrets from {source}: {err}") from err
    return parse_secrets(data, hash_config)
