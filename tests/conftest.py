"""Shared fixtures: fast hash parameters and an in-memory recording store."""
from typing import Optional

import pytest

from drone_secrets_sync.exceptions import TransportError
from drone_secrets_sync.sync.models import DesiredSecret, HashConfig
from drone_secrets_sync.sync.stores import SecretStore


class RecordingStore(SecretStore):
    """In-memory SecretStore recording every call made to it.

    ``fail_on`` maps an ``(operation, name)`` pair (or ``("list", None)``) to
    the error raised when that call is made.
    """

    def __init__(self, names=(), fail_on: Optional[dict] = None):
        self.entries: dict[str, str] = {name: "" for name in names}
        self.calls: list[tuple] = []
        self.fail_on = fail_on or {}

    def _record(self, *call) -> None:
        self.calls.append(call)
        key = (call[0], call[1] if len(call) > 1 else None)
        if key in self.fail_on:
            raise self.fail_on[key]

    def mutations(self) -> list[tuple]:
        return [call for call in self.calls if call[0] != "list"]

    def calls_to(self, operation: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == operation]

    async def list(self):
        self._record("list")
        return list(self.entries)

    async def create(self, name, value):
        self._record("create", name, value)
        self.entries[name] = value

    async def update(self, name, value):
        self._record("update", name, value)
        self.entries[name] = value

    async def delete(self, name):
        self._record("delete", name)
        del self.entries[name]


@pytest.fixture
def hash_config():
    """Cheapest Argon2id parameters, to keep tests fast."""
    return HashConfig(iterations=1, memory_cost=8, parallelism=1, output_length=4)


@pytest.fixture
def make_secret(hash_config):
    """Factory building DesiredSecret instances with fast hash parameters."""
    def _make(name: str, value: str) -> DesiredSecret:
        return DesiredSecret(name=name, value=value, hash_config=hash_config)
    return _make


@pytest.fixture
def store_factory():
    def _make(names=(), fail_on=None) -> RecordingStore:
        return RecordingStore(names, fail_on=fail_on)
    return _make


@pytest.fixture
def transport_error():
    return TransportError("example", status=500)
