"""
Secret stores — where the secrets are written.

A store only knows how to list entry names and create, update or delete
entries by name; it never returns a stored value. The sync engine works
against the ``SecretStore`` interface and does not care about the scope.

Repository: secrets visible to the builds of a single Drone repository.
Organisation: secrets shared by every repository of a namespace.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..client import DroneClient

logger = logging.getLogger("drone_secrets_sync.stores")


class SecretStore(ABC):
    """Abstract write-only secret store."""

    @abstractmethod
    async def list(self) -> list[str]:
        """Return the names of all entries in the store."""

    @abstractmethod
    async def create(self, name: str, value: str) -> None:
        """Create the entry ``name`` holding ``value``."""

    @abstractmethod
    async def update(self, name: str, value: str) -> None:
        """Overwrite the value of the existing entry ``name``."""

    @abstractmethod
    async def delete(self, name: str) -> None:
        """Remove the entry ``name``."""


class RepositorySecretStore(SecretStore):
    """Secrets of one Drone repository, e.g. ``octocat/hello-world``."""

    def __init__(self, client: DroneClient, namespace: str, name: str):
        self.client = client
        self.namespace = namespace
        self.name = name

    def __repr__(self) -> str:
        return f"<RepositorySecretStore {self.namespace}/{self.name}>"

    async def list(self) -> list[str]:
        logger.debug(
            "Getting list of secrets for repository: %s/%s",
            self.namespace, self.name,
        )
        secrets = await self.client.repo_secret_list(self.namespace, self.name)
        return [secret["name"] for secret in secrets]

    async def create(self, name: str, value: str) -> None:
        logger.debug(
            "Creating secret in repository: %s/%s:%s",
            self.namespace, self.name, name,
        )
        await self.client.repo_secret_create(
            self.namespace, self.name, {"name": name, "data": value},
        )

    async def update(self, name: str, value: str) -> None:
        logger.debug(
            "Updating secret in repository: %s/%s:%s",
            self.namespace, self.name, name,
        )
        await self.client.repo_secret_update(
            self.namespace, self.name, {"name": name, "data": value},
        )

    async def delete(self, name: str) -> None:
        logger.debug(
            "Deleting secret in repository: %s/%s:%s",
            self.namespace, self.name, name,
        )
        await self.client.repo_secret_delete(self.namespace, self.name, name)


class OrganisationSecretStore(SecretStore):
    """Secrets shared across a Drone namespace (organisation), e.g. ``octocat``."""

    def __init__(self, client: DroneClient, namespace: str):
        self.client = client
        self.namespace = namespace

    def __repr__(self) -> str:
        return f"<OrganisationSecretStore {self.namespace}>"

    async def list(self) -> list[str]:
        logger.debug(
            "Getting list of secrets for organisation: %s", self.namespace,
        )
        secrets = await self.client.org_secret_list(self.namespace)
        return [secret["name"] for secret in secrets]

    async def create(self, name: str, value: str) -> None:
        logger.debug(
            "Creating secret in organisation: %s:%s", self.namespace, name,
        )
        await self.client.org_secret_create(
            self.namespace,
            {"namespace": self.namespace, "name": name, "data": value},
        )

    async def update(self, name: str, value: str) -> None:
        logger.debug(
            "Updating secret in organisation: %s:%s", self.namespace, name,
        )
        await self.client.org_secret_update(
            self.namespace,
            {"namespace": self.namespace, "name": name, "data": value},
        )

    async def delete(self, name: str) -> None:
        logger.debug(
            "Deleting secret in organisation: %s:%s", self.namespace, name,
        )
        await self.client.org_secret_delete(self.namespace, name)
