"""
Sync Configuration — Validated settings for a single synchronisation run.

Built by the command line from its arguments; exactly one target scope
(repository or organisation) must be given.
"""
import logging
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .conf import STDIN_SOURCE
from .sync.models import HashConfig
from .sync.stores import (
    SecretStore,
    RepositorySecretStore,
    OrganisationSecretStore,
)


class RepositoryConfiguration(BaseModel):
    """Target a single repository, given as ``<namespace>/<name>``."""

    repository: str

    @field_validator("repository")
    @classmethod
    def validate_repository(cls, v: str) -> str:
        """Repository must be in the format <namespace>/<name>."""
        parts = v.split("/")
        if len(parts) != 2 or not all(parts):
            raise ValueError(
                f"Repository must be in the format <namespace>/<name>, got {v!r}"
            )
        return v

    @property
    def namespace(self) -> str:
        return self.repository.split("/")[0]

    @property
    def name(self) -> str:
        return self.repository.split("/")[1]


class OrganisationConfiguration(BaseModel):
    """Target every repository of a namespace, e.g. ``octocat``."""

    namespace: str = Field(min_length=1)

    @field_validator("namespace")
    @classmethod
    def validate_namespace(cls, v: str) -> str:
        if "/" in v:
            raise ValueError(f"Organisation namespace cannot contain '/': {v!r}")
        return v


class Configuration(BaseModel):
    """Validated configuration of a run."""

    secrets_file: str = Field(default=STDIN_SOURCE)
    log_level: int = Field(default=logging.WARNING)
    hash_config: HashConfig = Field(default_factory=HashConfig)
    repository: Optional[RepositoryConfiguration] = None
    organisation: Optional[OrganisationConfiguration] = None
    dry_run: bool = False

    @model_validator(mode="after")
    def validate_single_target(self) -> "Configuration":
        """Ensure exactly one of repository/organisation is configured."""
        if (self.repository is None) == (self.organisation is None):
            raise ValueError(
                "Exactly one of repository or organisation must be configured"
            )
        return self

    def create_store(self, client) -> SecretStore:
        """Create the secret store adapter matching the configured target.

        Args:
            client: A ``DroneClient`` used by the adapter.

        Returns:
            Repository or organisation scoped ``SecretStore``.
        """
        if self.repository is not None:
            return RepositorySecretStore(
                client, self.repository.namespace, self.repository.name,
            )
        return OrganisationSecretStore(client, self.organisation.namespace)
