"""Secret models: masked (as listed by Drone) and desired (name + value)."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator

from ..conf import (
    ARGON2_ITERATIONS,
    ARGON2_MEMORY_COST,
    ARGON2_PARALLELISM,
    ARGON2_LENGTH,
)
from .crypto import marker_prefix, derive_marker_digest

SecretName = str


class HashConfig(BaseModel):
    """Argon2id parameters used to derive marker names.

    Changing any of them changes every marker, so all secrets are treated as
    stale and re-synchronised once.
    """

    iterations: int = Field(default=ARGON2_ITERATIONS, ge=1)
    memory_cost: int = Field(default=ARGON2_MEMORY_COST, ge=8)
    parallelism: int = Field(default=ARGON2_PARALLELISM, ge=1, le=2**24 - 1)
    output_length: int = Field(default=ARGON2_LENGTH, ge=4)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_memory_per_lane(self) -> "HashConfig":
        """Argon2 requires at least 8 KiB of memory per lane."""
        if self.memory_cost < 8 * self.parallelism:
            raise ValueError(
                f"memory_cost ({self.memory_cost} KiB) must be at least "
                f"8 * parallelism ({8 * self.parallelism} KiB)"
            )
        return self


class MaskedSecret(BaseModel):
    """A secret whose value is unknown, e.g. as returned by a listing."""

    name: SecretName = Field(min_length=1)

    model_config = ConfigDict(frozen=True)

    @property
    def marker_prefix(self) -> str:
        """Prefix of the marker names of this secret.

        The full marker name is only known when the value is known.
        """
        return marker_prefix(self.name)


class DesiredSecret(MaskedSecret):
    """A secret whose value is known: the state the store should reach."""

    value: str = Field(repr=False)
    hash_config: HashConfig = Field(default_factory=HashConfig)

    # (name, value, hash_config) the cached digest was derived from, and the digest
    _marker_cache: Optional[tuple] = PrivateAttr(default=None)

    @property
    def marker_name(self) -> str:
        """Name of the marker entry matching the current value.

        The Argon2id digest is computed on first access and cached. The cache
        is only reused while name, value and hash parameters are unchanged,
        so copies made with ``model_copy(update=...)`` derive their own.
        """
        key = (self.name, self.value, self.hash_config)
        if self._marker_cache is None or self._marker_cache[0] != key:
            digest = derive_marker_digest(
                self.name,
                self.value,
                iterations=self.hash_config.iterations,
                memory_cost=self.hash_config.memory_cost,
                parallelism=self.hash_config.parallelism,
                output_length=self.hash_config.output_length,
            )
            self._marker_cache = (key, digest)
        return self.marker_prefix + self._marker_cache[1]
