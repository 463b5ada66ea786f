"""
SecretManager — Converge a write-only secret store to a desired state.

Provides the public API of the sync system:
- ``list_secrets()`` — names of every entry in the store
- ``list_synced_secrets()`` — secrets that carry at least one marker
- ``sync_secret(secret, dry_run)`` — converge a single secret
- ``sync_secrets(secrets, dry_run)`` — converge a batch against one listing

Each secret ``NAME`` is paired with a marker entry ``NAME___<digest>`` (see
``crypto``). When the marker for the desired value exists, the secret is in
sync and nothing is written. Otherwise the value is written, every old marker
is deleted and the new marker is created.

The store is listed afresh on every call and nothing is remembered between
runs, so rerunning after a failure is safe and only repeats the writes still
needed. There is no locking: concurrent runs against the same store may act on
stale listings.

Security Note:
    Never log secret values. Only log names and operations.
"""
import logging
from collections.abc import Sequence
from typing import Optional

from ..conf import MARKER_PLACEHOLDER
from ..exceptions import SyncError
from .index import PrefixIndex
from .models import DesiredSecret, MaskedSecret, SecretName
from .stores import SecretStore

logger = logging.getLogger("drone_secrets_sync.sync")


class SecretManager:
    """Synchronises desired secrets into a ``SecretStore``.

    All store calls are awaited one after the other; no call is retried.
    """

    def __init__(self, store: SecretStore):
        self.store = store

    def __repr__(self) -> str:
        return f"<SecretManager store={self.store!r}>"

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    async def list_secrets(self) -> list[MaskedSecret]:
        """List every entry in the store, markers included.

        Returns:
            One ``MaskedSecret`` per store entry.
        """
        names = await self.store.list()
        return [MaskedSecret(name=name) for name in names]

    async def list_synced_secrets(self) -> list[MaskedSecret]:
        """List the secrets that have at least one marker entry.

        Marker entries themselves are not reported. A secret listed here was
        synchronised at some point; its marker may still be for an old value.

        Returns:
            The synchronised secrets, in name order.
        """
        index = await self._build_index()
        considered: set[str] = set()
        synced = []
        for name in index:
            if name in considered:
                continue
            considered.add(name)
            secret = MaskedSecret(name=name)
            markers = index.find_by_prefix(secret.marker_prefix)
            if markers:
                synced.append(secret)
                considered.update(markers)
        return synced

    async def _build_index(self) -> PrefixIndex:
        names = await self.store.list()
        logger.debug("Indexing %d existing secret(s)", len(names))
        return PrefixIndex.build(names)

    # ------------------------------------------------------------------
    # Synchronisation
    # ------------------------------------------------------------------

    async def sync_secret(
        self, secret: DesiredSecret, dry_run: bool = False
    ) -> bool:
        """Synchronise a single secret.

        Args:
            secret: Desired name and value.
            dry_run: Report whether a change is needed without making it.

        Returns:
            True if the secret was (or, on a dry run, would be) updated.

        Raises:
            TransportError: If a store call fails.
        """
        index = await self._build_index()
        return await self._sync_secret(secret, index, dry_run)

    async def sync_secrets(
        self, secrets: Sequence[DesiredSecret], dry_run: bool = False
    ) -> list[SecretName]:
        """Synchronise secrets in order against a single store listing.

        Stops at the first failure without undoing the changes already made.

        Args:
            secrets: Desired secrets, processed in the given order.
            dry_run: Report which secrets need a change without making any.

        Returns:
            Names of the secrets that were (or would be) updated.

        Raises:
            SyncError: On the first failing secret. ``updated`` holds the
                names changed so far, including the failing secret when some
                of its writes were applied (``partial``); the cause is the
                store error.
        """
        if not secrets:
            return []

        index = await self._build_index()
        updated: list[SecretName] = []

        for secret in secrets:
            applied: list[tuple] = []
            try:
                changed = await self._sync_secret(secret, index, dry_run, applied)
            except Exception as err:
                logger.error(
                    "Failed to sync secret %s after %d write(s): %s",
                    secret.name, len(applied), err,
                )
                # The store already holds some of this secret's writes
                if applied:
                    updated.append(secret.name)
                raise SyncError(
                    updated, secret.name, err, partial=bool(applied)
                ) from err
            if changed:
                updated.append(secret.name)

        logger.info(
            "Synced %d secret(s), %d updated%s",
            len(secrets), len(updated), " (dry run)" if dry_run else "",
        )
        return updated

    async def _sync_secret(
        self,
        secret: DesiredSecret,
        index: PrefixIndex,
        dry_run: bool,
        applied: Optional[list] = None,
    ) -> bool:
        """Converge one secret against an existing listing.

        Order of writes: value, stale marker deletion, new marker. Any store
        error propagates unchanged and the remaining writes are skipped.
        Each completed write is appended to ``applied`` when given.
        """
        if applied is None:
            applied = []
        marker = secret.marker_name
        if index.exists(marker):
            logger.debug("Secret is up to date: %s", secret.name)
            return False

        if dry_run:
            logger.info("Secret requires update (dry run): %s", secret.name)
            return True

        # The plain entry alone says nothing about its value
        if index.exists(secret.name):
            logger.info("Updating secret: %s", secret.name)
            await self.store.update(secret.name, secret.value)
            applied.append(("update", secret.name))
        else:
            logger.info("Adding secret: %s", secret.name)
            await self.store.create(secret.name, secret.value)
            applied.append(("create", secret.name))

        # Markers may be left over even when the plain entry is missing
        for stale in sorted(index.find_by_prefix(secret.marker_prefix)):
            logger.info("Deleting old hash secret: %s", stale)
            await self.store.delete(stale)
            applied.append(("delete", stale))

        logger.info("Adding secret hash: %s", marker)
        await self.store.create(marker, MARKER_PLACEHOLDER)
        applied.append(("create", marker))
        return True
