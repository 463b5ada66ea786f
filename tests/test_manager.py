"""
Tests for SecretManager.

Tests cover:
- Listing all and synced secrets
- Single secret synchronisation (new, stale, up to date, dry run)
- Batch synchronisation (empty, idempotent, fail-fast)
- Store error propagation
"""
import pytest

from drone_secrets_sync.conf import MARKER_PLACEHOLDER
from drone_secrets_sync.exceptions import SyncError, TransportError
from drone_secrets_sync.sync.manager import SecretManager
from drone_secrets_sync.sync.models import DesiredSecret, MaskedSecret


@pytest.fixture
def secret1(make_secret):
    return make_secret("example1", "example-value1")


@pytest.fixture
def secret2(make_secret):
    return make_secret("example2", "example-value2")


@pytest.fixture
def secret3(make_secret):
    return make_secret("example3", "example-value3")


# --- Listing ---

class TestListSecrets:
    """Tests for list_secrets."""

    @pytest.mark.asyncio
    async def test_existing_secrets(self, store_factory):
        """Test every entry is returned as a MaskedSecret."""
        store = store_factory(["example1", "example2"])
        secrets = await SecretManager(store).list_secrets()
        assert secrets == [MaskedSecret(name="example1"), MaskedSecret(name="example2")]

    @pytest.mark.asyncio
    async def test_no_secrets(self, store_factory):
        store = store_factory()
        assert await SecretManager(store).list_secrets() == []

    @pytest.mark.asyncio
    async def test_error(self, store_factory, transport_error):
        """Test a listing failure propagates."""
        store = store_factory(fail_on={("list", None): transport_error})
        with pytest.raises(TransportError):
            await SecretManager(store).list_secrets()


class TestListSyncedSecrets:
    """Tests for list_synced_secrets."""

    @pytest.mark.asyncio
    async def test_partially_synced(self, store_factory, secret1, secret2, secret3):
        """Test only secrets with a marker are reported, markers excluded."""
        store = store_factory([
            secret1.name,
            secret1.marker_name,
            secret2.name,
            secret3.marker_name,
            secret3.name,
        ])
        synced = await SecretManager(store).list_synced_secrets()
        assert synced == [
            MaskedSecret(name=secret1.name),
            MaskedSecret(name=secret3.name),
        ]

    @pytest.mark.asyncio
    async def test_none_synced(self, store_factory):
        store = store_factory(["example1", "example2"])
        assert await SecretManager(store).list_synced_secrets() == []

    @pytest.mark.asyncio
    async def test_no_secrets(self, store_factory):
        assert await SecretManager(store_factory()).list_synced_secrets() == []

    @pytest.mark.asyncio
    async def test_error(self, store_factory, transport_error):
        store = store_factory(fail_on={("list", None): transport_error})
        with pytest.raises(TransportError):
            await SecretManager(store).list_synced_secrets()


# --- Single secret ---

class TestSyncSecret:
    """Tests for sync_secret."""

    @pytest.mark.asyncio
    async def test_new_secret(self, store_factory, make_secret):
        """Test a secret missing from an empty store is created with its marker."""
        secret = make_secret("API_KEY", "abc")
        store = store_factory()

        updated = await SecretManager(store).sync_secret(secret)

        assert updated is True
        assert store.mutations() == [
            ("create", "API_KEY", "abc"),
            ("create", secret.marker_name, MARKER_PLACEHOLDER),
        ]
        assert store.calls_to("update") == []
        assert store.calls_to("delete") == []

    @pytest.mark.asyncio
    async def test_stale_value_with_leftover_markers(self, store_factory, make_secret):
        """Test a stale secret is updated and every old marker removed."""
        secret = make_secret("API_KEY", "abc")
        store = store_factory(["API_KEY", "API_KEY___old1", "API_KEY___old2"])

        updated = await SecretManager(store).sync_secret(secret)

        assert updated is True
        assert store.mutations() == [
            ("update", "API_KEY", "abc"),
            ("delete", "API_KEY___old1"),
            ("delete", "API_KEY___old2"),
            ("create", secret.marker_name, MARKER_PLACEHOLDER),
        ]
        assert set(store.entries) == {"API_KEY", secret.marker_name}

    @pytest.mark.asyncio
    async def test_plain_name_without_marker(self, store_factory, secret1):
        """Test a plain entry alone is treated as unsynchronised."""
        store = store_factory([secret1.name])

        assert await SecretManager(store).sync_secret(secret1) is True
        assert store.mutations() == [
            ("update", secret1.name, secret1.value),
            ("create", secret1.marker_name, MARKER_PLACEHOLDER),
        ]

    @pytest.mark.asyncio
    async def test_leftover_markers_for_new_secret(self, store_factory, secret1):
        """Test old markers are cleaned up even when the plain entry is missing."""
        store = store_factory([secret1.marker_prefix + "old"])

        assert await SecretManager(store).sync_secret(secret1) is True
        assert store.mutations() == [
            ("create", secret1.name, secret1.value),
            ("delete", secret1.marker_prefix + "old"),
            ("create", secret1.marker_name, MARKER_PLACEHOLDER),
        ]

    @pytest.mark.asyncio
    async def test_up_to_date(self, store_factory, secret1):
        """Test nothing is written when the matching marker exists."""
        store = store_factory([
            secret1.name,
            secret1.marker_name,
            secret1.marker_name + "extra",
        ])

        assert await SecretManager(store).sync_secret(secret1) is False
        assert store.mutations() == []
        assert len(store.calls_to("list")) == 1

    @pytest.mark.asyncio
    async def test_list_error(self, store_factory, secret1, transport_error):
        store = store_factory(fail_on={("list", None): transport_error})
        with pytest.raises(TransportError):
            await SecretManager(store).sync_secret(secret1)

    @pytest.mark.asyncio
    async def test_create_error_stops_sequence(self, store_factory, secret1, transport_error):
        """Test a failing create propagates unchanged and skips the marker."""
        store = store_factory(fail_on={("create", secret1.name): transport_error})

        with pytest.raises(TransportError) as exc_info:
            await SecretManager(store).sync_secret(secret1)

        assert exc_info.value is transport_error
        assert store.mutations() == [("create", secret1.name, secret1.value)]

    @pytest.mark.asyncio
    async def test_update_error(self, store_factory, secret1, transport_error):
        store = store_factory(
            [secret1.name], fail_on={("update", secret1.name): transport_error},
        )
        with pytest.raises(TransportError):
            await SecretManager(store).sync_secret(secret1)
        assert store.mutations() == [("update", secret1.name, secret1.value)]

    @pytest.mark.asyncio
    async def test_delete_error_skips_new_marker(self, store_factory, secret1, transport_error):
        """Test the new marker is not created when a stale marker cannot be removed."""
        stale = secret1.marker_prefix + "old"
        store = store_factory(
            [secret1.name, stale], fail_on={("delete", stale): transport_error},
        )
        with pytest.raises(TransportError):
            await SecretManager(store).sync_secret(secret1)
        assert secret1.marker_name not in store.entries

    @pytest.mark.asyncio
    async def test_rerun_after_failure_converges(self, store_factory, secret1, transport_error):
        """Test rerunning after a partial failure completes the sync."""
        store = store_factory(fail_on={("create", secret1.marker_name): transport_error})
        manager = SecretManager(store)
        with pytest.raises(TransportError):
            await manager.sync_secret(secret1)

        store.fail_on = {}
        assert await manager.sync_secret(secret1) is True
        assert set(store.entries) == {secret1.name, secret1.marker_name}
        assert await manager.sync_secret(secret1) is False

    @pytest.mark.asyncio
    async def test_hash_config_change_resyncs(self, store_factory, make_secret, hash_config):
        """Test new hash parameters make an unchanged value stale once."""
        secret = make_secret("API_KEY", "abc")
        store = store_factory([secret.name, secret.marker_name])
        rehashed = DesiredSecret(
            name="API_KEY",
            value="abc",
            hash_config=hash_config.model_copy(update={"iterations": 2}),
        )
        manager = SecretManager(store)

        assert await manager.sync_secret(rehashed) is True
        assert ("delete", secret.marker_name) in store.mutations()
        assert await manager.sync_secret(rehashed) is False

    @pytest.mark.asyncio
    async def test_copied_secret_with_new_value(self, store_factory, make_secret):
        """Test a copy with a changed value is stale against the old marker."""
        secret = make_secret("API_KEY", "abc")
        store = store_factory([secret.name, secret.marker_name])
        changed = secret.model_copy(update={"value": "new"})

        assert await SecretManager(store).sync_secret(changed) is True
        assert store.entries[secret.name] == "new"
        assert secret.marker_name not in store.entries
        assert changed.marker_name in store.entries

    @pytest.mark.asyncio
    async def test_delimiter_collision(self, store_factory, make_secret):
        """Test a secret named like a marker of another secret is removed.

        'A___B' shares the marker prefix of 'A', so syncing 'A' deletes it.
        """
        store = store_factory(["A", "A___B"])

        assert await SecretManager(store).sync_secret(make_secret("A", "abc")) is True
        assert ("delete", "A___B") in store.mutations()


class TestDryRun:
    """Tests for sync_secret with dry_run=True."""

    @pytest.mark.asyncio
    async def test_no_update_required(self, store_factory, secret1):
        store = store_factory([secret1.name, secret1.marker_name])
        assert await SecretManager(store).sync_secret(secret1, dry_run=True) is False
        assert store.mutations() == []

    @pytest.mark.asyncio
    async def test_create_required(self, store_factory, secret1):
        store = store_factory()
        assert await SecretManager(store).sync_secret(secret1, dry_run=True) is True
        assert store.mutations() == []

    @pytest.mark.asyncio
    async def test_update_required(self, store_factory, secret1):
        store = store_factory([secret1.name, secret1.marker_prefix + "old"])
        assert await SecretManager(store).sync_secret(secret1, dry_run=True) is True
        assert store.mutations() == []


# --- Batch ---

class TestSyncSecrets:
    """Tests for sync_secrets."""

    @pytest.mark.asyncio
    async def test_no_secrets(self, store_factory):
        """Test an empty batch does not touch the store, not even to list."""
        store = store_factory(["example1"])
        assert await SecretManager(store).sync_secrets([]) == []
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_updated_secrets(self, store_factory, secret1, secret2, secret3):
        """Test only out of date secrets are reported, with one listing."""
        store = store_factory([
            secret1.name,
            secret1.marker_name,
            secret2.name,
            secret3.name,
            secret3.marker_prefix + "old",
        ])

        updated = await SecretManager(store).sync_secrets([secret1, secret2, secret3])

        assert updated == [secret2.name, secret3.name]
        assert len(store.calls_to("list")) == 1
        assert store.calls_to("update") == [
            ("update", secret2.name, secret2.value),
            ("update", secret3.name, secret3.value),
        ]
        assert store.calls_to("delete") == [("delete", secret3.marker_prefix + "old")]

    @pytest.mark.asyncio
    async def test_idempotent(self, store_factory, secret1, secret2):
        """Test a second run with the same secrets changes nothing."""
        store = store_factory()
        manager = SecretManager(store)

        assert await manager.sync_secrets([secret1, secret2]) == [secret1.name, secret2.name]
        mutations = len(store.mutations())
        assert await manager.sync_secrets([secret1, secret2]) == []
        assert len(store.mutations()) == mutations

    @pytest.mark.asyncio
    async def test_dry_run(self, store_factory, secret1, secret2):
        store = store_factory([secret1.name, secret1.marker_name])
        updated = await SecretManager(store).sync_secrets([secret1, secret2], dry_run=True)
        assert updated == [secret2.name]
        assert store.mutations() == []

    @pytest.mark.asyncio
    async def test_fail_fast(self, store_factory, secret1, secret2, secret3, transport_error):
        """Test the batch stops at the first failing secret."""
        store = store_factory(fail_on={("create", secret2.name): transport_error})

        with pytest.raises(SyncError) as exc_info:
            await SecretManager(store).sync_secrets([secret1, secret2, secret3])

        err = exc_info.value
        assert err.updated == [secret1.name]
        assert err.secret_name == secret2.name
        assert err.error is transport_error
        assert err.__cause__ is transport_error
        assert not any(call[1].startswith(secret3.name) for call in store.mutations())
        assert secret1.marker_name in store.entries
        assert err.partial is False

    @pytest.mark.asyncio
    async def test_failure_after_value_written(
        self, store_factory, secret1, secret2, secret3, transport_error,
    ):
        """Test a secret whose value reached the store is reported as updated."""
        store = store_factory(fail_on={("create", secret2.marker_name): transport_error})

        with pytest.raises(SyncError) as exc_info:
            await SecretManager(store).sync_secrets([secret1, secret2, secret3])

        err = exc_info.value
        assert store.entries[secret2.name] == "example-value2"
        assert err.updated == [secret1.name, secret2.name]
        assert err.secret_name == secret2.name
        assert err.partial is True
        assert "partially applied" in str(err)
        assert secret3.name not in store.entries

    @pytest.mark.asyncio
    async def test_failure_deleting_stale_marker(
        self, store_factory, make_secret, transport_error,
    ):
        """Test an update followed by a failed marker deletion is partial."""
        secret = make_secret("API_KEY", "abc")
        stale = make_secret("API_KEY", "old").marker_name
        store = store_factory(
            [secret.name, stale], fail_on={("delete", stale): transport_error},
        )

        with pytest.raises(SyncError) as exc_info:
            await SecretManager(store).sync_secrets([secret])

        assert exc_info.value.updated == [secret.name]
        assert exc_info.value.partial is True
        assert store.entries[secret.name] == "abc"

    @pytest.mark.asyncio
    async def test_list_error(self, store_factory, secret1, transport_error):
        """Test a listing failure is raised before any secret is processed."""
        store = store_factory(fail_on={("list", None): transport_error})
        with pytest.raises(TransportError):
            await SecretManager(store).sync_secrets([secret1])
        assert store.mutations() == []
