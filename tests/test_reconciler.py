"""Tests for the local/remote reconciliation policy."""

import asyncio

import pytest

from nutrition_targets.adapters.sqlite_local_store import SqliteLocalStore
from nutrition_targets.domain.errors import LocalStoreFailure, NotAuthenticated
from nutrition_targets.services.reconciler import Reconciler, SettingsKind
from tests.conftest import BrokenLocalStore, InMemoryRemoteStore

PREFS = {
    "show_calories_circle": True,
    "show_protein_bar": False,
    "show_fat_bar": True,
    "show_carbs_bar": False,
}
TARGETS = {"calories": 1800, "protein": 140, "fat": 60, "carbs": 170}


def test_resolve_prefers_warm_local_cache(
    local_store: SqliteLocalStore, remote_store: InMemoryRemoteStore
) -> None:
    local_store.upsert(SettingsKind.CUSTOM_NUTRITION, "user-1", TARGETS)
    remote_store.documents[(SettingsKind.CUSTOM_NUTRITION, "user-1")] = {
        "calories": 2500,
        "protein": 1,
        "fat": 1,
        "carbs": 1,
    }
    reconciler = Reconciler(local=local_store, remote=remote_store)

    document = asyncio.run(reconciler.resolve(SettingsKind.CUSTOM_NUTRITION, "user-1"))

    assert document == TARGETS
    assert remote_store.calls == []


def test_resolve_heals_local_cache_from_remote(
    local_store: SqliteLocalStore, remote_store: InMemoryRemoteStore
) -> None:
    remote_store.documents[(SettingsKind.DISPLAY_PREFERENCES, "user-1")] = PREFS
    reconciler = Reconciler(local=local_store, remote=remote_store)

    first = asyncio.run(reconciler.resolve(SettingsKind.DISPLAY_PREFERENCES, "user-1"))
    calls_after_first = list(remote_store.calls)
    second = asyncio.run(
        reconciler.resolve(SettingsKind.DISPLAY_PREFERENCES, "user-1")
    )

    assert first == PREFS
    assert second == PREFS
    assert local_store.get(SettingsKind.DISPLAY_PREFERENCES, "user-1") == PREFS
    assert remote_store.calls == calls_after_first


def test_resolve_returns_none_when_both_stores_empty(
    local_store: SqliteLocalStore, remote_store: InMemoryRemoteStore
) -> None:
    reconciler = Reconciler(local=local_store, remote=remote_store)

    assert asyncio.run(reconciler.resolve(SettingsKind.CUSTOM_NUTRITION, "u")) is None


def test_resolve_treats_remote_outage_as_absent(
    local_store: SqliteLocalStore, remote_store: InMemoryRemoteStore
) -> None:
    remote_store.unreachable = True
    reconciler = Reconciler(local=local_store, remote=remote_store)

    assert asyncio.run(reconciler.resolve(SettingsKind.CUSTOM_NUTRITION, "u")) is None


def test_resolve_falls_back_to_remote_when_local_read_fails(
    remote_store: InMemoryRemoteStore,
) -> None:
    remote_store.documents[(SettingsKind.CUSTOM_NUTRITION, "u")] = TARGETS
    reconciler = Reconciler(local=BrokenLocalStore(), remote=remote_store)

    document = asyncio.run(reconciler.resolve(SettingsKind.CUSTOM_NUTRITION, "u"))

    assert document == TARGETS


def test_save_writes_local_then_remote(
    local_store: SqliteLocalStore, remote_store: InMemoryRemoteStore
) -> None:
    reconciler = Reconciler(local=local_store, remote=remote_store)

    asyncio.run(reconciler.save(SettingsKind.CUSTOM_NUTRITION, "u", TARGETS))

    assert local_store.get(SettingsKind.CUSTOM_NUTRITION, "u") == TARGETS
    assert remote_store.documents[(SettingsKind.CUSTOM_NUTRITION, "u")] == TARGETS


def test_save_keeps_local_write_when_remote_is_down(
    local_store: SqliteLocalStore, remote_store: InMemoryRemoteStore
) -> None:
    remote_store.unreachable = True
    reconciler = Reconciler(local=local_store, remote=remote_store)

    asyncio.run(reconciler.save(SettingsKind.CUSTOM_NUTRITION, "u", TARGETS))

    assert local_store.get(SettingsKind.CUSTOM_NUTRITION, "u") == TARGETS
    assert remote_store.documents == {}


def test_save_raises_and_skips_remote_when_local_fails(
    remote_store: InMemoryRemoteStore,
) -> None:
    reconciler = Reconciler(local=BrokenLocalStore(), remote=remote_store)

    with pytest.raises(LocalStoreFailure):
        asyncio.run(reconciler.save(SettingsKind.CUSTOM_NUTRITION, "u", TARGETS))

    assert remote_store.calls == []


def test_delete_removes_from_both_stores(
    local_store: SqliteLocalStore, remote_store: InMemoryRemoteStore
) -> None:
    reconciler = Reconciler(local=local_store, remote=remote_store)
    asyncio.run(reconciler.save(SettingsKind.CUSTOM_NUTRITION, "u", TARGETS))

    asyncio.run(reconciler.delete(SettingsKind.CUSTOM_NUTRITION, "u"))

    assert local_store.get(SettingsKind.CUSTOM_NUTRITION, "u") is None
    assert (SettingsKind.CUSTOM_NUTRITION, "u") not in remote_store.documents


def test_delete_succeeds_locally_when_remote_is_down(
    local_store: SqliteLocalStore, remote_store: InMemoryRemoteStore
) -> None:
    reconciler = Reconciler(local=local_store, remote=remote_store)
    asyncio.run(reconciler.save(SettingsKind.CUSTOM_NUTRITION, "u", TARGETS))
    remote_store.unreachable = True

    asyncio.run(reconciler.delete(SettingsKind.CUSTOM_NUTRITION, "u"))

    assert local_store.get(SettingsKind.CUSTOM_NUTRITION, "u") is None


def test_save_requires_user_id(
    local_store: SqliteLocalStore, remote_store: InMemoryRemoteStore
) -> None:
    reconciler = Reconciler(local=local_store, remote=remote_store)

    with pytest.raises(NotAuthenticated):
        asyncio.run(reconciler.save(SettingsKind.CUSTOM_NUTRITION, None, TARGETS))

    count = local_store.connection.execute(
        "SELECT COUNT(*) FROM custom_nutrition;"
    ).fetchone()[0]
    assert count == 0
    assert remote_store.calls == []


def test_delete_requires_user_id(
    local_store: SqliteLocalStore, remote_store: InMemoryRemoteStore
) -> None:
    reconciler = Reconciler(local=local_store, remote=remote_store)

    with pytest.raises(NotAuthenticated):
        asyncio.run(reconciler.delete(SettingsKind.DISPLAY_PREFERENCES, ""))

    assert remote_store.calls == []
