"""Shared test fixtures."""

import asyncio
from collections.abc import Iterator
from dataclasses import dataclass, field

import pytest

from nutrition_targets.adapters.sqlite_local_store import SqliteLocalStore
from nutrition_targets.config import Settings
from nutrition_targets.domain.errors import LocalStoreFailure, RemoteUnavailable
from nutrition_targets.domain.nutrition import (
    UNINITIALIZED_STATE,
    DisplayPreferences,
    NutritionState,
)
from nutrition_targets.domain.profile import ProfileAttributes
from nutrition_targets.domain.weights import WeightEntry
from nutrition_targets.services.reconciler import (
    LocalStore,
    Reconciler,
    RemoteStore,
    SettingsKind,
)
from nutrition_targets.services.resolver import NutritionResolver, ProfileProvider
from nutrition_targets.services.sessions import SessionService
from nutrition_targets.services.state import StateHolder
from nutrition_targets.services.user_settings import UserSettingsService
from nutrition_targets.services.weights import WeightRemoteStore, WeightService


@dataclass
class InMemoryRemoteStore(RemoteStore, WeightRemoteStore):
    """In-memory remote store that can simulate outages and slow reads."""

    documents: dict[tuple[SettingsKind, str], dict[str, object]] = field(
        default_factory=dict
    )
    weights: list[WeightEntry] = field(default_factory=list)
    unreachable: bool = False
    calls: list[str] = field(default_factory=list)
    entered: asyncio.Event | None = None
    gate: asyncio.Event | None = None

    async def get(self, kind: SettingsKind, user_id: str) -> dict[str, object] | None:
        self.calls.append(f"get:{kind.value}:{user_id}")
        if self.entered is not None:
            self.entered.set()
        if self.gate is not None:
            await self.gate.wait()
        self._check()
        document = self.documents.get((kind, user_id))
        return dict(document) if document is not None else None

    async def put(
        self, kind: SettingsKind, user_id: str, document: dict[str, object]
    ) -> None:
        self.calls.append(f"put:{kind.value}:{user_id}")
        self._check()
        self.documents[(kind, user_id)] = dict(document)

    async def delete(self, kind: SettingsKind, user_id: str) -> None:
        self.calls.append(f"delete:{kind.value}:{user_id}")
        self._check()
        self.documents.pop((kind, user_id), None)

    async def add_weight(self, entry: WeightEntry) -> None:
        self.calls.append(f"add_weight:{entry.user_id}")
        self._check()
        self.weights.append(entry)

    async def latest_weight(self, user_id: str) -> WeightEntry | None:
        self.calls.append(f"latest_weight:{user_id}")
        self._check()
        entries = [entry for entry in self.weights if entry.user_id == user_id]
        if not entries:
            return None
        return max(entries, key=lambda entry: entry.recorded_at)

    def _check(self) -> None:
        if self.unreachable:
            raise RemoteUnavailable("simulated outage")


@dataclass
class BrokenLocalStore(LocalStore):
    """Local store whose every operation fails."""

    def get(self, kind: SettingsKind, user_id: str) -> dict[str, object] | None:
        raise LocalStoreFailure("disk unavailable")

    def upsert(
        self, kind: SettingsKind, user_id: str, document: dict[str, object]
    ) -> None:
        raise LocalStoreFailure("disk unavailable")

    def delete(self, kind: SettingsKind, user_id: str) -> None:
        raise LocalStoreFailure("disk unavailable")


@dataclass
class StaticProfileProvider(ProfileProvider):
    """Profile provider backed by a dict."""

    profiles: dict[str, ProfileAttributes] = field(default_factory=dict)
    requested: list[str] = field(default_factory=list)

    def get_profile(self, user_id: str) -> ProfileAttributes:
        self.requested.append(user_id)
        return self.profiles.get(user_id, ProfileAttributes())


@dataclass
class FailingProfileProvider(ProfileProvider):
    """Profile provider that always raises."""

    def get_profile(self, user_id: str) -> ProfileAttributes:
        raise RuntimeError("profile database locked")


@dataclass
class Harness:
    """Wired services sharing one local and one remote store."""

    local_store: SqliteLocalStore
    remote_store: InMemoryRemoteStore
    profile_provider: StaticProfileProvider
    reconciler: Reconciler
    nutrition_state: StateHolder[NutritionState]
    preferences_state: StateHolder[DisplayPreferences]
    weight_service: WeightService
    resolver: NutritionResolver
    user_settings_service: UserSettingsService
    session_service: SessionService
    published: list[NutritionState]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        local_db_path=":memory:",
    )


@pytest.fixture
def local_store() -> Iterator[SqliteLocalStore]:
    store = SqliteLocalStore.create(":memory:")
    yield store
    store.close()


@pytest.fixture
def remote_store() -> InMemoryRemoteStore:
    return InMemoryRemoteStore()


@pytest.fixture
def profile_provider() -> StaticProfileProvider:
    return StaticProfileProvider()


@pytest.fixture
def harness(
    local_store: SqliteLocalStore,
    remote_store: InMemoryRemoteStore,
    profile_provider: StaticProfileProvider,
) -> Harness:
    reconciler = Reconciler(local=local_store, remote=remote_store)
    nutrition_state: StateHolder[NutritionState] = StateHolder(UNINITIALIZED_STATE)
    preferences_state: StateHolder[DisplayPreferences] = StateHolder(
        DisplayPreferences()
    )
    published: list[NutritionState] = []
    nutrition_state.subscribe(published.append)
    weight_service = WeightService(local=local_store, remote=remote_store)
    resolver = NutritionResolver(
        reconciler=reconciler,
        profile_provider=profile_provider,
        state=nutrition_state,
        weight_service=weight_service,
    )
    user_settings_service = UserSettingsService(
        reconciler=reconciler,
        resolver=resolver,
        preferences_state=preferences_state,
    )
    session_service = SessionService(
        resolver=resolver,
        user_settings_service=user_settings_service,
    )
    return Harness(
        local_store=local_store,
        remote_store=remote_store,
        profile_provider=profile_provider,
        reconciler=reconciler,
        nutrition_state=nutrition_state,
        preferences_state=preferences_state,
        weight_service=weight_service,
        resolver=resolver,
        user_settings_service=user_settings_service,
        session_service=session_service,
        published=published,
    )
