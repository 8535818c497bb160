"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import ClientOptions, create_client

from nutrition_targets.adapters.sqlite_local_store import SqliteLocalStore
from nutrition_targets.adapters.sqlite_profile_provider import SqliteProfileProvider
from nutrition_targets.adapters.supabase_remote_store import SupabaseRemoteStore
from nutrition_targets.app_logging import configure_logging
from nutrition_targets.config import Settings
from nutrition_targets.domain.nutrition import (
    UNINITIALIZED_STATE,
    DisplayPreferences,
    NutritionState,
)
from nutrition_targets.services.auth import AuthContext, AuthEventBus
from nutrition_targets.services.reconciler import Reconciler
from nutrition_targets.services.resolver import NutritionResolver, ProfileProvider
from nutrition_targets.services.sessions import SessionService
from nutrition_targets.services.state import StateHolder
from nutrition_targets.services.user_settings import UserSettingsService
from nutrition_targets.services.weights import WeightService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    auth_context: AuthContext
    local_store: SqliteLocalStore
    remote_store: SupabaseRemoteStore
    profile_provider: ProfileProvider
    reconciler: Reconciler
    nutrition_state: StateHolder[NutritionState]
    preferences_state: StateHolder[DisplayPreferences]
    resolver: NutritionResolver
    weight_service: WeightService
    user_settings_service: UserSettingsService
    session_service: SessionService
    close_resources: Callable[[], Awaitable[None]]


def build_container(
    settings: Settings | None = None,
    auth_context: AuthContext | None = None,
    profile_provider: ProfileProvider | None = None,
) -> AppContainer:
    """Create the default dependency container.

    The session service is attached to ``auth_context`` (a fresh
    ``AuthEventBus`` when omitted). Profiles default to the onboarding table in
    the local database. Package logging is configured on the way.
    """
    configure_logging()
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url,
        resolved_settings.supabase_service_key,
        options=ClientOptions(
            postgrest_client_timeout=resolved_settings.remote_timeout_seconds
        ),
    )
    local_store = SqliteLocalStore.create(resolved_settings.local_db_path)
    remote_store = SupabaseRemoteStore(
        client=supabase_client,
        settings_table=resolved_settings.remote_settings_table,
        weights_table=resolved_settings.remote_weights_table,
        timeout_seconds=resolved_settings.remote_timeout_seconds,
    )
    if profile_provider is None:
        sqlite_profiles = SqliteProfileProvider(local_store.connection)
        sqlite_profiles.initialize()
        profile_provider = sqlite_profiles
    reconciler = Reconciler(local=local_store, remote=remote_store)
    nutrition_state: StateHolder[NutritionState] = StateHolder(UNINITIALIZED_STATE)
    preferences_state: StateHolder[DisplayPreferences] = StateHolder(
        DisplayPreferences()
    )
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
    resolved_auth = auth_context or AuthEventBus()
    session_service.attach(resolved_auth)

    async def close_resources() -> None:
        session_service.detach()
        local_store.close()

    return AppContainer(
        settings=resolved_settings,
        auth_context=resolved_auth,
        local_store=local_store,
        remote_store=remote_store,
        profile_provider=profile_provider,
        reconciler=reconciler,
        nutrition_state=nutrition_state,
        preferences_state=preferences_state,
        resolver=resolver,
        weight_service=weight_service,
        user_settings_service=user_settings_service,
        session_service=session_service,
        close_resources=close_resources,
    )
