"""Session bootstrap driven by authentication events."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from nutrition_targets.domain.nutrition import NutritionState
from nutrition_targets.services.auth import AuthContext, AuthEvent, AuthEventType
from nutrition_targets.services.resolver import NutritionResolver
from nutrition_targets.services.user_settings import UserSettingsService

_logger = logging.getLogger(__name__)


@dataclass
class SessionService:
    """Resolves per-user settings on sign-in and tears them down on sign-out."""

    resolver: NutritionResolver
    user_settings_service: UserSettingsService
    _unsubscribe: Callable[[], None] | None = field(default=None, init=False)

    def attach(self, auth_context: AuthContext) -> None:
        """Subscribe to an auth context, replacing any earlier subscription."""
        self.detach()
        self._unsubscribe = auth_context.subscribe(self.handle)

    def detach(self) -> None:
        """Stop receiving auth events."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def start(self, auth_context: AuthContext) -> NutritionState:
        """Attach to the auth context and bootstrap the current session."""
        self.attach(auth_context)
        user_id = auth_context.current_user_id
        if user_id is None:
            return await self.resolver.resolve(None)
        return await self.open_session(user_id)

    async def handle(self, event: AuthEvent) -> None:
        """React to a single auth event."""
        if event.type is AuthEventType.SIGNED_IN and event.user_id:
            await self.open_session(event.user_id)
        elif event.type is AuthEventType.SIGNED_OUT:
            self.close_session()

    async def open_session(self, user_id: str) -> NutritionState:
        """Resolve nutrition targets and display preferences together."""
        _logger.info("Opening session for user=%s", user_id)
        nutrition_state, _ = await asyncio.gather(
            self.resolver.resolve(user_id),
            self._load_preferences(user_id),
        )
        return nutrition_state

    def close_session(self) -> None:
        """Discard in-flight work and reset published state."""
        _logger.info("Closing session")
        self.resolver.invalidate()
        self.user_settings_service.preferences_state.reset()

    async def _load_preferences(self, user_id: str) -> None:
        try:
            await self.user_settings_service.load_preferences(user_id)
        except Exception:
            _logger.exception("Failed to load display preferences for user=%s", user_id)
