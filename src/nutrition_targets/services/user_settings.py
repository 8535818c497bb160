"""User settings service: nutrition overrides and display preferences."""

import logging
from dataclasses import dataclass

from nutrition_targets.domain.errors import (
    InvalidInput,
    LocalStoreFailure,
    NotAuthenticated,
)
from nutrition_targets.domain.nutrition import DisplayPreferences, NutritionTargets
from nutrition_targets.services.reconciler import Reconciler, SettingsKind
from nutrition_targets.services.resolver import NutritionResolver
from nutrition_targets.services.state import StateHolder

_logger = logging.getLogger(__name__)


@dataclass
class UserSettingsService:
    """Saves and loads per-user settings through the reconciler."""

    reconciler: Reconciler
    resolver: NutritionResolver
    preferences_state: StateHolder[DisplayPreferences]

    async def save_override(self, user_id: str, targets: NutritionTargets) -> bool:
        """Persist explicit nutrition targets for a user.

        Returns False when no user is signed in or the local write failed.
        Raises InvalidInput for negative or non-integer values.
        """
        _validate_targets(targets)
        try:
            await self.reconciler.save(
                SettingsKind.CUSTOM_NUTRITION, user_id, targets.to_document()
            )
        except NotAuthenticated:
            _logger.warning("Refusing to save nutrition override: no signed-in user")
            return False
        except LocalStoreFailure:
            _logger.exception("Failed to save nutrition override for user=%s", user_id)
            return False
        self.resolver.publish_override(user_id, targets)
        return True

    async def clear_override(self, user_id: str) -> bool:
        """Remove a user's override and republish computed targets."""
        try:
            await self.reconciler.delete(SettingsKind.CUSTOM_NUTRITION, user_id)
        except NotAuthenticated:
            _logger.warning("Refusing to clear nutrition override: no signed-in user")
            return False
        except LocalStoreFailure:
            _logger.exception("Failed to clear nutrition override for user=%s", user_id)
            return False
        if self._is_active(user_id):
            await self.resolver.resolve(user_id)
        return True

    async def get_preferences(self, user_id: str) -> DisplayPreferences:
        """Return the user's display preferences, or defaults when none exist."""
        document = await self.reconciler.resolve(
            SettingsKind.DISPLAY_PREFERENCES, user_id
        )
        if document is None:
            return DisplayPreferences()
        return DisplayPreferences.from_document(document)

    async def load_preferences(self, user_id: str) -> DisplayPreferences:
        """Resolve preferences and publish them if the user is still active."""
        preferences = await self.get_preferences(user_id)
        if self._is_active(user_id):
            self.preferences_state.publish(preferences)
        return preferences

    async def save_preferences(
        self, user_id: str, preferences: DisplayPreferences
    ) -> bool:
        """Persist display preferences for a user."""
        try:
            await self.reconciler.save(
                SettingsKind.DISPLAY_PREFERENCES, user_id, preferences.to_document()
            )
        except NotAuthenticated:
            _logger.warning("Refusing to save display preferences: no signed-in user")
            return False
        except LocalStoreFailure:
            _logger.exception("Failed to save display preferences for user=%s", user_id)
            return False
        if self._is_active(user_id):
            self.preferences_state.publish(preferences)
        return True

    def _is_active(self, user_id: str) -> bool:
        return self.resolver.state.current.user_id == user_id


def _validate_targets(targets: NutritionTargets) -> None:
    for name, value in targets.to_document().items():
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise InvalidInput(f"{name} must be a non-negative integer, got {value!r}")
