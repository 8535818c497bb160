"""Resolves the nutrition targets published for the signed-in user."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Protocol

from nutrition_targets.domain.errors import NotAuthenticated
from nutrition_targets.domain.nutrition import (
    SAFE_DEFAULT_TARGETS,
    NutritionState,
    NutritionTargets,
    Provenance,
    ResolutionStatus,
)
from nutrition_targets.domain.profile import ProfileAttributes
from nutrition_targets.services.calculator import compute_targets
from nutrition_targets.services.reconciler import Reconciler, SettingsKind
from nutrition_targets.services.state import StateHolder
from nutrition_targets.services.weights import WeightService

_logger = logging.getLogger(__name__)


class ProfileProvider(Protocol):
    """Source of biometric and goal attributes for a user."""

    def get_profile(self, user_id: str) -> ProfileAttributes:
        """Return the user's profile; any field may be missing."""


@dataclass
class NutritionResolver:
    """Chooses between a saved override and computed targets, then publishes.

    Every call to ``resolve`` or ``invalidate`` starts a new generation. A
    resolution only publishes if no newer generation began while it awaited
    the stores, so a result arriving after sign-out or an account switch is
    dropped.
    """

    reconciler: Reconciler
    profile_provider: ProfileProvider
    state: StateHolder[NutritionState]
    weight_service: WeightService | None = None
    clock: Callable[[], date] = date.today
    _generation: int = field(default=0, init=False, repr=False)

    async def resolve(self, user_id: str | None) -> NutritionState:
        """Resolve and publish targets for ``user_id``.

        Returns the resolved state even when it was discarded as stale.
        """
        self._generation += 1
        generation = self._generation
        self.state.publish(self._resolving_state(user_id))

        try:
            resolved = await self._resolve_targets(user_id)
        except Exception:
            _logger.exception(
                "Nutrition resolution failed for user=%s, using safe defaults",
                user_id,
            )
            resolved = NutritionState(
                status=ResolutionStatus.ERROR,
                targets=SAFE_DEFAULT_TARGETS,
                provenance=Provenance.DEFAULTED,
                user_id=user_id,
            )

        if generation != self._generation:
            _logger.info("Discarding stale nutrition resolution for user=%s", user_id)
            return resolved
        self.state.publish(resolved)
        _logger.info(
            "Published %s nutrition targets for user=%s",
            resolved.provenance.value if resolved.provenance else "no",
            user_id,
        )
        return resolved

    def invalidate(self) -> None:
        """Drop any in-flight resolution and reset the published state."""
        self._generation += 1
        self.state.reset()

    def publish_override(self, user_id: str, targets: NutritionTargets) -> None:
        """Publish freshly saved override values for the active user."""
        if self.state.current.user_id != user_id:
            return
        self._generation += 1
        self.state.publish(
            NutritionState(
                status=ResolutionStatus.RESOLVED,
                targets=targets,
                provenance=Provenance.OVERRIDE,
                user_id=user_id,
            )
        )

    async def _resolve_targets(self, user_id: str | None) -> NutritionState:
        if not user_id:
            raise NotAuthenticated("No signed-in user to resolve nutrition for")

        document = await self.reconciler.resolve(SettingsKind.CUSTOM_NUTRITION, user_id)
        if document is not None:
            return NutritionState(
                status=ResolutionStatus.RESOLVED,
                targets=NutritionTargets.from_document(document),
                provenance=Provenance.OVERRIDE,
                user_id=user_id,
            )

        profile = self.profile_provider.get_profile(user_id)
        if self.weight_service is not None:
            current_weight = await self.weight_service.current_weight(user_id)
            if current_weight is not None:
                profile = replace(profile, weight=current_weight)
        return NutritionState(
            status=ResolutionStatus.RESOLVED,
            targets=compute_targets(profile, today=self.clock()),
            provenance=Provenance.COMPUTED,
            user_id=user_id,
        )

    def _resolving_state(self, user_id: str | None) -> NutritionState:
        previous = self.state.current
        if previous.user_id == user_id:
            return replace(previous, status=ResolutionStatus.RESOLVING)
        return NutritionState(
            status=ResolutionStatus.RESOLVING,
            targets=SAFE_DEFAULT_TARGETS,
            user_id=user_id,
        )
