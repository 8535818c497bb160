"""Weight history service."""

import logging
import math
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol
from uuid import uuid4

from nutrition_targets.domain.errors import (
    InvalidInput,
    LocalStoreFailure,
    RemoteUnavailable,
)
from nutrition_targets.domain.weights import WeightEntry

_logger = logging.getLogger(__name__)


class WeightLocalStore(Protocol):
    """On-device persistence for weight history."""

    def add_weight(self, entry: WeightEntry) -> None:
        """Insert a weight entry. Raises LocalStoreFailure."""

    def list_weights(self, user_id: str) -> list[WeightEntry]:
        """Return the user's entries, oldest first."""

    def latest_weight(self, user_id: str) -> WeightEntry | None:
        """Return the most recent entry, if any."""


class WeightRemoteStore(Protocol):
    """Remote backup for weight history."""

    async def add_weight(self, entry: WeightEntry) -> None:
        """Insert a weight entry. Raises RemoteUnavailable."""

    async def latest_weight(self, user_id: str) -> WeightEntry | None:
        """Return the most recent entry. Raises RemoteUnavailable."""


@dataclass
class WeightService:
    """Records weights locally first and replicates them remotely."""

    local: WeightLocalStore
    remote: WeightRemoteStore

    async def record_weight(self, user_id: str, weight: float) -> WeightEntry:
        """Persist a new weight entry and return it."""
        if not math.isfinite(weight) or weight <= 0:
            raise InvalidInput(f"Weight must be positive, got {weight}")
        entry = WeightEntry(
            id=str(uuid4()),
            user_id=user_id,
            weight=float(weight),
            recorded_at=datetime.now(tz=UTC),
        )
        self.local.add_weight(entry)
        try:
            await self.remote.add_weight(entry)
        except RemoteUnavailable as exc:
            _logger.warning("Remote weight write skipped for user=%s: %s", user_id, exc)
        return entry

    def history(self, user_id: str) -> list[WeightEntry]:
        """Return the locally stored history, oldest first."""
        return self.local.list_weights(user_id)

    async def current_weight(self, user_id: str) -> float | None:
        """Return the latest recorded weight, healing from remote on a miss."""
        try:
            entry = self.local.latest_weight(user_id)
        except LocalStoreFailure:
            _logger.exception("Local weight read failed for user=%s", user_id)
            entry = None
        if entry is not None:
            return entry.weight

        try:
            entry = await self.remote.latest_weight(user_id)
        except RemoteUnavailable as exc:
            _logger.warning(
                "Remote weight read unavailable for user=%s: %s", user_id, exc
            )
            return None
        if entry is None:
            return None
        try:
            self.local.add_weight(entry)
        except LocalStoreFailure:
            _logger.exception("Failed to heal local weight for user=%s", user_id)
        return entry.weight
