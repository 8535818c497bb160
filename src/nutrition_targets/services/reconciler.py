"""Read-fallback and write-through policy across the local and remote stores."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from nutrition_targets.domain.errors import (
    LocalStoreFailure,
    NotAuthenticated,
    RemoteUnavailable,
)

_logger = logging.getLogger(__name__)


class SettingsKind(Enum):
    """Per-user settings documents kept in both stores."""

    CUSTOM_NUTRITION = "custom_nutrition"
    DISPLAY_PREFERENCES = "display_preferences"


class LocalStore(Protocol):
    """On-device store with one row per user per settings kind."""

    def get(self, kind: SettingsKind, user_id: str) -> dict[str, object] | None:
        """Return the stored document, or None when no row exists."""

    def upsert(
        self, kind: SettingsKind, user_id: str, document: dict[str, object]
    ) -> None:
        """Replace the row for the user. Raises LocalStoreFailure."""

    def delete(self, kind: SettingsKind, user_id: str) -> None:
        """Delete the row for the user. Raises LocalStoreFailure."""


class RemoteStore(Protocol):
    """Network-backed per-user document store."""

    async def get(self, kind: SettingsKind, user_id: str) -> dict[str, object] | None:
        """Return the remote document, or None. Raises RemoteUnavailable."""

    async def put(
        self, kind: SettingsKind, user_id: str, document: dict[str, object]
    ) -> None:
        """Write the full document. Raises RemoteUnavailable."""

    async def delete(self, kind: SettingsKind, user_id: str) -> None:
        """Delete the document. Raises RemoteUnavailable."""


@dataclass
class Reconciler:
    """Keeps the local cache authoritative and the remote store as backup."""

    local: LocalStore
    remote: RemoteStore

    async def resolve(
        self, kind: SettingsKind, user_id: str
    ) -> dict[str, object] | None:
        """Return the user's document from the local cache or the remote backup.

        A remote hit is written back into the local cache. Returns None when
        neither store has the document or the remote store is unreachable.
        """
        _require_user(user_id)
        try:
            document = self.local.get(kind, user_id)
        except LocalStoreFailure:
            _logger.exception(
                "Local read failed for %s user=%s, trying remote", kind.value, user_id
            )
            document = None
        if document is not None:
            return document

        try:
            document = await self.remote.get(kind, user_id)
        except RemoteUnavailable as exc:
            _logger.warning(
                "Remote read unavailable for %s user=%s: %s", kind.value, user_id, exc
            )
            return None
        if document is None:
            return None

        try:
            self.local.upsert(kind, user_id, document)
        except LocalStoreFailure:
            _logger.exception(
                "Failed to heal local %s for user=%s", kind.value, user_id
            )
        else:
            _logger.info("Healed local %s from remote for user=%s", kind.value, user_id)
        return document

    async def save(
        self, kind: SettingsKind, user_id: str, document: dict[str, object]
    ) -> None:
        """Write locally, then replicate to the remote store.

        Raises NotAuthenticated without a user id and LocalStoreFailure when the
        local write fails. Remote failures are logged and do not undo the local
        write.
        """
        _require_user(user_id)
        self.local.upsert(kind, user_id, document)
        try:
            await self.remote.put(kind, user_id, document)
        except RemoteUnavailable as exc:
            _logger.warning(
                "Remote write skipped for %s user=%s: %s", kind.value, user_id, exc
            )

    async def delete(self, kind: SettingsKind, user_id: str) -> None:
        """Delete locally, then from the remote store on a best-effort basis."""
        _require_user(user_id)
        self.local.delete(kind, user_id)
        try:
            await self.remote.delete(kind, user_id)
        except RemoteUnavailable as exc:
            _logger.warning(
                "Remote delete skipped for %s user=%s: %s", kind.value, user_id, exc
            )


def _require_user(user_id: str | None) -> None:
    if not user_id:
        raise NotAuthenticated("No signed-in user for settings access")
