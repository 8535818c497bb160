"""Supabase-backed remote store for settings documents and weight history."""

import asyncio
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TypeVar

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from nutrition_targets.domain.errors import RemoteUnavailable
from nutrition_targets.domain.weights import WeightEntry
from nutrition_targets.services.reconciler import RemoteStore, SettingsKind
from nutrition_targets.services.weights import WeightRemoteStore

_T = TypeVar("_T")


@dataclass
class SupabaseRemoteStore(RemoteStore, WeightRemoteStore):
    """Supabase implementation of the remote backup.

    Settings live in one table keyed by ``(user_id, kind)`` with the payload in
    a JSON ``document`` column. The blocking Supabase client runs in a worker
    thread and every call is bounded by ``timeout_seconds``.

    A timed-out call keeps running in its thread, so settings writes are
    applied one at a time and a write issued before the last applied one for
    the same document is dropped.
    """

    client: Client
    settings_table: str = "user_settings_documents"
    weights_table: str = "weight_entries"
    timeout_seconds: float = 10.0
    _write_lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )
    _issued: dict[tuple[str, str], int] = field(
        default_factory=dict, init=False, repr=False
    )
    _applied: dict[tuple[str, str], int] = field(
        default_factory=dict, init=False, repr=False
    )

    async def get(self, kind: SettingsKind, user_id: str) -> dict[str, object] | None:
        """Return the stored document for the user and kind."""

        def query() -> dict[str, object] | None:
            response = (
                self.client.table(self.settings_table)
                .select("document")
                .eq("user_id", user_id)
                .eq("kind", kind.value)
                .limit(1)
                .execute()
            )
            if not response.data:
                return None
            document = response.data[0].get("document")
            if document is not None and not isinstance(document, dict):
                raise RemoteUnavailable(
                    f"Remote {kind.value} document is not an object: {document!r}"
                )
            return document

        return await self._call(query, action=f"get {kind.value}")

    async def put(
        self, kind: SettingsKind, user_id: str, document: dict[str, object]
    ) -> None:
        """Upsert the full document, stamping the write time."""

        def query() -> None:
            self.client.table(self.settings_table).upsert(
                {
                    "user_id": user_id,
                    "kind": kind.value,
                    "document": document,
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                },
                on_conflict="user_id,kind",
            ).execute()

        await self._call(
            self._ordered_write(kind, user_id, query), action=f"put {kind.value}"
        )

    async def delete(self, kind: SettingsKind, user_id: str) -> None:
        """Delete the document for the user and kind."""

        def query() -> None:
            self.client.table(self.settings_table).delete().eq("user_id", user_id).eq(
                "kind", kind.value
            ).execute()

        await self._call(
            self._ordered_write(kind, user_id, query), action=f"delete {kind.value}"
        )

    async def add_weight(self, entry: WeightEntry) -> None:
        """Insert a weight entry."""

        def query() -> None:
            self.client.table(self.weights_table).insert(
                {
                    "id": entry.id,
                    "user_id": entry.user_id,
                    "weight": entry.weight,
                    "recorded_at": entry.recorded_at.isoformat(),
                }
            ).execute()

        await self._call(query, action="add weight")

    async def latest_weight(self, user_id: str) -> WeightEntry | None:
        """Return the most recent weight entry for the user."""

        def query() -> WeightEntry | None:
            response = (
                self.client.table(self.weights_table)
                .select("id, user_id, weight, recorded_at")
                .eq("user_id", user_id)
                .order("recorded_at", desc=True)
                .limit(1)
                .execute()
            )
            if not response.data:
                return None
            row = response.data[0]
            try:
                return WeightEntry(
                    id=str(row["id"]),
                    user_id=row["user_id"],
                    weight=float(row["weight"]),
                    recorded_at=datetime.fromisoformat(row["recorded_at"]),
                )
            except (KeyError, TypeError, ValueError) as exc:
                raise RemoteUnavailable(f"Malformed remote weight row: {exc}") from exc

        return await self._call(query, action="latest weight")

    def _ordered_write(
        self, kind: SettingsKind, user_id: str, func: Callable[[], None]
    ) -> Callable[[], None]:
        """Sequence a settings write so an older one never lands last."""
        key = (kind.value, user_id)
        sequence = self._issued.get(key, 0) + 1
        self._issued[key] = sequence

        def write() -> None:
            with self._write_lock:
                if self._applied.get(key, 0) > sequence:
                    return
                func()
                self._applied[key] = sequence

        return write

    async def _call(self, func: Callable[[], _T], *, action: str) -> _T:
        """Run a blocking query off the event loop and normalise failures."""
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(func), timeout=self.timeout_seconds
            )
        except TimeoutError as exc:
            raise RemoteUnavailable(
                f"Remote {action} timed out after {self.timeout_seconds}s"
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL, APIError) as exc:
            raise RemoteUnavailable(f"Remote {action} failed: {exc}") from exc
