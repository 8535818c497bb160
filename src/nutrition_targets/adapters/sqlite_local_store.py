"""SQLite-backed local cache for settings documents and weight history."""

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime

from nutrition_targets.domain.errors import LocalStoreFailure
from nutrition_targets.domain.weights import WeightEntry
from nutrition_targets.services.reconciler import LocalStore, SettingsKind
from nutrition_targets.services.weights import WeightLocalStore


@dataclass(frozen=True)
class _TableSchema:
    name: str
    columns: tuple[str, ...]
    boolean_columns: frozenset[str] = frozenset()


_SCHEMAS = {
    SettingsKind.CUSTOM_NUTRITION: _TableSchema(
        name="custom_nutrition",
        columns=("calories", "protein", "fat", "carbs"),
    ),
    SettingsKind.DISPLAY_PREFERENCES: _TableSchema(
        name="display_preferences",
        columns=(
            "show_calories_circle",
            "show_protein_bar",
            "show_fat_bar",
            "show_carbs_bar",
        ),
        boolean_columns=frozenset(
            {
                "show_calories_circle",
                "show_protein_bar",
                "show_fat_bar",
                "show_carbs_bar",
            }
        ),
    ),
}

_CREATE_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS custom_nutrition (
        user_id    TEXT PRIMARY KEY,
        calories   INTEGER NOT NULL,
        protein    INTEGER NOT NULL,
        fat        INTEGER NOT NULL,
        carbs      INTEGER NOT NULL,
        updated_at TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS display_preferences (
        user_id              TEXT PRIMARY KEY,
        show_calories_circle INTEGER NOT NULL DEFAULT 1,
        show_protein_bar     INTEGER NOT NULL DEFAULT 1,
        show_fat_bar         INTEGER NOT NULL DEFAULT 1,
        show_carbs_bar       INTEGER NOT NULL DEFAULT 1,
        updated_at           TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS weight (
        id          TEXT PRIMARY KEY,
        user_id     TEXT NOT NULL,
        weight      REAL NOT NULL,
        recorded_at TEXT NOT NULL
    );
    """,
)


@dataclass
class SqliteLocalStore(LocalStore, WeightLocalStore):
    """Local store with one table per settings kind."""

    connection: sqlite3.Connection

    @classmethod
    def create(cls, path: str) -> "SqliteLocalStore":
        """Open the database at ``path`` and ensure the tables exist."""
        connection = sqlite3.connect(path)
        connection.row_factory = sqlite3.Row
        store = cls(connection=connection)
        store.initialize()
        return store

    def initialize(self) -> None:
        """Create missing tables."""
        with self._guard("initialize schema"), self.connection:
            for statement in _CREATE_STATEMENTS:
                self.connection.execute(statement)

    def get(self, kind: SettingsKind, user_id: str) -> dict[str, object] | None:
        """Return the stored document for the user, if present."""
        schema = _SCHEMAS[kind]
        columns = ", ".join(schema.columns)
        with self._guard(f"read {schema.name}"):
            row = self.connection.execute(
                f"SELECT {columns} FROM {schema.name} WHERE user_id = ?;",  # noqa: S608
                (user_id,),
            ).fetchone()
        if row is None:
            return None
        document: dict[str, object] = {}
        for column in schema.columns:
            value = row[column]
            document[column] = value == 1 if column in schema.boolean_columns else value
        return document

    def upsert(
        self, kind: SettingsKind, user_id: str, document: dict[str, object]
    ) -> None:
        """Replace the user's row with the full document."""
        schema = _SCHEMAS[kind]
        values = [_column_value(schema, column, document) for column in schema.columns]
        columns = ", ".join(("user_id", *schema.columns, "updated_at"))
        placeholders = ", ".join("?" for _ in range(len(schema.columns) + 2))
        with self._guard(f"write {schema.name}"), self.connection:
            self.connection.execute(
                f"INSERT OR REPLACE INTO {schema.name} ({columns}) "  # noqa: S608
                f"VALUES ({placeholders});",
                (user_id, *values, datetime.now(tz=UTC).isoformat()),
            )

    def delete(self, kind: SettingsKind, user_id: str) -> None:
        """Delete the user's row, if any."""
        schema = _SCHEMAS[kind]
        with self._guard(f"delete {schema.name}"), self.connection:
            self.connection.execute(
                f"DELETE FROM {schema.name} WHERE user_id = ?;",  # noqa: S608
                (user_id,),
            )

    def add_weight(self, entry: WeightEntry) -> None:
        """Insert a weight entry, ignoring an already stored id."""
        with self._guard("write weight"), self.connection:
            self.connection.execute(
                "INSERT OR IGNORE INTO weight (id, user_id, weight, recorded_at) "
                "VALUES (?, ?, ?, ?);",
                (
                    entry.id,
                    entry.user_id,
                    entry.weight,
                    entry.recorded_at.isoformat(),
                ),
            )

    def list_weights(self, user_id: str) -> list[WeightEntry]:
        """Return the user's weight history, oldest first."""
        with self._guard("read weight"):
            rows = self.connection.execute(
                "SELECT id, user_id, weight, recorded_at FROM weight "
                "WHERE user_id = ? ORDER BY recorded_at ASC;",
                (user_id,),
            ).fetchall()
        return [_weight_from_row(row) for row in rows]

    def latest_weight(self, user_id: str) -> WeightEntry | None:
        """Return the most recent weight entry for the user."""
        with self._guard("read weight"):
            row = self.connection.execute(
                "SELECT id, user_id, weight, recorded_at FROM weight "
                "WHERE user_id = ? ORDER BY recorded_at DESC LIMIT 1;",
                (user_id,),
            ).fetchone()
        if row is None:
            return None
        return _weight_from_row(row)

    def close(self) -> None:
        """Close the database connection."""
        self.connection.close()

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        try:
            yield
        except sqlite3.Error as exc:
            raise LocalStoreFailure(f"Local store failed to {action}: {exc}") from exc


def _column_value(
    schema: _TableSchema, column: str, document: dict[str, object]
) -> object:
    value = document.get(column)
    if column in schema.boolean_columns:
        return 1 if value is None or value else 0
    return value


def _weight_from_row(row: sqlite3.Row) -> WeightEntry:
    return WeightEntry(
        id=row["id"],
        user_id=row["user_id"],
        weight=float(row["weight"]),
        recorded_at=datetime.fromisoformat(row["recorded_at"]),
    )
