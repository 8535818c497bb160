"""Profile provider reading onboarding answers from the local database."""

import sqlite3
from dataclasses import dataclass
from datetime import date
from enum import Enum

from nutrition_targets.domain.errors import LocalStoreFailure
from nutrition_targets.domain.profile import ProfileAttributes
from nutrition_targets.services.resolver import ProfileProvider

_PROFILE_COLUMNS = (
    "gender",
    "age",
    "weight",
    "height",
    "activity_level",
    "activity_type",
    "goal",
    "weekly_rate",
    "experience_level",
    "target_weight",
)


@dataclass
class SqliteProfileProvider(ProfileProvider):
    """Stores one onboarding profile row per user."""

    connection: sqlite3.Connection

    def initialize(self) -> None:
        """Create the profiles table if it is missing."""
        try:
            with self.connection:
                self.connection.execute(
                    """
                    CREATE TABLE IF NOT EXISTS profiles (
                        user_id          TEXT PRIMARY KEY,
                        gender           TEXT,
                        age              TEXT,
                        weight           REAL,
                        height           REAL,
                        activity_level   TEXT,
                        activity_type    TEXT,
                        goal             TEXT,
                        weekly_rate      REAL,
                        experience_level TEXT,
                        target_weight    REAL
                    );
                    """
                )
        except sqlite3.Error as exc:
            raise LocalStoreFailure(f"Failed to create profiles table: {exc}") from exc

    def get_profile(self, user_id: str) -> ProfileAttributes:
        """Return the stored profile, or an empty one when none exists."""
        columns = ", ".join(_PROFILE_COLUMNS)
        try:
            row = self.connection.execute(
                f"SELECT {columns} FROM profiles WHERE user_id = ?;",  # noqa: S608
                (user_id,),
            ).fetchone()
        except sqlite3.Error as exc:
            raise LocalStoreFailure(f"Failed to read profile: {exc}") from exc
        if row is None:
            return ProfileAttributes()
        return ProfileAttributes(
            gender=row["gender"],
            age=_parse_age(row["age"]),
            weight=row["weight"],
            height=row["height"],
            activity_level=row["activity_level"],
            activity_type=row["activity_type"],
            goal=row["goal"],
            weekly_rate=row["weekly_rate"],
            experience_level=row["experience_level"],
            target_weight=row["target_weight"],
        )

    def save_profile(self, user_id: str, profile: ProfileAttributes) -> None:
        """Replace the stored profile for a user."""
        values = [
            _column_value(column, getattr(profile, column))
            for column in _PROFILE_COLUMNS
        ]
        columns = ", ".join(("user_id", *_PROFILE_COLUMNS))
        placeholders = ", ".join("?" for _ in range(len(_PROFILE_COLUMNS) + 1))
        try:
            with self.connection:
                self.connection.execute(
                    f"INSERT OR REPLACE INTO profiles ({columns}) "  # noqa: S608
                    f"VALUES ({placeholders});",
                    (user_id, *values),
                )
        except sqlite3.Error as exc:
            raise LocalStoreFailure(f"Failed to save profile: {exc}") from exc


def _column_value(column: str, value: object) -> object:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    if column == "age" and value is not None:
        return str(value)
    return value


def _parse_age(raw: str | None) -> int | date | None:
    """Ages are stored as whole years or as an ISO birthdate."""
    if raw is None or raw == "":
        return None
    if raw.isdigit():
        return int(raw)
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        return None
