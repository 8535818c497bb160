"""Weight history domain models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class WeightEntry:
    """A single recorded body weight."""

    id: str
    user_id: str
    weight: float
    recorded_at: datetime
