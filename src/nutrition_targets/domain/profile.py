"""Profile domain models used by the calculation engine."""

from dataclasses import dataclass
from datetime import date
from enum import Enum


class Gender(Enum):
    """Gender input for the BMR formula."""

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class ActivityLevel(Enum):
    """Daily activity level."""

    SEDENTARY = "sedentary"
    MODERATE = "moderate"
    ACTIVE = "active"


class ActivityType(Enum):
    """Dominant type of exercise."""

    AEROBIC = "aerobic"
    ANAEROBIC = "anaerobic"
    MIXED = "mixed"
    NO_SPORT = "no_sport"


class Goal(Enum):
    """Body composition goal."""

    LOSE_WEIGHT = "lose_weight"
    GAIN_WEIGHT = "gain_weight"
    BUILD_MUSCLE = "build_muscle"
    MAINTAIN_WEIGHT = "maintain_weight"


class ExperienceLevel(Enum):
    """Training experience, used to size a muscle-building surplus."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


@dataclass(frozen=True)
class ProfileAttributes:
    """Partial profile as yielded by a profile provider.

    Every field is optional. ``age`` may be a whole number of years or a
    birthdate. Enum fields also accept their raw string values.
    """

    gender: Gender | str | None = None
    age: int | date | None = None
    weight: float | None = None
    height: float | None = None
    activity_level: ActivityLevel | str | None = None
    activity_type: ActivityType | str | None = None
    goal: Goal | str | None = None
    weekly_rate: float | None = None
    experience_level: ExperienceLevel | str | None = None
    target_weight: float | None = None


@dataclass(frozen=True)
class ResolvedProfile:
    """Profile with every field populated and validated."""

    gender: Gender
    age: int
    weight: float
    height: float
    activity_level: ActivityLevel | None
    activity_type: ActivityType
    goal: Goal
    weekly_rate: float
    experience_level: ExperienceLevel
    target_weight: float
