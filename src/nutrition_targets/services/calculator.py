"""Calorie and macronutrient target calculation.

All functions are pure: the only implicit input is the current date, and it can
be supplied explicitly through ``today``.
"""

import logging
import math
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import TypeVar

from nutrition_targets.domain.nutrition import NutritionTargets
from nutrition_targets.domain.profile import (
    ActivityLevel,
    ActivityType,
    ExperienceLevel,
    Gender,
    Goal,
    ProfileAttributes,
    ResolvedProfile,
)

MIN_DAILY_CALORIES = 1200
MAX_DAILY_CALORIES = 3000
MIN_CARBS_G = 50
KCAL_PER_KG = 7700
MAX_PROTEIN_PER_KG = 2.2
FAT_PER_KG = 0.9

DEFAULT_GENDER = Gender.MALE
DEFAULT_AGE = 30
DEFAULT_WEIGHT_KG = 70.0
DEFAULT_HEIGHT_CM = 170.0
DEFAULT_ACTIVITY_LEVEL = ActivityLevel.MODERATE
DEFAULT_ACTIVITY_TYPE = ActivityType.MIXED
DEFAULT_GOAL = Goal.MAINTAIN_WEIGHT
DEFAULT_WEEKLY_RATE = 0.5
DEFAULT_EXPERIENCE_LEVEL = ExperienceLevel.INTERMEDIATE
DEFAULT_DAILY_CALORIES = 2000

_BMR_GENDER_CONSTANT = {
    Gender.MALE: 5,
    Gender.FEMALE: -161,
    Gender.OTHER: -78,
}

_ACTIVITY_MULTIPLIERS = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.MODERATE: 1.375,
    ActivityLevel.ACTIVE: 1.55,
}

_PROTEIN_PER_KG = {
    Goal.BUILD_MUSCLE: 1.9,
    Goal.LOSE_WEIGHT: 1.6,
    Goal.GAIN_WEIGHT: 1.8,
}

_PROTEIN_ACTIVITY_BONUS = {
    ActivityType.ANAEROBIC: 0.2,
    ActivityType.MIXED: 0.2,
    ActivityType.AEROBIC: 0.1,
}

_MAX_AGE = 130

_logger = logging.getLogger(__name__)

_E = TypeVar("_E", bound=Enum)


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero."""
    return int(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def age_in_years(age: int | date, today: date | None = None) -> int:
    """Return completed years for an integer age or a birthdate."""
    if not isinstance(age, date):
        return int(age)
    reference = today or date.today()
    years = reference.year - age.year
    if (reference.month, reference.day) < (age.month, age.day):
        years -= 1
    return years


def resolve_profile(
    profile: ProfileAttributes, today: date | None = None
) -> ResolvedProfile:
    """Fill missing profile fields with defaults and replace invalid ones."""
    weight = _positive(profile.weight, DEFAULT_WEIGHT_KG, "weight")
    age = DEFAULT_AGE
    if profile.age is not None:
        years = age_in_years(profile.age, today)
        if 0 <= years <= _MAX_AGE:
            age = years
        else:
            _logger.warning("Invalid profile age %s, using %s", years, DEFAULT_AGE)
    weekly_rate = DEFAULT_WEEKLY_RATE
    if profile.weekly_rate is not None:
        if _is_finite(profile.weekly_rate) and profile.weekly_rate >= 0:
            weekly_rate = float(profile.weekly_rate)
        else:
            _logger.warning(
                "Invalid weekly rate %s, using %s",
                profile.weekly_rate,
                DEFAULT_WEEKLY_RATE,
            )
    return ResolvedProfile(
        gender=_gender(profile.gender),
        age=age,
        weight=weight,
        height=_positive(profile.height, DEFAULT_HEIGHT_CM, "height"),
        activity_level=_activity_level(profile.activity_level),
        activity_type=_member(
            ActivityType, profile.activity_type, DEFAULT_ACTIVITY_TYPE
        ),
        goal=_member(Goal, profile.goal, DEFAULT_GOAL),
        weekly_rate=weekly_rate,
        experience_level=_member(
            ExperienceLevel, profile.experience_level, DEFAULT_EXPERIENCE_LEVEL
        ),
        target_weight=_positive(profile.target_weight, weight, "target_weight"),
    )


def compute_calories(
    profile: ProfileAttributes | ResolvedProfile, today: date | None = None
) -> int:
    """Return the daily calorie target, clamped to the safe range."""
    resolved = (
        profile
        if isinstance(profile, ResolvedProfile)
        else resolve_profile(profile, today)
    )
    bmr = (
        10 * resolved.weight
        + 6.25 * resolved.height
        - 5 * resolved.age
        + _BMR_GENDER_CONSTANT[resolved.gender]
    )
    multiplier = _ACTIVITY_MULTIPLIERS.get(resolved.activity_level, 1.2)
    total = round_half_away(bmr * multiplier)
    total += _goal_adjustment(resolved)
    return max(MIN_DAILY_CALORIES, min(total, MAX_DAILY_CALORIES))


def compute_macros(
    weight: float,
    daily_calories: int,
    activity_level: ActivityLevel | str | None = None,  # noqa: ARG001
    activity_type: ActivityType | str | None = None,
    goal: Goal | str | None = None,
) -> dict[str, int]:
    """Return protein, fat and carbohydrate grams for a calorie target.

    ``activity_level`` is accepted for interface symmetry; the split depends
    on body weight, activity type and goal only.
    """
    if not _is_finite(weight) or weight <= 0:
        weight = DEFAULT_WEIGHT_KG
    if not _is_finite(daily_calories) or daily_calories <= 0:
        daily_calories = DEFAULT_DAILY_CALORIES
    resolved_goal = _member(Goal, goal, DEFAULT_GOAL)
    resolved_type = _member(ActivityType, activity_type, DEFAULT_ACTIVITY_TYPE)

    protein_per_kg = _PROTEIN_PER_KG.get(resolved_goal, 1.6)
    protein_per_kg += _PROTEIN_ACTIVITY_BONUS.get(resolved_type, 0.0)

    protein_g = min(
        round_half_away(weight * protein_per_kg),
        round_half_away(weight * MAX_PROTEIN_PER_KG),
    )
    fat_g = round_half_away(weight * FAT_PER_KG)
    remaining = daily_calories - protein_g * 4 - fat_g * 9
    carbs_g = max(round_half_away(remaining / 4), MIN_CARBS_G)
    return {"protein": protein_g, "fat": fat_g, "carbs": carbs_g}


def compute_targets(
    profile: ProfileAttributes, today: date | None = None
) -> NutritionTargets:
    """Derive full nutrition targets from a profile."""
    resolved = resolve_profile(profile, today)
    calories = compute_calories(resolved)
    macros = compute_macros(
        weight=resolved.weight,
        daily_calories=calories,
        activity_level=resolved.activity_level,
        activity_type=resolved.activity_type,
        goal=resolved.goal,
    )
    return NutritionTargets(
        calories=calories,
        protein=macros["protein"],
        carbs=macros["carbs"],
        fat=macros["fat"],
    )


def _goal_adjustment(profile: ResolvedProfile) -> int:
    """Return the daily kcal delta for the profile's goal."""
    if profile.goal in {Goal.LOSE_WEIGHT, Goal.GAIN_WEIGHT}:
        if not profile.weekly_rate:
            return 0
        daily = round_half_away(profile.weekly_rate * KCAL_PER_KG / 7)
        return -daily if profile.goal is Goal.LOSE_WEIGHT else daily
    if profile.goal is Goal.BUILD_MUSCLE:
        if profile.target_weight < profile.weight:
            return -250
        if profile.experience_level is ExperienceLevel.BEGINNER:
            return 200
        return 150
    return 0


def _activity_level(value: ActivityLevel | str | None) -> ActivityLevel | None:
    """Missing levels take the default; unrecognised ones get the base multiplier."""
    if value is None:
        return DEFAULT_ACTIVITY_LEVEL
    if isinstance(value, ActivityLevel):
        return value
    try:
        return ActivityLevel(str(value).strip().lower())
    except ValueError:
        _logger.warning("Unknown activity level %r, using base multiplier", value)
        return None


def _gender(value: Gender | str | None) -> Gender:
    if value is None:
        return DEFAULT_GENDER
    if isinstance(value, Gender):
        return value
    try:
        return Gender(str(value).strip().lower())
    except ValueError:
        return Gender.OTHER


def _member(enum_cls: type[_E], value: _E | str | None, default: _E) -> _E:
    """Coerce a raw value to an enum member, falling back to ``default``."""
    if value is None:
        return default
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower().replace("-", "_"))
    except ValueError:
        _logger.warning(
            "Unknown %s value %r, using %s", enum_cls.__name__, value, default.value
        )
        return default


def _positive(value: float | None, default: float, field_name: str) -> float:
    if value is None:
        return default
    if _is_finite(value) and value > 0:
        return float(value)
    _logger.warning("Invalid profile %s %s, using %s", field_name, value, default)
    return default


def _is_finite(value: object) -> bool:
    return isinstance(value, int | float) and math.isfinite(value)
