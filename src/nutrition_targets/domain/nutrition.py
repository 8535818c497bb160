"""Nutrition target and display preference models."""

from dataclasses import dataclass
from enum import Enum


class Provenance(Enum):
    """Where published nutrition values came from."""

    OVERRIDE = "override"
    COMPUTED = "computed"
    DEFAULTED = "defaulted"


class ResolutionStatus(Enum):
    """Lifecycle of a nutrition resolution within a session."""

    UNINITIALIZED = "uninitialized"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    ERROR = "error"


@dataclass(frozen=True)
class NutritionTargets:
    """Daily calorie and macronutrient targets."""

    calories: int
    protein: int
    carbs: int
    fat: int

    def to_document(self) -> dict[str, object]:
        """Return the stored document form."""
        return {
            "calories": self.calories,
            "protein": self.protein,
            "carbs": self.carbs,
            "fat": self.fat,
        }

    @classmethod
    def from_document(cls, document: dict[str, object]) -> "NutritionTargets":
        """Build targets from a stored document, treating missing values as 0."""
        return cls(
            calories=int(document.get("calories") or 0),
            protein=int(document.get("protein") or 0),
            carbs=int(document.get("carbs") or 0),
            fat=int(document.get("fat") or 0),
        )


SAFE_DEFAULT_TARGETS = NutritionTargets(calories=2000, protein=120, carbs=200, fat=70)


@dataclass(frozen=True)
class NutritionState:
    """Nutrition values published to the presentation layer."""

    status: ResolutionStatus
    targets: NutritionTargets
    provenance: Provenance | None = None
    user_id: str | None = None


UNINITIALIZED_STATE = NutritionState(
    status=ResolutionStatus.UNINITIALIZED,
    targets=SAFE_DEFAULT_TARGETS,
)


@dataclass(frozen=True)
class DisplayPreferences:
    """Which progress widgets the user wants to see."""

    show_calories_circle: bool = True
    show_protein_bar: bool = True
    show_fat_bar: bool = True
    show_carbs_bar: bool = True

    def to_document(self) -> dict[str, object]:
        """Return the stored document form."""
        return {
            "show_calories_circle": self.show_calories_circle,
            "show_protein_bar": self.show_protein_bar,
            "show_fat_bar": self.show_fat_bar,
            "show_carbs_bar": self.show_carbs_bar,
        }

    @classmethod
    def from_document(cls, document: dict[str, object]) -> "DisplayPreferences":
        """Build preferences from a document; missing flags default to shown."""
        return cls(
            show_calories_circle=_flag(document.get("show_calories_circle")),
            show_protein_bar=_flag(document.get("show_protein_bar")),
            show_fat_bar=_flag(document.get("show_fat_bar")),
            show_carbs_bar=_flag(document.get("show_carbs_bar")),
        )


def _flag(value: object) -> bool:
    if value is None:
        return True
    return bool(value)
