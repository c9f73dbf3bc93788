"""Pydantic models for the user profile and the generated plan document.

Field names follow the JSON wire shape the generation prompt asks for
(``restTime``, ``workoutPlan`` ...) via aliases; Python code uses snake_case.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

_MULTI_WHITESPACE = re.compile(r"[^\S\n]+")


def normalize_whitespace(text: str) -> str:
    """Collapse runs of spaces/tabs (preserving single newlines)."""
    return _MULTI_WHITESPACE.sub(" ", text.strip())


class _WireModel(BaseModel):
    """Accepts both wire (camelCase) and Python field names."""

    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


class UserProfile(_WireModel):
    """Person the plan is generated for."""

    name: str = Field(..., min_length=1, max_length=200)
    age: int = Field(..., ge=10, le=120)
    gender: str = Field(..., min_length=1, max_length=50)
    height: float = Field(..., gt=0, le=300, description="Height in cm")
    weight: float = Field(..., gt=0, le=500, description="Weight in kg")
    fitness_goal: str = Field(..., alias="fitnessGoal", min_length=1, max_length=200)
    fitness_level: str = Field(..., alias="fitnessLevel", min_length=1, max_length=100)
    workout_location: str = Field(..., alias="workoutLocation", min_length=1, max_length=100)
    dietary_preferences: str = Field(
        ..., alias="dietaryPreferences", min_length=1, max_length=500,
    )
    medical_history: str | None = Field(default=None, alias="medicalHistory", max_length=2_000)
    stress_level: str | None = Field(default=None, alias="stressLevel", max_length=100)

    @field_validator(
        "name",
        "gender",
        "fitness_goal",
        "fitness_level",
        "workout_location",
        "dietary_preferences",
        "medical_history",
        "stress_level",
        mode="before",
    )
    @classmethod
    def normalize_text(cls, v: str | None) -> str | None:
        if isinstance(v, str):
            return normalize_whitespace(v)
        return v


# ---------------------------------------------------------------------------
# Plan document
# ---------------------------------------------------------------------------


def _number_to_str(v: object) -> object:
    # Models sometimes emit ``"reps": 10`` instead of ``"10"``.
    if isinstance(v, int | float) and not isinstance(v, bool):
        return str(v)
    return v


class Exercise(_WireModel):
    name: str
    sets: int
    reps: str
    rest_time: str = Field(..., alias="restTime")
    description: str | None = None

    @field_validator("reps", "rest_time", mode="before")
    @classmethod
    def coerce_to_str(cls, v: object) -> object:
        return _number_to_str(v)


class WorkoutDay(_WireModel):
    day: str
    exercises: list[Exercise]
    duration: str | None = None
    notes: str | None = None


class Macronutrients(_WireModel):
    protein: str | None = None
    carbs: str | None = None
    fats: str | None = None

    @field_validator("protein", "carbs", "fats", mode="before")
    @classmethod
    def coerce_to_str(cls, v: object) -> object:
        return _number_to_str(v)


class Meal(_WireModel):
    name: str
    calories: int | float | None = None
    macronutrients: Macronutrients | None = None
    description: str | None = None


class DietPlan(_WireModel):
    breakfast: Meal
    lunch: Meal
    dinner: Meal
    snacks: list[Meal] = Field(default_factory=list)


class TipsAndMotivation(_WireModel):
    tips: list[str] = Field(default_factory=list)
    motivation: list[str] = Field(default_factory=list)
    lifestyle_advice: list[str] | None = Field(default=None, alias="lifestyleAdvice")


class PlanDocument(_WireModel):
    """The structured value the generation pipeline must produce."""

    workout_plan: list[WorkoutDay] = Field(..., alias="workoutPlan")
    diet_plan: DietPlan = Field(..., alias="dietPlan")
    # Last section emitted; truncated output often loses it entirely.
    tips: TipsAndMotivation = Field(default_factory=TipsAndMotivation)


class GeneratedPlan(PlanDocument):
    """A validated plan plus provenance, as returned to the caller."""

    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), alias="generatedAt",
    )
    user_data: UserProfile = Field(..., alias="userData")
    model_used: str = Field(..., alias="modelUsed")
