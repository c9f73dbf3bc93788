"""Tests for UserProfile and plan document models."""

import pytest
from backend.app.models.plan import Exercise, GeneratedPlan, Meal, PlanDocument, UserProfile
from pydantic import ValidationError

VALID_PROFILE = {
    "name": "Alex",
    "age": 30,
    "gender": "non-binary",
    "height": 172,
    "weight": 70,
    "fitnessGoal": "Build muscle",
    "fitnessLevel": "Beginner",
    "workoutLocation": "Home",
    "dietaryPreferences": "Vegetarian",
}


class TestUserProfile:
    def test_wire_names_accepted(self) -> None:
        profile = UserProfile(**VALID_PROFILE)
        assert profile.fitness_goal == "Build muscle"
        assert profile.medical_history is None

    def test_python_names_accepted(self) -> None:
        data = {**VALID_PROFILE}
        data["fitness_goal"] = data.pop("fitnessGoal")
        assert UserProfile(**data).fitness_goal == "Build muscle"

    def test_whitespace_collapsed(self) -> None:
        profile = UserProfile(**{**VALID_PROFILE, "name": "  Alex   Doe  "})
        assert profile.name == "Alex Doe"

    @pytest.mark.parametrize(
        ("field", "value"),
        [("age", 5), ("height", 0), ("weight", -3), ("name", "")],
    )
    def test_rejects_invalid(self, field: str, value: object) -> None:
        with pytest.raises(ValidationError):
            UserProfile(**{**VALID_PROFILE, field: value})

    def test_missing_required(self) -> None:
        data = {k: v for k, v in VALID_PROFILE.items() if k != "fitnessGoal"}
        with pytest.raises(ValidationError):
            UserProfile(**data)


class TestExercise:
    def test_numeric_reps_coerced(self) -> None:
        ex = Exercise.model_validate({"name": "Squat", "sets": 3, "reps": 10, "restTime": 60})
        assert ex.reps == "10"
        assert ex.rest_time == "60"

    def test_rest_time_required(self) -> None:
        with pytest.raises(ValidationError):
            Exercise.model_validate({"name": "Squat", "sets": 3, "reps": "10"})


class TestMeal:
    def test_fractional_calories_accepted(self) -> None:
        meal = Meal.model_validate({"name": "Chicken salad", "calories": 550.5})
        assert meal.calories == 550.5

    def test_integer_calories_kept_integral(self) -> None:
        meal = Meal.model_validate({"name": "Oats", "calories": 400})
        assert meal.calories == 400
        assert isinstance(meal.calories, int)

    def test_numeric_macros_coerced(self) -> None:
        meal = Meal.model_validate({
            "name": "Chicken salad",
            "macronutrients": {"protein": 30, "carbs": 12.5, "fats": "9g"},
        })
        assert meal.macronutrients is not None
        assert meal.macronutrients.protein == "30"
        assert meal.macronutrients.carbs == "12.5"
        assert meal.macronutrients.fats == "9g"


class TestPlanDocument:
    DOC = {
        "workoutPlan": [{"day": "Day 1", "exercises": []}],
        "dietPlan": {
            "breakfast": {"name": "Oats"},
            "lunch": {"name": "Salad"},
            "dinner": {"name": "Curry"},
        },
    }

    def test_tips_optional(self) -> None:
        doc = PlanDocument.model_validate(self.DOC)
        assert doc.tips.tips == []
        assert doc.diet_plan.snacks == []

    def test_diet_plan_required(self) -> None:
        with pytest.raises(ValidationError):
            PlanDocument.model_validate({"workoutPlan": []})

    def test_generated_plan_dumps_wire_names(self) -> None:
        plan = GeneratedPlan.model_validate({
            **self.DOC,
            "userData": VALID_PROFILE,
            "modelUsed": "gemini-1.5-flash",
        })
        data = plan.model_dump(by_alias=True, mode="json")
        assert data["modelUsed"] == "gemini-1.5-flash"
        assert data["userData"]["fitnessGoal"] == "Build muscle"
        assert "generatedAt" in data
        assert "workoutPlan" in data
