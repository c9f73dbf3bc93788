"""Deterministic prompt assembly for plan and motivation generation.

Identical inputs always produce byte-for-byte identical output, so every
retry of one request sends the same prompt.

Usage::

    from backend.app.services.prompt_builder import build_plan_prompt

    prompt_text, metadata = build_plan_prompt(profile)
"""

import logging
import re

from backend.app.core.logging import EVENT_PROMPT_ASSEMBLED, log_event
from backend.app.models.plan import UserProfile

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MAX_WORKOUT_DAYS: int = 3
MAX_EXERCISES_PER_DAY: int = 3
MAX_DESCRIPTION_WORDS: int = 8

PLAN_SHAPE_EXAMPLE = """{
  "workoutPlan": [
    {
      "day": "Day 1 - Monday",
      "exercises": [
        { "name": "Exercise", "sets": 3, "reps": "10-12", "restTime": "60s", "description": "Short tip" }
      ],
      "duration": "45 min"
    }
  ],
  "dietPlan": {
    "breakfast": { "name": "Meal", "calories": 400 },
    "lunch": { "name": "Meal", "calories": 500 },
    "dinner": { "name": "Meal", "calories": 450 },
    "snacks": [{ "name": "Snack", "calories": 150 }]
  },
  "tips": {
    "tips": ["Tip 1", "Tip 2"],
    "motivation": ["Quote 1"],
    "lifestyleAdvice": ["Advice 1"]
  }
}"""

OUTPUT_INSTRUCTIONS = """CRITICAL INSTRUCTIONS:
1. Return ONLY valid JSON - no markdown code blocks, no explanations
2. Start with { and end with }
3. Keep response SHORT to prevent truncation
4. Validate JSON syntax before responding
5. Use double quotes only, never single quotes or apostrophes"""

MOTIVATION_ROLE = "You are a motivational fitness coach. Provide inspiring quotes."

# Regex: three or more consecutive newlines (with optional whitespace-only lines)
_EXCESS_BLANK_LINES = re.compile(r"(\n[ \t]*){3,}")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def normalize_whitespace(text: str) -> str:
    """Normalize whitespace in *text*.

    - Strip leading/trailing whitespace
    - Convert Windows newlines (``\\r\\n``) to ``\\n``
    - Collapse runs of >2 consecutive blank lines to exactly 2
    """
    text = text.strip()
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _EXCESS_BLANK_LINES.sub("\n\n", text)
    return text


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _profile_lines(profile: UserProfile) -> list[str]:
    lines = [
        f"- Name: {profile.name}",
        f"- Age: {profile.age}",
        f"- Gender: {profile.gender}",
        f"- Height: {_format_number(profile.height)} cm",
        f"- Weight: {_format_number(profile.weight)} kg",
        f"- Fitness Goal: {profile.fitness_goal}",
        f"- Fitness Level: {profile.fitness_level}",
        f"- Workout Location: {profile.workout_location}",
        f"- Dietary Preferences: {profile.dietary_preferences}",
    ]
    if profile.medical_history:
        lines.append(f"- Medical History: {profile.medical_history}")
    if profile.stress_level:
        lines.append(f"- Stress Level: {profile.stress_level}")
    return lines


# ---------------------------------------------------------------------------
# Prompt assembly
# ---------------------------------------------------------------------------


def build_plan_prompt(profile: UserProfile) -> tuple[str, dict[str, object]]:
    """Build the plan-generation prompt for *profile*.

    Returns ``(prompt_text, prompt_metadata)``.
    """
    sections: list[str] = []

    # ── 1. Role ─────────────────────────────────────────────────────────
    sections.append(
        "You are an expert fitness coach and nutritionist. "
        "Create a short, valid JSON fitness plan for the user below."
    )

    # ── 2. User details ─────────────────────────────────────────────────
    sections.append("User Details:\n" + "\n".join(_profile_lines(profile)))

    # ── 3. Target shape ─────────────────────────────────────────────────
    sections.append(
        "Return ONLY valid JSON in this exact structure "
        "(no markdown, no text outside JSON):\n\n" + PLAN_SHAPE_EXAMPLE
    )

    # ── 4. Rules ────────────────────────────────────────────────────────
    rules = [
        "Output MUST be valid JSON only (no markdown, no text before/after)",
        f"Maximum {MAX_WORKOUT_DAYS} workout days (keep it short)",
        f"Maximum {MAX_EXERCISES_PER_DAY} exercises per day",
        f"Exercise descriptions: MAX {MAX_DESCRIPTION_WORDS} words each (be very brief)",
        "No long text anywhere - keep everything concise",
        "Start with { and end with }",
        "Validate all commas and brackets are correct",
    ]
    sections.append("STRICT RULES (MUST FOLLOW):\n" + "\n".join(f"- {r}" for r in rules))

    # ── 5. Output instructions ──────────────────────────────────────────
    sections.append(OUTPUT_INSTRUCTIONS)

    prompt_text = normalize_whitespace("\n\n".join(sections))
    metadata: dict[str, object] = {
        "prompt_length": len(prompt_text),
        "has_medical_history": bool(profile.medical_history),
    }

    log_event(logger, "info", EVENT_PROMPT_ASSEMBLED, kind="plan", length=len(prompt_text))
    return prompt_text, metadata


def build_motivation_prompt() -> str:
    """Prompt for one short motivational quote."""
    return normalize_whitespace(
        f"{MOTIVATION_ROLE}\n\n"
        "Generate one short, motivational quote (1-2 sentences) about fitness "
        "or perseverance.\nReturn ONLY the quote text, nothing else."
    )
