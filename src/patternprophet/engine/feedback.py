"""Learner-facing text: feedback ladder, suggestions and hints."""

from __future__ import annotations

from patternprophet.engine.elements import InteractionPattern

# (minimum confidence, message), checked top to bottom
FEEDBACK_LADDER: list[tuple[float, str]] = [
    (0.9, "Excellent! You've identified the pattern perfectly."),
    (0.7, "Great work! You're very close to the complete pattern."),
    (0.5, "Good start! You've got part of the pattern right."),
]
FALLBACK_FEEDBACK = "Keep exploring! Look at how the elements change from one to the next."

GENERIC_SUGGESTIONS: tuple[str, ...] = (
    "Try focusing on one property at a time (shape, color, size)",
    "Look for what stays the same and what changes",
    "Check if there's a repeating cycle",
)

OPENING_HINT = "Look at how the shapes change from one to the next"
CLOSING_HINTS: tuple[str, ...] = (
    "Try to continue the pattern you see",
    "There might be more than one correct answer",
)

RULE_HINTS: dict[str, str] = {
    "increment": "Notice how the {property} is changing step by step",
    "alternating": "The {property} follows an alternating pattern",
    "pattern": "There's a repeating pattern in the {property}",
    "conditional": "The {property} depends on another property of each shape",
}

INTERACTION_HINTS: dict[InteractionPattern, str] = {
    InteractionPattern.FRUSTRATED: (
        "Take your time. There's no rush. "
        "Look at the first few shapes and see what feels familiar."
    ),
    InteractionPattern.SYSTEMATIC: (
        "Focus on the {property} property. What mathematical relationship do you notice?"
    ),
    InteractionPattern.RANDOM: (
        "Try looking at the pattern step by step. "
        "What happens to each {property} as you move from left to right?"
    ),
    InteractionPattern.EXPLORATORY: (
        "Experiment with different possibilities. "
        "What would make sense to continue this pattern?"
    ),
}


def feedback_for_confidence(confidence: float) -> str:
    for threshold, message in FEEDBACK_LADDER:
        if confidence >= threshold:
            return message
    return FALLBACK_FEEDBACK


def rule_hint(rule_type: str, prop: str) -> str:
    template = RULE_HINTS.get(rule_type, "Watch how the {property} changes")
    return template.format(property=_display_name(prop))


def interaction_hint(pattern: InteractionPattern, prop: str) -> str:
    template = INTERACTION_HINTS.get(pattern, INTERACTION_HINTS[InteractionPattern.EXPLORATORY])
    return template.format(property=_display_name(prop))


def _display_name(prop: str) -> str:
    return prop.replace("_", " ")
