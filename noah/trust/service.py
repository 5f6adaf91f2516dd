"""Heuristic trust meter driven by conversation events."""
from __future__ import annotations

from dataclasses import dataclass

INITIAL_TRUST = 50
MIN_TRUST = 0
MAX_TRUST = 100

UNCERTAINTY_BONUS = 5
CHALLENGE_BONUS = 3
SKEPTIC_TOGGLE_PENALTY = 10

UNCERTAINTY_PHRASES = ("uncertain", "not sure")


def _clamp(value: int) -> int:
    return max(MIN_TRUST, min(MAX_TRUST, value))


def admits_uncertainty(reply: str) -> bool:
    lowered = (reply or "").lower()
    return any(phrase in lowered for phrase in UNCERTAINTY_PHRASES)


def challenge_prompt(reply: str) -> str:
    return (
        f'I want to challenge your previous response: "{reply}". '
        "Can you think about this differently or explain your reasoning more clearly?"
    )


@dataclass
class TrustMeter:
    level: int = INITIAL_TRUST
    skeptic_mode: bool = False

    def __post_init__(self) -> None:
        self.level = _clamp(self.level)

    def on_assistant_reply(self, reply: str) -> int:
        # admitting uncertainty earns trust
        if admits_uncertainty(reply):
            self.level = _clamp(self.level + UNCERTAINTY_BONUS)
        return self.level

    def on_challenge(self) -> int:
        self.level = _clamp(self.level + CHALLENGE_BONUS)
        return self.level

    def toggle_skeptic_mode(self) -> int:
        # both directions cost trust
        self.skeptic_mode = not self.skeptic_mode
        self.level = _clamp(self.level - SKEPTIC_TOGGLE_PENALTY)
        return self.level
