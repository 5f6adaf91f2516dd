"""Keyword gate deciding whether a user utterance should produce a micro-tool."""
from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, List

MIN_UTTERANCE_LENGTH = 15


class TriggerIntent(str, Enum):
    frustration = "frustration"
    help_request = "help_request"
    correction = "correction"


TRIGGER_PHRASES: Dict[TriggerIntent, FrozenSet[str]] = {
    TriggerIntent.frustration: frozenset(
        {
            "frustrat",
            "annoying",
            "annoy",
            "problem",
            "difficult",
            "hate",
            "ugh",
            "wish",
            "struggle",
        }
    ),
    TriggerIntent.help_request: frozenset(
        {
            "help me",
            "need help",
            "can you help",
            "build me",
            "create a tool",
            "make me a",
            "i need a tool",
        }
    ),
    TriggerIntent.correction: frozenset(
        {
            "that's not right",
            "that's not what i meant",
            "i meant",
            "actually",
            "no, i need",
            "what i really need",
            "let me clarify",
            "i was thinking",
            "something more like",
            "instead of that",
            "can you make it",
            "can you change it",
        }
    ),
}


def _contains_any(text: str, phrases: FrozenSet[str]) -> bool:
    return any(phrase in text for phrase in phrases)


def matched_intents(utterance: str) -> List[TriggerIntent]:
    """Intents with at least one phrase present, ignoring the length gate."""
    lowered = (utterance or "").lower()
    return [intent for intent, phrases in TRIGGER_PHRASES.items() if _contains_any(lowered, phrases)]


def should_generate_artifact(utterance: str) -> bool:
    if not utterance or len(utterance) <= MIN_UTTERANCE_LENGTH:
        return False
    lowered = utterance.lower()
    return any(_contains_any(lowered, phrases) for phrases in TRIGGER_PHRASES.values())
