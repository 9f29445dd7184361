"""
Utterance classifiers that turn a user message into memory atoms.

The default classifier is a fixed trigger-phrase table. Rules are
non-exclusive: one utterance may yield several atoms of different types,
each carrying the full utterance as its text.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from ..models import MemoryAtom, normalize_tags


class Classifier(ABC):
    """Extracts candidate memory atoms from an utterance."""

    @abstractmethod
    def classify(self, utterance: str, tags: Sequence[str]) -> List[MemoryAtom]:
        pass


@dataclass(frozen=True)
class TriggerRule:
    memory_type: str
    contains: Tuple[str, ...] = ()
    starts_with: Tuple[str, ...] = ()

    def matches(self, lowered: str) -> bool:
        return (
            any(lowered.startswith(prefix) for prefix in self.starts_with)
            or any(phrase in lowered for phrase in self.contains)
        )


DEFAULT_RULES: Tuple[TriggerRule, ...] = (
    TriggerRule(
        "preference",
        contains=(
            "i prefer", "i'd like", "i like", "don't", "do not",
            "please always", "please never", "going forward",
        ),
    ),
    TriggerRule(
        "profile",
        contains=("my name is", "call me "),
        starts_with=("i am ", "i'm "),
    ),
    TriggerRule("goal", contains=("working on", "our goal is")),
    TriggerRule(
        "note",
        contains=("remember that", "remember this", "note that", "keep in mind"),
    ),
)


class RuleBasedClassifier(Classifier):
    """Matches the lowercased utterance against a trigger-phrase rule table."""

    def __init__(self, rules: Sequence[TriggerRule] = DEFAULT_RULES):
        self.rules = tuple(rules)

    def classify(self, utterance: str, tags: Sequence[str]) -> List[MemoryAtom]:
        lowered = utterance.lower()
        atom_tags = normalize_tags(list(tags))
        return [
            MemoryAtom(text=utterance, type=rule.memory_type, tags=atom_tags)
            for rule in self.rules
            if rule.matches(lowered)
        ]
