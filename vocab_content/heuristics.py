"""Stand-in difficulty and part-of-speech guesses.

These approximate metadata the curated data does not always carry.  Anything
that needs a difficulty takes a ``DifficultyStrategy`` so a real source can be
swapped in.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from vocab_content.store import ContentStore

DifficultyStrategy = Callable[[str], str]

COMPLEX_CONTEXTS = frozenset({"academic", "legal", "medical", "technology"})
FUNCTION_WORDS = frozenset({"the", "and", "or", "but", "in", "on", "at", "to", "for", "with"})

_COMMON_NOUNS = {"book", "house", "car", "tree", "person"}
_COMMON_VERBS = {"run", "walk", "eat", "think", "write"}
_COMMON_ADJECTIVES = {"big", "small", "beautiful", "difficult", "easy"}


def length_difficulty(word: str) -> str:
    n = len(word)
    if n <= 4:
        return "beginner"
    if n <= 8:
        return "intermediate"
    return "advanced"


def curated_difficulty(store: ContentStore, fallback: DifficultyStrategy = length_difficulty) -> DifficultyStrategy:
    """Prefer the difficulty recorded on the word's Definition."""

    def strategy(word: str) -> str:
        record = store.get_definition_record(word)
        if record is not None:
            return record.difficulty
        return fallback(word)

    return strategy


def guess_part_of_speech(word: str) -> str:
    w = word.lower()
    if w in _COMMON_NOUNS:
        return "noun"
    if w in _COMMON_VERBS:
        return "verb"
    if w in _COMMON_ADJECTIVES:
        return "adjective"
    if w.endswith("ing") or w.endswith("ed"):
        return "verb"
    if w.endswith("ly"):
        return "adverb"
    return "noun"


def difficulty_score(word: str, context: str) -> int:
    """1-10 score from word length and context."""
    score = 0
    if len(word) > 8:
        score += 2
    if len(word) > 12:
        score += 1
    if context.lower() in COMPLEX_CONTEXTS:
        score += 2
    if word.lower() in FUNCTION_WORDS:
        score -= 2
    return max(1, min(10, score))


def quiz_difficulty(word: str, context: str) -> str:
    score = difficulty_score(word, context)
    if score <= 3:
        return "easy"
    if score <= 6:
        return "medium"
    return "hard"


def word_frequency(word: str) -> str:
    if word.lower() in FUNCTION_WORDS or len(word) <= 6:
        return "common"
    if len(word) <= 10:
        return "uncommon"
    return "rare"
