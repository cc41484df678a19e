"""Word selection, details and catalogue statistics from curated data."""
from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING, Sequence

from vocab_content.errors import WordNotFoundError
from vocab_content.exercises import shuffle
from vocab_content.heuristics import DifficultyStrategy, curated_difficulty, word_frequency
from vocab_content.models import DIFFICULTIES, Found

if TYPE_CHECKING:
    from vocab_content.store import ContentStore

log = logging.getLogger("vocab_content.vocabulary")

SIMILAR_PREVIEW = 3


def coverage_label(n: int) -> str:
    if n < 10:
        return "poor"
    if n < 30:
        return "limited"
    if n < 100:
        return "good"
    return "excellent"


class ManualVocabularyEngine:
    mode = "manual"

    def __init__(
        self,
        store: ContentStore,
        difficulty: DifficultyStrategy | None = None,
        rng: random.Random | None = None,
    ):
        self.store = store
        self.difficulty = difficulty or curated_difficulty(store)
        self.rng = rng or random.Random()

    def health(self) -> tuple[bool, dict]:
        return self.store.is_loaded, {
            "data_loaded": self.store.is_loaded,
            "total_words": len(self.store.get_all_words()),
        }

    def _context_words(self, context: str) -> list[str]:
        return sorted(
            w for w in self.store.get_all_words()
            if isinstance(self.store.lookup_definition(w, context), Found)
        )

    def _pronunciation(self, word: str) -> str:
        record = self.store.get_definition_record(word)
        if record is not None and record.pronunciation:
            return record.pronunciation
        return f"/{word}/"

    def _summary(self, word: str, context: str, fallback_example: str, similar_limit: int | None = None) -> dict:
        examples = self.store.get_sentence_examples(word)
        similar = [s.to_dict() for s in self.store.get_similar_words(word)]
        return {
            "word": word,
            "meaning": self.store.get_definition(word, context),
            "example": examples[0].sentence if examples else fallback_example,
            "difficulty_level": self.difficulty(word),
            "context": context,
            "part_of_speech": self.store.get_part_of_speech(word),
            "similar_words": similar[:similar_limit] if similar_limit else similar,
            "pronunciation": self._pronunciation(word),
        }

    async def generate_words(
        self,
        count: int,
        difficulty: str | None,
        context: str,
        base_language: str = "English",
        target_language: str = "English",
        exclude_words: Sequence[str] = (),
    ) -> list[dict]:
        excluded = {w.lower() for w in exclude_words}
        candidates = [w for w in self._context_words(context) if w not in excluded]
        if difficulty:
            candidates = [w for w in candidates if self.difficulty(w) == difficulty]
        selected = shuffle(candidates, self.rng)[: max(count, 0)]
        log.info("Selected %d/%d words for %r (%s)", len(selected), len(candidates), context, difficulty or "any")
        return [
            self._summary(w, context, f'Example sentence for "{w}" would go here.', SIMILAR_PREVIEW)
            for w in selected
        ]

    async def get_word_details(
        self, word: str, context: str, base_language: str = "English", target_language: str = "English"
    ) -> dict:
        if not isinstance(self.store.lookup_definition(word, context), Found):
            raise WordNotFoundError(word, context)
        details = self._summary(word, context, f'Example: "{word}" is commonly used in {context} contexts.')
        details.update(
            contextual_definitions=self.store.get_contextual_definitions(word),
            usage_notes=f'"{word}" is commonly used in {context} contexts.',
            frequency=word_frequency(word),
            translations={
                base_language: word,
                target_language: f'[{target_language} translation of "{word}"]',
            },
        )
        return details

    async def get_vocabulary_stats(self, context: str) -> dict:
        words = self._context_words(context)
        distribution = {d: 0 for d in DIFFICULTIES}
        for w in words:
            level = self.difficulty(w)
            if level in distribution:
                distribution[level] += 1
        return {
            "total_words": len(words),
            "available_contexts": self.store.get_available_contexts(),
            "difficulty_distribution": distribution,
            "average_word_length": round(sum(len(w) for w in words) / len(words), 2) if words else 0,
            "most_common_words": sorted(words, key=len)[:10],
        }

    async def check_vocabulary_capability(self, context: str) -> dict:
        n = len(self._context_words(context))
        suggestions = []
        if n == 0:
            suggestions = [
                f'No vocabulary found for context "{context}"',
                "Check if the context name is correct",
                "Add vocabulary data for this context",
            ]
        elif n < 10:
            suggestions = [
                f"Limited vocabulary available ({n} words)",
                "Consider adding more words for better variety",
            ]
        elif n < 50:
            suggestions = ["Moderate vocabulary available - consider expanding"]
        return {
            "can_generate": n > 0,
            "available_words": n,
            "coverage": coverage_label(n),
            "suggestions": suggestions,
        }

    async def search_words(
        self, query: str, context: str | None = None, difficulty: str | None = None, limit: int = 10
    ) -> list[dict]:
        """Headwords whose spelling or general definition contains *query*."""
        q = query.strip().lower()
        if not q:
            return []
        hits = []
        for record in sorted(self.store.get_all_definitions(), key=lambda d: d.word):
            if difficulty and self.difficulty(record.word) != difficulty:
                continue
            if q in record.word or q in record.general.lower():
                hits.append({
                    "word": record.word,
                    "meaning": self.store.get_definition(record.word, context),
                    "difficulty_level": self.difficulty(record.word),
                    "part_of_speech": record.part_of_speech,
                })
        return hits[:limit]

    async def get_word_suggestions(
        self, existing_words: Sequence[str], context: str, count: int = 5
    ) -> list[dict]:
        """Curated similar words of *existing_words*, topped up with words
        that have material for *context*."""
        known = {w.lower() for w in existing_words}
        suggestions: dict[str, dict] = {}
        for word in existing_words:
            for similar in self.store.get_similar_words(word):
                key = similar.word.lower()
                if key in known or key in suggestions:
                    continue
                suggestions[key] = {
                    "word": similar.word,
                    "reason": f'Similar to "{word}"',
                    "confidence": similar.similarity_score,
                }

        ctx = (context or "").lower()
        for word in sorted(self.store.get_all_words()):
            if len(suggestions) >= count:
                break
            if word in known or word in suggestions:
                continue
            if ctx in self.store.get_contextual_definitions(word) or (
                ctx and self.store.get_sentence_examples(word, ctx)
            ):
                suggestions[word] = {
                    "word": word,
                    "reason": f"Curated material for {context}",
                    "confidence": 0.5,
                }

        ranked = sorted(suggestions.values(), key=lambda s: -s["confidence"])
        return ranked[: max(count, 0)]
