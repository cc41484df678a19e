"""Populate the content store at startup and certify what was loaded."""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Awaitable, Callable

from vocab_content.errors import ContentError, StartupError

if TYPE_CHECKING:
    from vocab_content.store import ContentStore

log = logging.getLogger("vocab_content.loader")

BASE_DELAY_MS = 1000
MAX_DELAY_MS = 5000
REQUIRED_DISTRACTORS = 3


def backoff_ms(attempt: int) -> int:
    """Delay after failed *attempt* (1-based): 1s, 2s, 4s, then capped at 5s."""
    return min(BASE_DELAY_MS * 2 ** (attempt - 1), MAX_DELAY_MS)


@dataclass
class LoadStats:
    definitions_loaded: int = 0
    sentences_loaded: int = 0
    exercise_templates_loaded: int = 0
    similar_words_loaded: int = 0
    distractors_loaded: int = 0
    load_time_ms: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ValidationResult:
    is_valid: bool
    errors: list[str]
    warnings: list[str]
    stats: dict

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class HealthStatus:
    status: str  # healthy | warning | error
    message: str
    details: dict

    def to_dict(self) -> dict:
        return asdict(self)


class DataLoader:
    def __init__(
        self,
        store: ContentStore,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.store = store
        self._sleep = sleep
        self._loaded = False
        self._stats: LoadStats | None = None

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def load_stats(self) -> LoadStats | None:
        return self._stats

    def reset(self) -> None:
        self._loaded = False
        self._stats = None

    async def load_all_data(self) -> LoadStats:
        """Reload the store, count what came in and validate it."""
        started = time.monotonic()
        log.info("Loading curated data from %s", self.store.data_dir)
        self.reset()

        await self.store.reload()

        totals = self.store.get_stats()
        stats = LoadStats(
            definitions_loaded=totals["total_definitions"],
            sentences_loaded=totals["total_sentences"],
            exercise_templates_loaded=totals["total_exercise_templates"],
            similar_words_loaded=totals["total_similar_words"],
            distractors_loaded=totals["total_distractors"],
        )

        validation = self.validate_data_integrity()
        if not validation.is_valid:
            stats.errors.extend(validation.errors)
            for e in validation.errors:
                log.warning("Validation error: %s", e)
        if validation.warnings:
            log.warning("Validation produced %d warning(s)", len(validation.warnings))
            for w in validation.warnings:
                log.debug("Validation warning: %s", w)

        stats.load_time_ms = int((time.monotonic() - started) * 1000)
        self._stats = stats
        self._loaded = True
        log.info(
            "Loaded %d definitions, %d sentences, %d similar words, %d distractors in %dms",
            stats.definitions_loaded, stats.sentences_loaded,
            stats.similar_words_loaded, stats.distractors_loaded, stats.load_time_ms,
        )
        return stats

    async def initialize_with_retry(self, max_attempts: int = 3) -> LoadStats:
        last_error: Exception | None = None
        for attempt in range(1, max_attempts + 1):
            log.info("Data loading attempt %d/%d", attempt, max_attempts)
            try:
                return await self.load_all_data()
            except (ContentError, OSError) as e:
                last_error = e
                log.error("Attempt %d failed: %s", attempt, e)
                if attempt < max_attempts:
                    delay = backoff_ms(attempt)
                    log.info("Retrying in %dms", delay)
                    await self._sleep(delay / 1000)
        raise StartupError(
            f"Failed to load data after {max_attempts} attempts. Last error: {last_error}",
            attempts=max_attempts,
        )

    def validate_data_integrity(self) -> ValidationResult:
        errors: list[str] = []
        warnings: list[str] = []
        words = sorted(self.store.get_all_words())
        with_sentences = with_similar = with_distractors = 0
        contexts: set[str] = set()

        for word in words:
            sentences = self.store.get_sentence_examples(word)
            if sentences:
                with_sentences += 1
                contexts.update(s.context for s in sentences)
            else:
                warnings.append(f'Word "{word}" has no example sentences')

            if self.store.get_similar_words(word):
                with_similar += 1

            curated = self.store.get_distractor_set(word).curated_count
            if curated >= REQUIRED_DISTRACTORS:
                with_distractors += 1
            else:
                warnings.append(
                    f'Word "{word}" has insufficient distractors ({curated}/{REQUIRED_DISTRACTORS})'
                )

            record = self.store.get_definition_record(word)
            if not record.general.strip():
                errors.append(f'Word "{word}" has an empty general definition')

        known = set(words)
        for headword in sorted(self.store.get_sentence_headwords() - known):
            warnings.append(f'Sentence file "{headword}.json" has no matching definition')

        templates = self.store.get_template_contexts()
        for ctx in sorted(contexts):
            if ctx.lower() not in templates:
                warnings.append(f'No exercise templates found for context "{ctx}"')

        return ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            stats={
                "total_words": len(words),
                "words_with_sentences": with_sentences,
                "words_with_similar": with_similar,
                "words_with_distractors": with_distractors,
                "contexts_found": sorted(contexts),
            },
        )

    def health_status(self) -> HealthStatus:
        if not self._loaded:
            if self.store.is_loaded:
                return HealthStatus("warning", "Load stats unavailable", {"loaded": True, "stats": None})
            return HealthStatus("error", "Data not loaded", {"loaded": False})
        if self._stats is None:
            return HealthStatus("warning", "Load stats unavailable", {"loaded": True, "stats": None})
        if self._stats.errors:
            return HealthStatus(
                "error",
                "Data loaded with errors",
                {"loaded": True, "errors": list(self._stats.errors), "stats": self._stats.to_dict()},
            )
        return HealthStatus(
            "healthy", "All data loaded successfully", {"loaded": True, "stats": self._stats.to_dict()}
        )
