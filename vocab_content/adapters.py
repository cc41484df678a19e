"""One façade per functional area, backed by either the manual or the LLM engine.

The engine is picked once by :func:`build_adapters`; the adapters only forward.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

from vocab_content.exercises import ExerciseGenerator
from vocab_content.passages import PassageComposer
from vocab_content.services.llm_services import (
    LLMLearnEngine,
    LLMQuizEngine,
    LLMVocabularyEngine,
    LLMWordEngine,
)
from vocab_content.services.manual_learn import ManualLearnEngine
from vocab_content.services.manual_quiz import ManualQuizEngine
from vocab_content.services.manual_vocabulary import ManualVocabularyEngine
from vocab_content.services.manual_words import ManualWordEngine

if TYPE_CHECKING:
    from vocab_content.config import Settings
    from vocab_content.heuristics import DifficultyStrategy
    from vocab_content.models import Exercise, WordItem
    from vocab_content.providers.base import LLMProvider
    from vocab_content.store import ContentStore

log = logging.getLogger("vocab_content.adapters")


def build_llm(settings: Settings) -> LLMProvider:
    if settings.llm_provider == "ollama":
        from vocab_content.providers.llm_ollama import OllamaProvider
        return OllamaProvider(base_url=settings.ollama_url, model=settings.llm_model)
    elif settings.llm_provider == "anthropic":
        from vocab_content.providers.llm_anthropic import AnthropicProvider
        return AnthropicProvider(model=settings.llm_model)
    elif settings.llm_provider == "openai":
        from vocab_content.providers.llm_openai import OpenAIProvider
        return OpenAIProvider(model=settings.llm_model)
    raise ValueError(f"Unknown LLM provider: {settings.llm_provider}")


class _ServiceAdapter:
    def __init__(self, engine):
        self._engine = engine

    @property
    def mode(self) -> str:
        return self._engine.mode

    def get_health_status(self) -> dict:
        available, details = self._engine.health()
        return {"mode": self.mode, "available": available, "details": details}


class WordServiceAdapter(_ServiceAdapter):
    async def generate_definition(self, word: str, context: str, base_language: str = "English",
                                  target_language: str = "English") -> str:
        return await self._engine.generate_definition(word, context, base_language, target_language)

    async def validate_answer(self, user_answer: str, correct_answer: str, context: str,
                              base_language: str = "English", target_language: str = "English") -> dict:
        return await self._engine.validate_answer(
            user_answer, correct_answer, context, base_language, target_language
        )

    async def generate_examples(self, word: str, meaning: str, context: str, base_language: str = "English",
                                target_language: str = "English") -> list:
        return await self._engine.generate_examples(word, meaning, context, base_language, target_language)

    async def generate_similar_words(self, word: str, meaning: str, context: str,
                                     base_language: str = "English", target_language: str = "English") -> dict:
        return await self._engine.generate_similar_words(word, meaning, context, base_language, target_language)

    async def generate_light_reading(self, words: Sequence[WordItem], context: str,
                                     base_language: str = "English", target_language: str = "English",
                                     level: str = "intermediate") -> dict:
        return await self._engine.generate_light_reading(words, context, base_language, target_language, level)

    async def has_word(self, word: str) -> bool:
        return await self._engine.has_word(word)

    async def get_all_words(self) -> list[str]:
        return await self._engine.get_all_words()

    async def add_word_definition(self, word: str, definition: str, context: str,
                                  difficulty: str = "intermediate", part_of_speech: str = "noun"):
        return await self._engine.add_word_definition(word, definition, context, difficulty, part_of_speech)


class VocabularyServiceAdapter(_ServiceAdapter):
    async def generate_words(self, count: int, difficulty: str | None, context: str,
                             base_language: str = "English", target_language: str = "English",
                             exclude_words: Sequence[str] = ()) -> list[dict]:
        return await self._engine.generate_words(
            count, difficulty, context, base_language, target_language, exclude_words
        )

    async def get_word_details(self, word: str, context: str, base_language: str = "English",
                               target_language: str = "English") -> dict:
        return await self._engine.get_word_details(word, context, base_language, target_language)

    async def get_vocabulary_stats(self, context: str) -> dict:
        return await self._engine.get_vocabulary_stats(context)

    async def check_vocabulary_capability(self, context: str) -> dict:
        return await self._engine.check_vocabulary_capability(context)

    async def search_words(self, query: str, context: str | None = None, difficulty: str | None = None,
                           limit: int = 10) -> list[dict]:
        return await self._engine.search_words(query, context, difficulty, limit)

    async def get_word_suggestions(self, existing_words: Sequence[str], context: str, count: int = 5) -> list[dict]:
        return await self._engine.get_word_suggestions(existing_words, context, count)


class LearnServiceAdapter(_ServiceAdapter):
    async def generate_exercises(self, words: Sequence[WordItem], context: str, exercise_types: Sequence[str],
                                 base_language: str = "English", target_language: str = "English") -> list[Exercise]:
        return await self._engine.generate_exercises(words, context, exercise_types, base_language, target_language)

    async def generate_exercises_by_type(self, words: Sequence[WordItem], context: str, exercise_type: str,
                                         base_language: str = "English",
                                         target_language: str = "English") -> list[Exercise]:
        return await self._engine.generate_exercises_by_type(
            words, context, exercise_type, base_language, target_language
        )

    async def validate_exercise_answer(self, exercise_id: str, user_answer: str, exercise: Exercise) -> dict:
        return await self._engine.validate_exercise_answer(exercise_id, user_answer, exercise)

    async def get_exercise_stats(self, words: Sequence[WordItem], context: str) -> dict:
        return await self._engine.get_exercise_stats(words, context)

    async def get_difficulty_recommendations(self, words: Sequence[WordItem]) -> dict:
        return await self._engine.get_difficulty_recommendations(words)

    async def check_exercise_generation_capability(self, words: Sequence[WordItem], context: str,
                                                   exercise_types: Sequence[str] = ()) -> dict:
        return await self._engine.check_exercise_generation_capability(words, context, exercise_types)


class QuizServiceAdapter(_ServiceAdapter):
    async def generate_questions(self, words: Sequence[WordItem], context: str, question_types: Sequence[str] = (),
                                 limit: int | None = None) -> list[dict]:
        return await self._engine.generate_questions(words, context, question_types, limit)

    async def get_quiz_stats(self, words: Sequence[WordItem], context: str) -> dict:
        return await self._engine.get_quiz_stats(words, context)

    async def check_quiz_generation_capability(self, words: Sequence[WordItem], context: str) -> dict:
        return await self._engine.check_quiz_generation_capability(words, context)


@dataclass
class Adapters:
    words: WordServiceAdapter
    vocabulary: VocabularyServiceAdapter
    learn: LearnServiceAdapter
    quiz: QuizServiceAdapter

    @property
    def mode(self) -> str:
        return self.words.mode

    def health(self) -> dict:
        return {
            "words": self.words.get_health_status(),
            "vocabulary": self.vocabulary.get_health_status(),
            "learn": self.learn.get_health_status(),
            "quiz": self.quiz.get_health_status(),
        }


def build_adapters(
    settings: Settings,
    store: ContentStore,
    llm: LLMProvider | None = None,
    difficulty: DifficultyStrategy | None = None,
    rng: random.Random | None = None,
) -> Adapters:
    """Pick manual or LLM engines for every area, once."""
    if settings.manual_data_mode:
        generator = ExerciseGenerator(store, difficulty, rng)
        composer = PassageComposer(store, rng)
        adapters = Adapters(
            words=WordServiceAdapter(ManualWordEngine(store, composer)),
            vocabulary=VocabularyServiceAdapter(ManualVocabularyEngine(store, difficulty, rng)),
            learn=LearnServiceAdapter(ManualLearnEngine(generator)),
            quiz=QuizServiceAdapter(ManualQuizEngine(generator)),
        )
    else:
        llm = llm or build_llm(settings)
        adapters = Adapters(
            words=WordServiceAdapter(LLMWordEngine(llm)),
            vocabulary=VocabularyServiceAdapter(LLMVocabularyEngine(llm)),
            learn=LearnServiceAdapter(LLMLearnEngine(llm)),
            quiz=QuizServiceAdapter(LLMQuizEngine(llm)),
        )
    log.info("Service adapters using %s engines", adapters.mode)
    return adapters
