"""Practice exercises over a caller's word list, from curated data."""
from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from vocab_content.exercises import parse_exercise_types
from vocab_content.models import Exercise, ExerciseType, WordItem

if TYPE_CHECKING:
    from vocab_content.exercises import ExerciseGenerator


def recommended_difficulty(words: Sequence[WordItem]) -> str:
    if not words:
        return "beginner"
    average = sum(len(w.value) for w in words) / len(words)
    if average > 10:
        return "advanced"
    if average > 6:
        return "intermediate"
    return "beginner"


class ManualLearnEngine:
    mode = "manual"

    def __init__(self, generator: ExerciseGenerator):
        self.generator = generator
        self.store = generator.store

    def health(self) -> tuple[bool, dict]:
        return self.store.is_loaded, {
            "data_loaded": self.store.is_loaded,
            "total_words": len(self.store.get_all_words()),
        }

    async def generate_exercises(
        self,
        words: Sequence[WordItem],
        context: str,
        exercise_types: Sequence[str],
        base_language: str = "English",
        target_language: str = "English",
    ) -> list[Exercise]:
        return self.generator.generate_exercises(words, context, exercise_types)

    async def generate_exercises_by_type(
        self,
        words: Sequence[WordItem],
        context: str,
        exercise_type: str,
        base_language: str = "English",
        target_language: str = "English",
    ) -> list[Exercise]:
        return self.generator.generate_exercises(words, context, [exercise_type])

    async def validate_exercise_answer(self, exercise_id: str, user_answer: str, exercise: Exercise) -> dict:
        return self.generator.validate_answer(user_answer, exercise)

    async def get_exercise_stats(self, words: Sequence[WordItem], context: str) -> dict:
        known = [w for w in words if self.store.has_word(w.value)]
        return {
            "total_words": len(words),
            "words_with_exercises": len(known),
            "available_exercise_types": [t.value for t in ExerciseType],
            "recommended_difficulty": recommended_difficulty(words),
        }

    async def get_difficulty_recommendations(self, words: Sequence[WordItem]) -> dict:
        """Bucket words by spelling length and how wordy their meaning is."""
        buckets: dict[str, list[str]] = {"beginner": [], "intermediate": [], "advanced": []}
        for item in words:
            meaning = item.meaning or self.store.get_definition(item.value)
            complexity = len(meaning.split())
            length = len(item.value)
            if length <= 4 and complexity <= 10:
                buckets["beginner"].append(item.value)
            elif length <= 8 and complexity <= 20:
                buckets["intermediate"].append(item.value)
            else:
                buckets["advanced"].append(item.value)
        return buckets

    async def check_exercise_generation_capability(
        self, words: Sequence[WordItem], context: str, exercise_types: Sequence[str] = ()
    ) -> dict:
        needs_distractors = not exercise_types or any(
            t in (ExerciseType.MULTIPLE_CHOICE, ExerciseType.MATCHING, ExerciseType.TRUE_FALSE)
            for t in parse_exercise_types(exercise_types)
        )
        missing: list[str] = []
        suggestions: list[str] = []
        for item in words:
            if not self.store.has_word(item.value):
                missing.append(f'Definition for "{item.value}"')
                suggestions.append(f'Add definition for "{item.value}" to the manual database')
            if needs_distractors:
                curated = self.store.get_distractor_set(item.value, context).curated_count
                if curated < 3:
                    missing.append(f'Distractors for "{item.value}"')
                    suggestions.append(f'Add more distractors for "{item.value}" (currently {curated}/3)')
        return {"can_generate": not missing, "missing_data": missing, "suggestions": suggestions}
