"""Quiz questions built on the exercise generator."""
from __future__ import annotations

import logging
import math
import random
import uuid
from typing import TYPE_CHECKING, Sequence

from vocab_content.exercises import parse_exercise_types, shuffle
from vocab_content.heuristics import difficulty_score, quiz_difficulty
from vocab_content.models import Exercise, ExerciseType, Found, WordItem

if TYPE_CHECKING:
    from vocab_content.exercises import ExerciseGenerator

log = logging.getLogger("vocab_content.quiz")

POINTS = {
    ExerciseType.MULTIPLE_CHOICE: 10,
    ExerciseType.TRUE_FALSE: 5,
    ExerciseType.FILL_IN_BLANK: 15,
    ExerciseType.MATCHING: 20,
    ExerciseType.SENTENCE_COMPLETION: 25,
}

SECONDS_PER_QUESTION = 30

RECOMMENDED_TYPES = {
    "business": ["multiple_choice", "fill_in_blank"],
    "daily": ["multiple_choice", "true_false"],
    "academic": ["fill_in_blank", "sentence_completion"],
    "technology": ["multiple_choice", "matching"],
    "medical": ["multiple_choice", "fill_in_blank"],
    "legal": ["fill_in_blank", "sentence_completion"],
}


def quiz_question(exercise: Exercise, item: WordItem, context: str) -> dict:
    return {
        "id": f"quiz_{item.id}_{uuid.uuid4().hex[:12]}",
        "type": exercise.type.value,
        "question": exercise.question,
        "options": list(exercise.options or []),
        "correct": exercise.correct,
        "word": item.value,
        "explanation": exercise.explanation,
        "points": POINTS.get(exercise.type, 10),
        "difficulty": quiz_difficulty(item.value, context),
    }


def pick_question_type(question_types: Sequence[str]) -> ExerciseType:
    """multiple_choice when allowed, else the first usable type."""
    if not question_types:
        return ExerciseType.MULTIPLE_CHOICE
    types = parse_exercise_types(question_types)
    if ExerciseType.MULTIPLE_CHOICE in types:
        return ExerciseType.MULTIPLE_CHOICE
    return types[0]


class ManualQuizEngine:
    mode = "manual"

    def __init__(self, generator: ExerciseGenerator, rng: random.Random | None = None):
        self.generator = generator
        self.store = generator.store
        self.rng = rng or generator.rng

    def health(self) -> tuple[bool, dict]:
        return self.store.is_loaded, {
            "data_loaded": self.store.is_loaded,
            "total_words": len(self.store.get_all_words()),
        }

    def _defined(self, words: Sequence[WordItem], context: str) -> list[WordItem]:
        return [w for w in words if isinstance(self.store.lookup_definition(w.value, context), Found)]

    async def generate_questions(
        self,
        words: Sequence[WordItem],
        context: str,
        question_types: Sequence[str] = (),
        limit: int | None = None,
    ) -> list[dict]:
        kind = pick_question_type(question_types)
        questions = []
        for item in words:
            exercise = self.generator.generate_for_word(item, context, [kind])
            if exercise is None:
                log.warning("No definition found for %r in context %r", item.value, context)
                continue
            questions.append(quiz_question(exercise, item, context))
        questions = shuffle(questions, self.rng)
        return questions if limit is None else questions[:max(limit, 0)]

    async def get_quiz_stats(self, words: Sequence[WordItem], context: str) -> dict:
        defined = self._defined(words, context)
        scores = [difficulty_score(w.value, context) for w in defined]
        return {
            "total_words": len(words),
            "words_with_questions": len(defined),
            "coverage_percentage": round(len(defined) / len(words) * 100) if words else 0,
            "average_difficulty": round(sum(scores) / len(scores)) if scores else 0,
            "available_question_types": ["multiple_choice", "true_false", "fill_in_blank"],
            "estimated_duration": math.ceil(len(defined) * SECONDS_PER_QUESTION / 60),
            "recommended_question_types": RECOMMENDED_TYPES.get(
                (context or "").lower(), ["multiple_choice", "true_false"]
            ),
        }

    async def check_quiz_generation_capability(self, words: Sequence[WordItem], context: str) -> dict:
        missing: list[str] = []
        with_data = 0
        for item in words:
            if isinstance(self.store.lookup_definition(item.value, context), Found):
                with_data += 1
            else:
                missing.append(f'Definition for "{item.value}"')
            curated = self.store.get_distractor_set(item.value, context).curated_count
            if curated < 3:
                missing.append(f'Distractors for "{item.value}" (has {curated}, needs 3+)')

        coverage = round(with_data / len(words) * 100) if words else 0
        suggestions = []
        if with_data == 0:
            suggestions += [
                "Add definitions for the words in your vocabulary list",
                "Ensure words have proper context mapping",
            ]
        elif coverage < 70:
            suggestions += [
                f"Only {coverage}% of words have complete data. Consider adding more definitions.",
                "Add more distractors for better multiple choice questions",
            ]
        if len(missing) > 10:
            suggestions.append("Consider using a different context that has more complete data")
        return {"can_generate": with_data > 0, "missing_data": missing[:10], "suggestions": suggestions}
