"""Build practice exercises from curated content, without a model.

Each exercise type is a pure builder function from (word, meaning, context,
satellite material) to an :class:`Exercise`.  ``ExerciseGenerator`` resolves
meanings and material from the store and picks a builder per word.
"""
from __future__ import annotations

import logging
import random
import re
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable, Sequence

from vocab_content.heuristics import DifficultyStrategy, curated_difficulty
from vocab_content.models import (
    DistractorSet,
    DistractorSource,
    Exercise,
    ExerciseType,
    NotFound,
    SentenceExample,
    WordItem,
)

if TYPE_CHECKING:
    from vocab_content.store import ContentStore

log = logging.getLogger("vocab_content.exercises")

BLANK = "_____"

TYPE_ALIASES = {
    "fill_blank": ExerciseType.FILL_IN_BLANK,
}

ID_PREFIXES = {
    ExerciseType.MULTIPLE_CHOICE: "mc",
    ExerciseType.FILL_IN_BLANK: "fib",
    ExerciseType.MATCHING: "match",
    ExerciseType.TRUE_FALSE: "tf",
    ExerciseType.SENTENCE_COMPLETION: "sc",
}


def shuffle(items: Iterable, rng: random.Random | None = None) -> list:
    """Fisher-Yates shuffle of a copy of *items*."""
    rng = rng or random
    out = list(items)
    for i in range(len(out) - 1, 0, -1):
        j = rng.randint(0, i)
        out[i], out[j] = out[j], out[i]
    return out


def normalize_answer(answer: str) -> str:
    return answer.strip().lower()


def word_pattern(word: str) -> re.Pattern:
    return re.compile(rf"\b{re.escape(word)}\b", re.IGNORECASE)


@dataclass(frozen=True)
class Materials:
    """Satellite data available for one (word, context) pair."""
    distractors: DistractorSet
    sentences: tuple[SentenceExample, ...] = ()


Builder = Callable[[WordItem, str, str, Materials, str, random.Random], Exercise]


def _exercise_id(kind: ExerciseType, word: str) -> str:
    return f"{ID_PREFIXES[kind]}_{word.lower()}_{uuid.uuid4().hex[:12]}"


def _in_context(context: str) -> str:
    return f" in the context of {context}" if context else ""


def _wrong_options(meaning: str, distractors: DistractorSet) -> list[str]:
    target = normalize_answer(meaning)
    return [d for d in distractors.options if normalize_answer(d) != target]


def _meaning_options(meaning: str, materials: Materials, rng: random.Random) -> list[str]:
    return shuffle([meaning, *_wrong_options(meaning, materials.distractors)[:3]], rng)


def build_multiple_choice(item, meaning, context, materials, difficulty, rng) -> Exercise:
    word = item.value
    return Exercise(
        id=_exercise_id(ExerciseType.MULTIPLE_CHOICE, word),
        type=ExerciseType.MULTIPLE_CHOICE,
        question=f'What does "{word}" mean{_in_context(context)}?',
        options=_meaning_options(meaning, materials, rng),
        correct=meaning,
        word=word,
        context=context,
        difficulty=difficulty,
        explanation=f'"{word}" means: {meaning}',
        distractor_source=materials.distractors.source,
    )


def build_matching(item, meaning, context, materials, difficulty, rng) -> Exercise:
    word = item.value
    return Exercise(
        id=_exercise_id(ExerciseType.MATCHING, word),
        type=ExerciseType.MATCHING,
        question=f'Match "{word}" with its correct definition:',
        options=_meaning_options(meaning, materials, rng),
        correct=meaning,
        word=word,
        context=context,
        difficulty=difficulty,
        explanation=f'"{word}" matches with: {meaning}',
        distractor_source=materials.distractors.source,
    )


def build_fill_in_blank(item, meaning, context, materials, difficulty, rng) -> Exercise:
    word = item.value
    question = None
    if materials.sentences:
        sentence = rng.choice(materials.sentences).sentence
        blanked, n = word_pattern(word).subn(BLANK, sentence)
        if n:
            question = f"Fill in the blank: {blanked}"
            explanation = f'The correct word is "{word}" which means: {meaning}'
    if question is None:
        question = (
            f'Complete the sentence: "I need to use the {BLANK} to complete this task." '
            f"(Hint: {meaning})"
        )
        explanation = f'The correct word is "{word}"'
    return Exercise(
        id=_exercise_id(ExerciseType.FILL_IN_BLANK, word),
        type=ExerciseType.FILL_IN_BLANK,
        question=question,
        correct=word,
        word=word,
        context=context,
        difficulty=difficulty,
        explanation=explanation,
    )


def build_true_false(item, meaning, context, materials, difficulty, rng) -> Exercise:
    word = item.value
    false_options = _wrong_options(meaning, materials.distractors)
    # One draw picks the branch; statement and answer are set together.
    if false_options and rng.random() >= 0.5:
        statement, answer, source = f'"{word}" means: {false_options[0]}', "False", materials.distractors.source
    else:
        statement, answer, source = f'"{word}" means: {meaning}', "True", None
    return Exercise(
        id=_exercise_id(ExerciseType.TRUE_FALSE, word),
        type=ExerciseType.TRUE_FALSE,
        question=f"True or False: {statement}",
        options=["True", "False"],
        correct=answer,
        word=word,
        context=context,
        difficulty=difficulty,
        explanation=f'The correct answer is {answer}. "{word}" means: {meaning}',
        distractor_source=source,
    )


def build_sentence_completion(item, meaning, context, materials, difficulty, rng) -> Exercise:
    word = item.value
    pattern = word_pattern(word)
    for example in shuffle(materials.sentences, rng):
        if pattern.search(example.sentence):
            return Exercise(
                id=_exercise_id(ExerciseType.SENTENCE_COMPLETION, word),
                type=ExerciseType.SENTENCE_COMPLETION,
                question=f"Complete this sentence: {pattern.sub(BLANK, example.sentence, count=1)}",
                correct=word,
                word=word,
                context=context,
                difficulty=difficulty,
                explanation=f"The complete sentence is: {example.sentence}",
            )
    return Exercise(
        id=_exercise_id(ExerciseType.SENTENCE_COMPLETION, word),
        type=ExerciseType.SENTENCE_COMPLETION,
        question=f'Use "{word}" in a sentence that demonstrates its meaning: {meaning}',
        correct=word,
        word=word,
        context=context,
        difficulty=difficulty,
        explanation=f'Sample usage: The word "{word}" can be used to express {meaning}',
    )


GENERATORS: dict[ExerciseType, Builder] = {
    ExerciseType.MULTIPLE_CHOICE: build_multiple_choice,
    ExerciseType.FILL_IN_BLANK: build_fill_in_blank,
    ExerciseType.MATCHING: build_matching,
    ExerciseType.TRUE_FALSE: build_true_false,
    ExerciseType.SENTENCE_COMPLETION: build_sentence_completion,
}


def parse_exercise_types(names: Sequence[str | ExerciseType]) -> list[ExerciseType]:
    """Map requested type names onto the closed set.

    Unknown names are dropped with a warning; if nothing usable remains the
    caller gets multiple_choice.
    """
    if not names:
        raise ValueError("at least one exercise type is required")
    types: list[ExerciseType] = []
    for name in names:
        if isinstance(name, ExerciseType):
            kind = name
        elif name in TYPE_ALIASES:
            kind = TYPE_ALIASES[name]
        else:
            try:
                kind = ExerciseType(name)
            except ValueError:
                log.warning("Unknown exercise type: %s", name)
                continue
        if kind not in types:
            types.append(kind)
    return types or [ExerciseType.MULTIPLE_CHOICE]


class ExerciseGenerator:
    def __init__(
        self,
        store: ContentStore,
        difficulty: DifficultyStrategy | None = None,
        rng: random.Random | None = None,
    ):
        self.store = store
        self.difficulty = difficulty or curated_difficulty(store)
        self.rng = rng or random.Random()

    def materials_for(self, word: str, context: str) -> Materials:
        return Materials(
            distractors=self.store.get_distractor_set(word, context),
            sentences=tuple(self.store.get_sentence_examples(word, context)),
        )

    def generate_for_word(
        self, item: WordItem, context: str, types: Sequence[ExerciseType]
    ) -> Exercise | None:
        """One exercise for *item*, or None when the store has no meaning for it."""
        result = self.store.lookup_definition(item.value, context)
        if isinstance(result, NotFound):
            log.info("Skipping %r: no definition", item.value)
            return None
        kind = self.rng.choice(list(types))
        return GENERATORS[kind](
            item,
            result.value,
            context,
            self.materials_for(item.value, context),
            self.difficulty(item.value),
            self.rng,
        )

    def generate_exercises(
        self, items: Sequence[WordItem], context: str, exercise_types: Sequence[str | ExerciseType]
    ) -> list[Exercise]:
        types = parse_exercise_types(exercise_types)
        exercises = []
        for item in items:
            ex = self.generate_for_word(item, context, types)
            if ex is not None:
                exercises.append(ex)
        log.info("Generated %d/%d exercises (%s)", len(exercises), len(items), context or "no context")
        return exercises

    def generate_quiz_questions(
        self, items: Sequence[WordItem], context: str, question_count: int = 10
    ) -> list[Exercise]:
        selected = shuffle(items, self.rng)[:question_count]
        return self.generate_exercises(selected, context, [ExerciseType.MULTIPLE_CHOICE])

    @staticmethod
    def validate_answer(user_answer: str, exercise: Exercise) -> dict:
        correct = exercise.correct
        is_correct = normalize_answer(user_answer) == normalize_answer(correct)
        explanation = exercise.explanation or f"The correct answer is: {correct}"
        if is_correct:
            feedback = f'Correct! "{exercise.word}" {exercise.explanation or correct}'
        else:
            feedback = f"Incorrect. The right answer is: {correct}"
        return {"is_correct": is_correct, "explanation": explanation, "feedback": feedback}

    def generation_stats(self) -> dict:
        words = sorted(self.store.get_all_words())
        contexts = self.store.get_available_contexts()
        total = len(words)

        with_definitions = sum(
            1 for w in words if not isinstance(self.store.lookup_definition(w), NotFound)
        )
        with_distractors = sum(
            1 for w in words if self.store.get_distractor_set(w).source is DistractorSource.CURATED
        )

        coverage: dict[str, int] = {}
        for ctx in contexts:
            coverage[ctx] = sum(
                1
                for w in words
                if ctx in self.store.get_contextual_definitions(w)
                or self.store.get_sentence_examples(w, ctx)
            )

        def pct(n: int) -> int:
            return round(n / total * 100) if total else 0

        return {
            "total_words": total,
            "words_with_definitions": with_definitions,
            "words_with_distractors": with_distractors,
            "definition_coverage": pct(with_definitions),
            "distractor_coverage": pct(with_distractors),
            "template_coverage": coverage,
            "available_contexts": contexts,
            "exercise_types": [t.value for t in ExerciseType],
            "generation_capability": {
                "multiple_choice": with_distractors > 0,
                "fill_in_blank": with_definitions > 0,
                "true_false": with_definitions > 0,
                "matching": with_definitions >= 4,
                "sentence_completion": with_definitions > 0,
            },
        }
