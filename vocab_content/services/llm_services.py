"""Model-backed counterparts of the manual engines.

Every structured request goes through :func:`ask_json`, which retries with the
validation error fed back into the prompt.
"""
from __future__ import annotations

import json
import logging
import re
import uuid
from typing import TYPE_CHECKING, Callable, Sequence

from vocab_content.errors import GenerationError, ModeError
from vocab_content.exercises import ExerciseGenerator, ID_PREFIXES, parse_exercise_types, word_pattern
from vocab_content.heuristics import length_difficulty
from vocab_content.models import (
    Exercise,
    ExerciseType,
    HighlightedWord,
    ReadingPassage,
    SentenceExample,
    SimilarWord,
    WordItem,
)
from vocab_content.passages import reading_time
from vocab_content.prompts import (
    DEFINITION_PROMPT,
    EXAMPLES_PROMPT,
    EXERCISES_PROMPT,
    LIGHT_READING_PROMPT,
    SIMILAR_WORDS_PROMPT,
    VALIDATE_PROMPT,
    VOCABULARY_PROMPT,
    WORD_DETAILS_PROMPT,
    format_exclusions,
    format_word_list,
)
from vocab_content.services.manual_quiz import pick_question_type, quiz_question
from vocab_content.services.manual_learn import recommended_difficulty

if TYPE_CHECKING:
    from vocab_content.providers.base import LLMProvider

log = logging.getLogger("vocab_content.llm")

MAX_RETRIES = 3

Validator = Callable[[dict], "str | None"]


def strip_thinking(text: str) -> str:
    return re.sub(r"<think>.*?</think>", "", text, flags=re.DOTALL).strip()


def extract_json(text: str) -> dict | None:
    """Pull a JSON object out of a model response.

    Code-fenced JSON is tried first, then balanced ``{...}`` blocks, last
    first, since models often draft partial JSON before the final answer.
    """
    text = strip_thinking(text)

    m = re.search(r"```(?:json)?\s*\n?({.*?})\s*\n?```", text, re.DOTALL)
    if m:
        try:
            return json.loads(m.group(1))
        except json.JSONDecodeError:
            pass

    for candidate in reversed(find_json_objects(text)):
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    return None


def find_json_objects(text: str) -> list[str]:
    """Balanced top-level ``{...}`` substrings in *text*."""
    results: list[str] = []
    i = 0
    while i < len(text):
        if text[i] != "{":
            i += 1
            continue
        depth = 0
        in_str = False
        escape = False
        for j in range(i, len(text)):
            ch = text[j]
            if escape:
                escape = False
                continue
            if ch == "\\":
                escape = True
                continue
            if ch == '"':
                in_str = not in_str
                continue
            if in_str:
                continue
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    results.append(text[i : j + 1])
                    i = j + 1
                    break
        else:
            i += 1
    return results


def require_list(key: str, parse: Callable[[dict], object] | None = None) -> Validator:
    """Validator: ``data[key]`` is a non-empty list whose items *parse* accepts."""

    def check(data: dict) -> str | None:
        items = data.get(key)
        if not isinstance(items, list) or not items:
            return f'"{key}" must be a non-empty list'
        if parse is not None:
            for i, raw in enumerate(items):
                try:
                    parse(raw)
                except (ValueError, TypeError, KeyError) as e:
                    return f'{key}[{i}]: {e}'
        return None

    return check


def require_fields(*fields: str) -> Validator:
    def check(data: dict) -> str | None:
        missing = [f for f in fields if f not in data]
        if missing:
            return f"missing fields: {', '.join(missing)}"
        return None

    return check


async def ask_json(
    llm: LLMProvider, base_prompt: str, validate: Validator, temperature: float = 0.7
) -> dict:
    prompt = base_prompt
    last_error: Exception | None = None
    for attempt in range(MAX_RETRIES):
        try:
            log.info("Ask %s (attempt %d/%d)", llm.name(), attempt + 1, MAX_RETRIES)
            response = await llm.generate(prompt, temperature=temperature, thinking=False)
        except Exception as e:
            last_error = e
            log.warning("  Provider error: %s", e)
            continue

        data = extract_json(response)
        if data is None:
            prompt = base_prompt + "\n\nYour response did not contain valid JSON. Respond with ONLY a JSON object, no other text."
            log.info("  No valid JSON, feeding back")
            log.debug("  Raw response: %.300s", response)
            continue
        reason = validate(data)
        if reason:
            prompt = base_prompt + f"\n\nYour previous response had errors: {reason}\nPlease fix and respond with corrected JSON only."
            log.info("  Invalid (%s), feeding back", reason)
            continue
        return data

    raise GenerationError(f"{llm.name()} gave no usable answer after {MAX_RETRIES} attempts") from last_error


class _LLMEngine:
    mode = "llm"

    def __init__(self, llm: LLMProvider):
        self.llm = llm

    def health(self) -> tuple[bool, dict]:
        configured = self.llm.is_configured()
        return configured, {"provider": self.llm.name(), "configured": configured}


class LLMWordEngine(_LLMEngine):
    async def generate_definition(
        self, word: str, context: str, base_language: str = "English", target_language: str = "English"
    ) -> str:
        prompt = DEFINITION_PROMPT.format(
            word=word, context=context or "general",
            base_language=base_language, target_language=target_language,
        )
        try:
            text = strip_thinking(await self.llm.generate(prompt, temperature=0.3, thinking=False))
        except Exception as e:
            raise GenerationError(f"{self.llm.name()} failed: {e}") from e
        if not text:
            raise GenerationError(f'{self.llm.name()} returned an empty definition for "{word}"')
        return text.strip('"')

    async def validate_answer(
        self,
        user_answer: str,
        correct_answer: str,
        context: str,
        base_language: str = "English",
        target_language: str = "English",
    ) -> dict:
        prompt = VALIDATE_PROMPT.format(
            user_answer=user_answer, correct_answer=correct_answer, context=context or "general",
        )
        data = await ask_json(self.llm, prompt, require_fields("is_correct", "explanation", "feedback"), 0.2)
        return {
            "is_correct": bool(data["is_correct"]),
            "explanation": str(data["explanation"]),
            "feedback": str(data["feedback"]),
        }

    async def generate_examples(
        self,
        word: str,
        meaning: str,
        context: str,
        base_language: str = "English",
        target_language: str = "English",
    ) -> list[SentenceExample]:
        prompt = EXAMPLES_PROMPT.format(
            count=3, word=word, meaning=meaning, context=context or "general",
            base_language=base_language, target_language=target_language,
        )
        data = await ask_json(self.llm, prompt, require_list("examples", SentenceExample.from_dict))
        examples = []
        for raw in data["examples"]:
            example = SentenceExample.from_dict(raw)
            example.context = context or "general"
            examples.append(example)
        return examples

    async def generate_similar_words(
        self,
        word: str,
        meaning: str,
        context: str,
        base_language: str = "English",
        target_language: str = "English",
    ) -> dict:
        prompt = SIMILAR_WORDS_PROMPT.format(
            count=5, word=word, meaning=meaning, context=context or "general",
            base_language=base_language,
        )
        data = await ask_json(self.llm, prompt, require_list("similar_words", SimilarWord.from_dict))
        return {"similar_words": [SimilarWord.from_dict(s).to_dict() for s in data["similar_words"]]}

    async def generate_light_reading(
        self,
        words: Sequence[WordItem],
        context: str,
        base_language: str = "English",
        target_language: str = "English",
        level: str = "intermediate",
    ) -> dict:
        prompt = LIGHT_READING_PROMPT.format(
            level=level, context=context or "general", base_language=base_language,
            word_list=format_word_list(words),
        )
        data = await ask_json(self.llm, prompt, require_fields("title", "content"))
        content = str(data["content"]).strip()

        highlights = []
        for item in words:
            match = word_pattern(item.value).search(content)
            if match:
                highlights.append(HighlightedWord(item.value, item.meaning, match.start()))
        word_count = len(content.split())
        passage = ReadingPassage(
            title=str(data["title"]),
            content=content,
            word_count=word_count,
            reading_time_minutes=reading_time(word_count),
            highlighted_words=highlights,
            difficulty=level,
            context=context,
        )
        result = passage.to_dict()
        result.update(
            list_name=f"{context} Vocabulary",
            list_context=context,
            level=level,
            words_included=len(highlights),
            total_words_in_list=len(words),
        )
        return result

    async def has_word(self, word: str) -> bool:
        # A model can attempt any word.
        return True

    async def get_all_words(self) -> list[str]:
        return []

    async def add_word_definition(self, word: str, definition: str, context: str,
                                  difficulty: str = "intermediate", part_of_speech: str = "noun"):
        raise ModeError("Adding curated definitions requires manual data mode")


def _vocabulary_entry(raw: dict) -> None:
    if not isinstance(raw, dict) or not raw.get("word") or not raw.get("meaning"):
        raise ValueError("each word needs \"word\" and \"meaning\"")


class LLMVocabularyEngine(_LLMEngine):
    async def generate_words(
        self,
        count: int,
        difficulty: str | None,
        context: str,
        base_language: str = "English",
        target_language: str = "English",
        exclude_words: Sequence[str] = (),
    ) -> list[dict]:
        prompt = VOCABULARY_PROMPT.format(
            count=count, difficulty=difficulty or "intermediate", context=context or "general",
            base_language=base_language, target_language=target_language,
            exclude_section=format_exclusions(list(exclude_words)),
        )
        data = await ask_json(self.llm, prompt, require_list("words", _vocabulary_entry))
        excluded = {w.lower() for w in exclude_words}
        words = []
        for raw in data["words"]:
            word = str(raw["word"])
            if word.lower() in excluded:
                continue
            words.append({
                "word": word,
                "meaning": str(raw["meaning"]),
                "example": str(raw.get("example") or ""),
                "difficulty_level": difficulty or length_difficulty(word),
                "context": context,
                "part_of_speech": str(raw.get("part_of_speech") or "noun"),
                "similar_words": [],
                "pronunciation": f"/{word}/",
            })
        return words[:count]

    async def get_word_details(
        self, word: str, context: str, base_language: str = "English", target_language: str = "English"
    ) -> dict:
        prompt = WORD_DETAILS_PROMPT.format(
            word=word, context=context or "general",
            base_language=base_language, target_language=target_language,
        )
        data = await ask_json(self.llm, prompt, require_fields("meaning", "example"), 0.3)
        data["word"] = word
        data["context"] = context
        data.setdefault("difficulty_level", length_difficulty(word))
        return data

    async def get_vocabulary_stats(self, context: str) -> dict:
        return {
            "mode": "llm",
            "message": "LLM mode can generate unlimited vocabulary",
            "available_contexts": ["any context requested"],
            "capabilities": ["dynamic generation", "context adaptation", "difficulty adjustment"],
        }

    async def check_vocabulary_capability(self, context: str) -> dict:
        configured = self.llm.is_configured()
        return {
            "can_generate": configured,
            "suggestions": [
                "LLM mode can generate vocabulary for any context"
                if configured
                else f"{self.llm.name()} is not configured"
            ],
        }

    async def search_words(self, query: str, context: str | None = None,
                           difficulty: str | None = None, limit: int = 10) -> list[dict]:
        raise ModeError("Search is only available in manual data mode")

    async def get_word_suggestions(self, existing_words: Sequence[str], context: str, count: int = 5) -> list[dict]:
        words = await self.generate_words(count, None, context, exclude_words=existing_words)
        return [
            {"word": w["word"], "reason": f"Suggested for {context}", "confidence": 0.8}
            for w in words
        ]


def _exercise_from_raw(raw: dict, context: str, allowed: Sequence[ExerciseType]) -> Exercise:
    kind = ExerciseType(raw["type"])
    if kind not in allowed:
        raise ValueError(f"type {kind.value} was not requested")
    word = str(raw["word"])
    options = raw.get("options")
    return Exercise(
        id=f"{ID_PREFIXES[kind]}_{word.lower()}_{uuid.uuid4().hex[:12]}",
        type=kind,
        question=str(raw["question"]),
        correct=str(raw["correct"]),
        word=word,
        context=context,
        difficulty=length_difficulty(word),
        explanation=str(raw.get("explanation") or ""),
        options=[str(o) for o in options] if options else None,
    )


class LLMLearnEngine(_LLMEngine):
    async def generate_exercises(
        self,
        words: Sequence[WordItem],
        context: str,
        exercise_types: Sequence[str],
        base_language: str = "English",
        target_language: str = "English",
    ) -> list[Exercise]:
        types = parse_exercise_types(exercise_types)
        if not words:
            return []
        prompt = EXERCISES_PROMPT.format(
            context=context or "general",
            types=", ".join(t.value for t in types),
            word_list=format_word_list(words),
        )
        data = await ask_json(
            self.llm, prompt, require_list("exercises", lambda raw: _exercise_from_raw(raw, context, types))
        )
        return [_exercise_from_raw(raw, context, types) for raw in data["exercises"]]

    async def generate_exercises_by_type(
        self,
        words: Sequence[WordItem],
        context: str,
        exercise_type: str,
        base_language: str = "English",
        target_language: str = "English",
    ) -> list[Exercise]:
        return await self.generate_exercises(words, context, [exercise_type], base_language, target_language)

    async def validate_exercise_answer(self, exercise_id: str, user_answer: str, exercise: Exercise) -> dict:
        return ExerciseGenerator.validate_answer(user_answer, exercise)

    async def get_exercise_stats(self, words: Sequence[WordItem], context: str) -> dict:
        return {
            "total_words": len(words),
            "words_with_exercises": len(words),
            "available_exercise_types": [t.value for t in ExerciseType],
            "recommended_difficulty": recommended_difficulty(words),
        }

    async def get_difficulty_recommendations(self, words: Sequence[WordItem]) -> dict:
        buckets: dict[str, list[str]] = {"beginner": [], "intermediate": [], "advanced": []}
        for item in words:
            buckets[length_difficulty(item.value)].append(item.value)
        return buckets

    async def check_exercise_generation_capability(
        self, words: Sequence[WordItem], context: str, exercise_types: Sequence[str] = ()
    ) -> dict:
        configured = self.llm.is_configured()
        return {
            "can_generate": configured,
            "missing_data": [],
            "suggestions": [] if configured else [f"{self.llm.name()} is not configured"],
        }


class LLMQuizEngine(_LLMEngine):
    def __init__(self, llm: LLMProvider):
        super().__init__(llm)
        self.learn = LLMLearnEngine(llm)

    async def generate_questions(
        self,
        words: Sequence[WordItem],
        context: str,
        question_types: Sequence[str] = (),
        limit: int | None = None,
    ) -> list[dict]:
        kind = pick_question_type(question_types)
        selected = list(words) if limit is None else list(words)[:max(limit, 0)]
        exercises = await self.learn.generate_exercises(selected, context, [kind])
        by_word = {w.value.lower(): w for w in selected}
        return [
            quiz_question(ex, by_word.get(ex.word.lower(), WordItem(id=ex.word, value=ex.word)), context)
            for ex in exercises
        ]

    async def get_quiz_stats(self, words: Sequence[WordItem], context: str) -> dict:
        return {
            "mode": "llm",
            "total_words": len(words),
            "words_with_questions": len(words),
            "coverage_percentage": 100 if words else 0,
            "available_question_types": [t.value for t in ExerciseType],
        }

    async def check_quiz_generation_capability(self, words: Sequence[WordItem], context: str) -> dict:
        configured = self.llm.is_configured()
        return {
            "can_generate": configured and bool(words),
            "missing_data": [],
            "suggestions": [] if configured else [f"{self.llm.name()} is not configured"],
        }
