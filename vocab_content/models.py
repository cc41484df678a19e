from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class Difficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class ExerciseType(str, Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    FILL_IN_BLANK = "fill_in_blank"
    MATCHING = "matching"
    TRUE_FALSE = "true_false"
    SENTENCE_COMPLETION = "sentence_completion"


class DistractorSource(str, Enum):
    CURATED = "curated"          # all options came from curated data
    PARTIAL = "partial"          # some curated, padded with filler
    SYNTHESIZED = "synthesized"  # filler only


DIFFICULTIES = tuple(d.value for d in Difficulty)


def _require(raw: dict, *keys: str) -> None:
    if not isinstance(raw, dict):
        raise ValueError(f"expected an object, got {type(raw).__name__}")
    missing = [k for k in keys if not raw.get(k)]
    if missing:
        raise ValueError(f"missing fields: {', '.join(missing)}")


def _require_text(raw: dict, *keys: str) -> None:
    wrong = [k for k in keys if raw.get(k) is not None and not isinstance(raw[k], str)]
    if wrong:
        raise ValueError(f"fields must be strings: {', '.join(wrong)}")


def check_contextual(contextual: dict) -> None:
    bad = [str(k) for k, v in contextual.items() if not isinstance(k, str) or not isinstance(v, str)]
    if bad:
        raise ValueError(f"contextual definitions must be strings: {', '.join(bad)}")


def _check_difficulty(value: str) -> str:
    if value not in DIFFICULTIES:
        raise ValueError(f"unknown difficulty {value!r}")
    return value


@dataclass
class Definition:
    word: str
    general: str
    contextual: dict[str, str] = field(default_factory=dict)
    difficulty: str = Difficulty.INTERMEDIATE.value
    part_of_speech: str = "noun"
    pronunciation: str | None = None
    audio_file: str | None = None

    def __post_init__(self):
        self.word = self.word.strip()
        self.contextual = {k.strip().lower(): v for k, v in (self.contextual or {}).items()}

    @property
    def key(self) -> str:
        return self.word.strip().lower()

    @classmethod
    def from_dict(cls, raw: dict) -> Definition:
        _require(raw, "word", "general")
        _require_text(raw, "word", "general")
        contextual = raw.get("contextual") or {}
        if not isinstance(contextual, dict):
            raise ValueError(f"contextual for {raw['word']!r} must be an object")
        check_contextual(contextual)
        return cls(
            word=raw["word"],
            general=raw["general"],
            contextual=contextual,
            difficulty=_check_difficulty(raw.get("difficulty") or Difficulty.INTERMEDIATE.value),
            part_of_speech=raw.get("part_of_speech") or "noun",
            pronunciation=raw.get("pronunciation"),
            audio_file=raw.get("audio_file"),
        )

    def to_dict(self) -> dict:
        d = {
            "word": self.word,
            "general": self.general,
            "contextual": dict(self.contextual),
            "difficulty": self.difficulty,
            "part_of_speech": self.part_of_speech,
        }
        if self.pronunciation is not None:
            d["pronunciation"] = self.pronunciation
        if self.audio_file is not None:
            d["audio_file"] = self.audio_file
        return d


@dataclass
class SentenceExample:
    sentence: str
    translation: str | None = None
    context: str = "general"
    difficulty: str = Difficulty.INTERMEDIATE.value
    audio_file: str | None = None
    context_note: str | None = None

    @classmethod
    def from_dict(cls, raw: dict) -> SentenceExample:
        _require(raw, "sentence")
        _require_text(raw, "sentence", "translation", "context")
        return cls(
            sentence=raw["sentence"],
            translation=raw.get("translation") or None,
            context=raw.get("context") or "general",
            difficulty=raw.get("difficulty") or Difficulty.INTERMEDIATE.value,
            audio_file=raw.get("audio_file"),
            context_note=raw.get("context_note"),
        )

    def to_dict(self) -> dict:
        d = {
            "sentence": self.sentence,
            "translation": self.translation,
            "context": self.context,
            "difficulty": self.difficulty,
        }
        if self.audio_file is not None:
            d["audio_file"] = self.audio_file
        if self.context_note is not None:
            d["context_note"] = self.context_note
        return d


@dataclass
class SimilarWord:
    word: str
    meaning: str
    similarity_score: float
    usage_note: str = ""

    @classmethod
    def from_dict(cls, raw: dict) -> SimilarWord:
        _require(raw, "word", "meaning")
        _require_text(raw, "word", "meaning")
        score = float(raw.get("similarity_score", 0.0))
        if not 0.0 <= score <= 1.0:
            raise ValueError(f"similarity_score out of range for {raw['word']!r}: {score}")
        return cls(
            word=raw["word"],
            meaning=raw["meaning"],
            similarity_score=score,
            usage_note=raw.get("usage_note") or "",
        )

    def to_dict(self) -> dict:
        return {
            "word": self.word,
            "meaning": self.meaning,
            "similarity_score": self.similarity_score,
            "usage_note": self.usage_note,
        }


@dataclass
class ExerciseTemplate:
    type: ExerciseType
    question_template: str
    distractors: list[str] = field(default_factory=list)
    context: str = "general"
    difficulty: str = Difficulty.INTERMEDIATE.value

    @classmethod
    def from_dict(cls, raw: dict) -> ExerciseTemplate:
        _require(raw, "type", "question_template")
        _require_text(raw, "question_template")
        return cls(
            type=ExerciseType(raw["type"]),
            question_template=raw["question_template"],
            distractors=list(raw.get("distractors") or []),
            context=raw.get("context") or "general",
            difficulty=raw.get("difficulty") or Difficulty.INTERMEDIATE.value,
        )

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "question_template": self.question_template,
            "distractors": list(self.distractors),
            "context": self.context,
            "difficulty": self.difficulty,
        }


@dataclass
class WordItem:
    """A word as it arrives from a caller's list."""
    id: str
    value: str
    meaning: str = ""

    @classmethod
    def from_dict(cls, raw: dict) -> WordItem:
        _require(raw, "value")
        return cls(
            id=str(raw.get("id") or raw["value"]),
            value=raw["value"],
            meaning=raw.get("meaning") or "",
        )


@dataclass
class Exercise:
    id: str
    type: ExerciseType
    question: str
    correct: str
    word: str
    context: str
    difficulty: str
    explanation: str
    options: list[str] | None = None
    distractor_source: DistractorSource | None = None

    @classmethod
    def from_dict(cls, raw: dict) -> Exercise:
        _require(raw, "type", "correct")
        source = raw.get("distractor_source")
        options = raw.get("options")
        return cls(
            id=str(raw.get("id") or ""),
            type=ExerciseType(raw["type"]),
            question=raw.get("question") or "",
            correct=str(raw["correct"]),
            word=raw.get("word") or "",
            context=raw.get("context") or "",
            difficulty=raw.get("difficulty") or Difficulty.INTERMEDIATE.value,
            explanation=raw.get("explanation") or "",
            options=list(options) if options is not None else None,
            distractor_source=DistractorSource(source) if source else None,
        )

    def to_dict(self) -> dict:
        d = {
            "id": self.id,
            "type": self.type.value,
            "question": self.question,
            "correct": self.correct,
            "word": self.word,
            "context": self.context,
            "difficulty": self.difficulty,
            "explanation": self.explanation,
        }
        if self.options is not None:
            d["options"] = list(self.options)
        if self.distractor_source is not None:
            d["distractor_source"] = self.distractor_source.value
        return d


@dataclass(frozen=True)
class Found:
    value: str


@dataclass(frozen=True)
class NotFound:
    word: str

    @property
    def message(self) -> str:
        return not_found_message(self.word)


DefinitionResult = Union[Found, NotFound]


def not_found_message(word: str) -> str:
    return f'Definition not found for "{word}". Please add it to the definitions database.'


@dataclass(frozen=True)
class DistractorSet:
    options: tuple[str, ...]
    source: DistractorSource
    curated_count: int

    @property
    def is_curated(self) -> bool:
        return self.source is DistractorSource.CURATED


@dataclass
class HighlightedWord:
    word: str
    definition: str
    position: int

    def to_dict(self) -> dict:
        return {"word": self.word, "definition": self.definition, "position": self.position}


@dataclass
class ReadingPassage:
    title: str
    content: str
    word_count: int
    reading_time_minutes: int
    highlighted_words: list[HighlightedWord]
    difficulty: str
    context: str

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "content": self.content,
            "word_count": self.word_count,
            "reading_time_minutes": self.reading_time_minutes,
            "highlighted_words": [h.to_dict() for h in self.highlighted_words],
            "difficulty": self.difficulty,
            "context": self.context,
        }
