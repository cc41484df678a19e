"""In-memory store of curated linguistic content, backed by JSON files."""
from __future__ import annotations

import asyncio
import json
import logging
import os
from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path

from vocab_content.errors import DataLoadError, DefinitionNotFoundError, PersistenceError
from vocab_content.models import (
    Definition,
    DefinitionResult,
    DIFFICULTIES,
    DistractorSet,
    DistractorSource,
    ExerciseTemplate,
    Found,
    NotFound,
    SentenceExample,
    SimilarWord,
    check_contextual,
    not_found_message,
)

log = logging.getLogger("vocab_content.store")

DISTRACTOR_COUNT = 3
FILLER_DISTRACTORS = (
    "incorrect definition A",
    "incorrect definition B",
    "incorrect definition C",
)
MANUAL_ENTRIES_FILE = "manual_entries.json"
EXPORT_VERSION = "1.0.0"

DEFINITIONS_DIR = Path("definitions")
SENTENCES_DIR = Path("sentences")
SIMILAR_WORDS_DIR = Path("similar-words")
TEMPLATES_DIR = Path("exercises") / "templates"
DISTRACTORS_DIR = Path("exercises") / "distractors"


def _key(word: str) -> str:
    return word.strip().lower()


def _file_stem(word: str) -> str:
    stem = _key(word)
    if not stem or os.sep in stem or (os.altsep and os.altsep in stem) or stem.startswith("."):
        raise ValueError(f"invalid headword for a file name: {word!r}")
    return stem


@dataclass
class _Snapshot:
    """Everything read from disk in one load, swapped in as a whole."""
    definitions: dict[str, Definition] = field(default_factory=dict)
    definition_sources: dict[str, str] = field(default_factory=dict)
    sentences: dict[str, list[SentenceExample]] = field(default_factory=dict)
    similar_words: dict[str, list[SimilarWord]] = field(default_factory=dict)
    templates: dict[str, list[ExerciseTemplate]] = field(default_factory=dict)
    distractors: dict[str, list[str]] = field(default_factory=dict)


def _read_array(path: Path) -> list:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise DataLoadError(f"{path.name}: invalid JSON ({e})", str(path)) from e
    except OSError as e:
        raise DataLoadError(f"{path.name}: {e}", str(path)) from e
    if not isinstance(data, list):
        raise DataLoadError(
            f"{path.name}: expected a JSON array, got {type(data).__name__}", str(path)
        )
    return data


def _json_files(directory: Path) -> list[Path]:
    """Sorted ``*.json`` files in *directory*, creating it when missing."""
    if not directory.exists():
        log.info("Creating %s directory", directory.name)
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DataLoadError(f"cannot create {directory}: {e}", str(directory)) from e
        return []
    return sorted(p for p in directory.iterdir() if p.suffix == ".json" and p.is_file())


def _parse_records(path: Path, parse) -> list:
    records = []
    for i, raw in enumerate(_read_array(path)):
        try:
            records.append(parse(raw))
        except (ValueError, TypeError) as e:
            raise DataLoadError(f"{path.name}[{i}]: {e}", str(path)) from e
    return records


def _parse_distractor(raw) -> str:
    if not isinstance(raw, str) or not raw.strip():
        raise ValueError(f"distractor must be a non-empty string, got {raw!r}")
    return raw


def _write_json(path: Path, payload) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    os.replace(tmp, path)


class ContentStore:
    """Sole owner of curated definitions, sentences, similar words,
    exercise templates and distractors.

    Reads are synchronous and never raise for missing data.  Mutations update
    memory first (whole-record replacement), then rewrite the owning backing
    file under a single writer lock.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self._data = _Snapshot()
        self._loaded = False
        self._load_lock = asyncio.Lock()
        self._write_lock = asyncio.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    # ── Loading ───────────────────────────────────────────────────────────

    async def load_all(self) -> None:
        """Populate every category from disk.  No-op once loaded."""
        if self._loaded:
            return
        async with self._load_lock:
            if self._loaded:
                return
            await self._load_locked()

    async def reload(self) -> None:
        """Re-read every category even if already loaded."""
        async with self._load_lock:
            await self._load_locked()

    async def _load_locked(self) -> None:
        try:
            snapshot = await asyncio.to_thread(self._read_snapshot)
        except DataLoadError:
            log.error("Failed to load content from %s", self.data_dir)
            raise
        self._data = snapshot
        self._loaded = True
        log.info(
            "Content loaded: %d definitions, %d sentence files, %d similar-word files, "
            "%d template contexts, %d distractor sets",
            len(snapshot.definitions), len(snapshot.sentences), len(snapshot.similar_words),
            len(snapshot.templates), len(snapshot.distractors),
        )

    def _read_snapshot(self) -> _Snapshot:
        snap = _Snapshot()

        for path in _json_files(self.data_dir / DEFINITIONS_DIR):
            for d in _parse_records(path, Definition.from_dict):
                snap.definitions[d.key] = d
                snap.definition_sources[d.key] = path.name

        for path in _json_files(self.data_dir / SENTENCES_DIR):
            snap.sentences[path.stem.lower()] = _parse_records(path, SentenceExample.from_dict)

        for path in _json_files(self.data_dir / SIMILAR_WORDS_DIR):
            snap.similar_words[path.stem.lower()] = _parse_records(path, SimilarWord.from_dict)

        for path in _json_files(self.data_dir / TEMPLATES_DIR):
            snap.templates[path.stem.lower()] = _parse_records(path, ExerciseTemplate.from_dict)

        for path in _json_files(self.data_dir / DISTRACTORS_DIR):
            snap.distractors[path.stem.lower()] = _parse_records(path, _parse_distractor)

        return snap

    # ── Lookups ───────────────────────────────────────────────────────────

    def lookup_definition(self, word: str, context: str | None = None) -> DefinitionResult:
        definition = self._data.definitions.get(_key(word))
        if definition is None:
            return NotFound(word)
        if context:
            contextual = definition.contextual.get(context.lower())
            if contextual:
                return Found(contextual)
        return Found(definition.general)

    def get_definition(self, word: str, context: str | None = None) -> str:
        """Contextual definition, else general, else a not-found message."""
        result = self.lookup_definition(word, context)
        if isinstance(result, Found):
            return result.value
        return not_found_message(word)

    def get_definition_record(self, word: str) -> Definition | None:
        return self._data.definitions.get(_key(word))

    def get_contextual_definitions(self, word: str) -> dict[str, str]:
        definition = self._data.definitions.get(_key(word))
        return dict(definition.contextual) if definition else {}

    def get_word_difficulty(self, word: str) -> str:
        definition = self._data.definitions.get(_key(word))
        return definition.difficulty if definition else "intermediate"

    def get_part_of_speech(self, word: str) -> str:
        definition = self._data.definitions.get(_key(word))
        return definition.part_of_speech if definition else "noun"

    def get_sentence_examples(self, word: str, context: str | None = None) -> list[SentenceExample]:
        sentences = self._data.sentences.get(_key(word), [])
        if context:
            ctx = context.lower()
            return [s for s in sentences if s.context.lower() == ctx]
        return list(sentences)

    def get_similar_words(self, word: str) -> list[SimilarWord]:
        return list(self._data.similar_words.get(_key(word), []))

    def get_exercise_templates(self, context: str) -> list[ExerciseTemplate]:
        return list(self._data.templates.get(context.lower(), []))

    def get_distractor_set(self, word: str, context: str | None = None) -> DistractorSet:
        """Three distractors for *word*, with where they came from.

        A ``context_word`` set of three or more wins, then a word-only set of
        three or more.  Otherwise the largest partial set is padded with filler.
        """
        key = _key(word)
        contextual = self._data.distractors.get(f"{context.lower()}_{key}", []) if context else []
        general = self._data.distractors.get(key, [])

        for candidates in (contextual, general):
            if len(candidates) >= DISTRACTOR_COUNT:
                return DistractorSet(
                    tuple(candidates[:DISTRACTOR_COUNT]), DistractorSource.CURATED, DISTRACTOR_COUNT
                )

        partial = contextual or general
        if partial:
            needed = DISTRACTOR_COUNT - len(partial)
            return DistractorSet(
                tuple(partial) + FILLER_DISTRACTORS[:needed], DistractorSource.PARTIAL, len(partial)
            )
        return DistractorSet(FILLER_DISTRACTORS, DistractorSource.SYNTHESIZED, 0)

    def get_distractors(self, word: str, context: str | None = None) -> list[str]:
        return list(self.get_distractor_set(word, context).options)

    def has_word(self, word: str) -> bool:
        return _key(word) in self._data.definitions

    def get_all_words(self) -> set[str]:
        return set(self._data.definitions)

    def get_sentence_headwords(self) -> set[str]:
        return set(self._data.sentences)

    def get_template_contexts(self) -> set[str]:
        return set(self._data.templates)

    def get_available_contexts(self) -> list[str]:
        contexts: set[str] = set()
        for d in self._data.definitions.values():
            contexts.update(d.contextual)
        for sentences in self._data.sentences.values():
            contexts.update(s.context for s in sentences)
        return sorted(contexts)

    def get_all_definitions(self) -> list[Definition]:
        return list(self._data.definitions.values())

    def get_all_sentences(self) -> dict[str, list[SentenceExample]]:
        return {word: list(s) for word, s in self._data.sentences.items()}

    def get_stats(self) -> dict:
        data = self._data
        difficulty = {d: 0 for d in DIFFICULTIES}
        for d in data.definitions.values():
            if d.difficulty in difficulty:
                difficulty[d.difficulty] += 1
        pos = Counter(d.part_of_speech for d in data.definitions.values())
        return {
            "total_words": len(data.definitions),
            "total_definitions": len(data.definitions),
            "total_sentences": sum(len(s) for s in data.sentences.values()),
            "total_similar_words": sum(len(s) for s in data.similar_words.values()),
            "total_distractors": sum(len(s) for s in data.distractors.values()),
            "total_exercise_templates": sum(len(t) for t in data.templates.values()),
            "available_contexts": self.get_available_contexts(),
            "difficulty_distribution": difficulty,
            "part_of_speech_distribution": dict(pos),
        }

    # ── Mutations ─────────────────────────────────────────────────────────

    async def add_definition(self, definition: Definition) -> None:
        """Insert or replace *definition* and persist its definitions file."""
        key = definition.key
        definition = replace(definition, word=key)
        self._data.definitions[key] = definition
        source = self._data.definition_sources.setdefault(key, MANUAL_ENTRIES_FILE)
        log.info("Definition saved: %s", key)
        await self._persist_definitions(source)

    async def update_definition(
        self,
        word: str,
        general: str,
        contextual: dict[str, str] | None = None,
        difficulty: str | None = None,
        part_of_speech: str | None = None,
    ) -> Definition:
        key = _key(word)
        existing = self._data.definitions.get(key)
        if existing is None:
            raise DefinitionNotFoundError(word)
        if not isinstance(general, str) or not general.strip():
            raise ValueError("general definition must be a non-empty string")
        if contextual is not None:
            check_contextual(contextual)
        if difficulty is not None and difficulty not in DIFFICULTIES:
            raise ValueError(f"unknown difficulty {difficulty!r}")

        updated = replace(
            existing,
            general=general,
            contextual=contextual if contextual is not None else existing.contextual,
            difficulty=difficulty or existing.difficulty,
            part_of_speech=part_of_speech or existing.part_of_speech,
        )
        self._data.definitions[key] = updated
        log.info("Definition updated: %s", key)
        await self._persist_definitions(self._data.definition_sources.get(key, MANUAL_ENTRIES_FILE))
        return updated

    async def remove_definition(self, word: str) -> bool:
        """Drop *word*; returns False when there was nothing to remove."""
        key = _key(word)
        if self._data.definitions.pop(key, None) is None:
            return False
        source = self._data.definition_sources.pop(key, MANUAL_ENTRIES_FILE)
        log.info("Definition removed: %s", key)
        await self._persist_definitions(source)
        return True

    async def add_sentence_example(self, word: str, example: SentenceExample) -> None:
        await self.add_sentence_examples(word, [example])

    async def add_sentence_examples(self, word: str, examples: list[SentenceExample]) -> None:
        key = _file_stem(word)
        existing = self._data.sentences.get(key, [])
        self._data.sentences[key] = [*existing, *examples]
        log.info("Added %d sentence(s) for %s", len(examples), key)
        await self._persist_sentences(key)

    async def _persist_definitions(self, source: str) -> None:
        payload = [
            d.to_dict()
            for k, d in self._data.definitions.items()
            if self._data.definition_sources.get(k, MANUAL_ENTRIES_FILE) == source
        ]
        await self._write(self.data_dir / DEFINITIONS_DIR / source, payload)

    async def _persist_sentences(self, key: str) -> None:
        payload = [s.to_dict() for s in self._data.sentences.get(key, [])]
        await self._write(self.data_dir / SENTENCES_DIR / f"{key}.json", payload)

    async def _write(self, path: Path, payload) -> None:
        async with self._write_lock:
            try:
                await asyncio.to_thread(_write_json, path, payload)
            except OSError as e:
                log.error("Write-through failed for %s: %s", path, e)
                raise PersistenceError(f"could not write {path.name}: {e}", str(path)) from e

    # ── Import / export ───────────────────────────────────────────────────

    def export_data(self) -> dict:
        return {
            "metadata": {
                "export_date": datetime.now(timezone.utc).isoformat(),
                "version": EXPORT_VERSION,
                "total_words": len(self._data.definitions),
            },
            "definitions": [d.to_dict() for d in self._data.definitions.values()],
            "sentences": {
                word: [s.to_dict() for s in sentences]
                for word, sentences in self._data.sentences.items()
            },
            "statistics": self.get_stats(),
        }

    async def import_data(self, data: dict, overwrite: bool = False) -> dict:
        """Apply an export-shaped payload through the mutation API.

        Existing words are skipped unless *overwrite* is set.  A bad record is
        reported in ``errors`` and the rest of the batch still goes in.
        """
        result = {"imported": 0, "skipped": 0, "errors": []}

        for raw in data.get("definitions") or []:
            word = raw.get("word", "?") if isinstance(raw, dict) else "?"
            try:
                definition = Definition.from_dict(raw)
                if self.has_word(definition.word) and not overwrite:
                    result["skipped"] += 1
                    continue
                await self.add_definition(definition)
                result["imported"] += 1
            except (ValueError, TypeError, PersistenceError) as e:
                result["errors"].append(f'Failed to import definition for "{word}": {e}')

        sentences = data.get("sentences") or {}
        if not isinstance(sentences, dict):
            result["errors"].append("sentences must be an object keyed by word")
            sentences = {}
        for word, items in sentences.items():
            try:
                if not isinstance(items, list):
                    raise ValueError("expected a list of sentences")
                present = {s.sentence for s in self.get_sentence_examples(word)}
                examples = [
                    e for e in (SentenceExample.from_dict(s) for s in items) if e.sentence not in present
                ]
                if examples:
                    await self.add_sentence_examples(word, examples)
            except (ValueError, TypeError, PersistenceError) as e:
                result["errors"].append(f'Failed to import sentences for "{word}": {e}')

        log.info(
            "Import finished: %d imported, %d skipped, %d errors",
            result["imported"], result["skipped"], len(result["errors"]),
        )
        return result
