"""FastAPI application with all routes."""
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

logging.basicConfig(level=logging.INFO, format="%(name)s | %(message)s")

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from vocab_content.adapters import Adapters, build_adapters
from vocab_content.config import Settings, load_settings
from vocab_content.errors import (
    ContentError,
    DataLoadError,
    DefinitionNotFoundError,
    GenerationError,
    ModeError,
    PersistenceError,
    StartupError,
)
from vocab_content.exercises import ExerciseGenerator
from vocab_content.loader import DataLoader
from vocab_content.models import Definition, Exercise, SentenceExample, WordItem
from vocab_content.store import ContentStore

log = logging.getLogger("vocab_content.app")

app = FastAPI(title="Vocab Content")


@dataclass
class AppContext:
    """Everything a request handler needs, built once at startup."""
    settings: Settings
    store: ContentStore
    loader: DataLoader
    generator: ExerciseGenerator
    adapters: Adapters


# Global state (initialized in startup)
_ctx: AppContext | None = None


def get_ctx() -> AppContext:
    assert _ctx is not None
    return _ctx


def create_context(settings: Settings, llm=None, sleep=asyncio.sleep) -> AppContext:
    store = ContentStore(settings.data_full_path)
    return AppContext(
        settings=settings,
        store=store,
        loader=DataLoader(store, sleep=sleep),
        generator=ExerciseGenerator(store),
        adapters=build_adapters(settings, store, llm=llm),
    )


@app.on_event("startup")
async def startup():
    global _ctx
    if _ctx is not None:
        return  # Already initialized (e.g. by tests)
    ctx = create_context(load_settings())
    log.info("Starting in %s mode", ctx.settings.mode)
    if ctx.settings.manual_data_mode:
        # StartupError propagates: the server must not come up without data.
        await ctx.loader.initialize_with_retry(ctx.settings.load_max_attempts)
        health = ctx.loader.health_status()
        log.info("Data health: %s (%s)", health.status.upper(), health.message)
    _ctx = ctx


@app.on_event("shutdown")
async def shutdown():
    global _ctx
    if _ctx is not None:
        log.info("Shutting down (%s mode)", _ctx.settings.mode)
    _ctx = None


# ── Error mapping ─────────────────────────────────────────────────────────

_STATUS = {
    DefinitionNotFoundError: 404,
    ModeError: 501,
    GenerationError: 502,
    PersistenceError: 500,
    StartupError: 500,
    DataLoadError: 500,
}


@app.exception_handler(ContentError)
async def content_error_handler(request: Request, exc: ContentError):
    status = next((code for cls, code in _STATUS.items() if isinstance(exc, cls)), 500)
    if status >= 500:
        log.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse({"detail": str(exc)}, status_code=status)


# ── Request helpers ───────────────────────────────────────────────────────

async def _body(request: Request) -> dict:
    if not await request.body():
        return {}
    try:
        body = await request.json()
    except json.JSONDecodeError:
        raise HTTPException(400, "Request body is not valid JSON")
    if not isinstance(body, dict):
        raise HTTPException(400, "Request body must be a JSON object")
    return body


def _required(body: dict, *keys: str) -> None:
    missing = [k for k in keys if body.get(k) in (None, "")]
    if missing:
        raise HTTPException(400, f"Missing required field(s): {', '.join(missing)}")


def _word_items(raw) -> list[WordItem]:
    if not isinstance(raw, list):
        raise HTTPException(400, "words must be a list")
    items = []
    for i, w in enumerate(raw):
        if isinstance(w, str):
            w = {"value": w}
        try:
            items.append(WordItem.from_dict(w))
        except (ValueError, TypeError) as e:
            raise HTTPException(400, f"words[{i}]: {e}")
    return items


def _int(body: dict, key: str, default: int) -> int:
    value = body.get(key)
    if value in (None, ""):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise HTTPException(400, f"{key} must be an integer")


def _languages(body: dict) -> tuple[str, str]:
    return body.get("base_language") or "English", body.get("target_language") or "English"


def _require_manual() -> AppContext:
    ctx = get_ctx()
    if not ctx.settings.manual_data_mode:
        raise HTTPException(403, "Admin panel only available in manual data mode")
    return ctx


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ── API: Health ───────────────────────────────────────────────────────────

@app.get("/api/health")
async def api_health():
    ctx = get_ctx()
    result = {"status": "ok", "mode": ctx.adapters.mode, "services": ctx.adapters.health()}
    if ctx.settings.manual_data_mode:
        result["data"] = ctx.loader.health_status().to_dict()
    return result


# ── API: Words ────────────────────────────────────────────────────────────

@app.post("/api/words/definition")
async def api_word_definition(request: Request):
    body = await _body(request)
    _required(body, "word")
    context = body.get("context", "")
    definition = await get_ctx().adapters.words.generate_definition(body["word"], context, *_languages(body))
    return {"word": body["word"], "context": context, "definition": definition}


@app.post("/api/words/validate")
async def api_word_validate(request: Request):
    body = await _body(request)
    _required(body, "user_answer", "correct_answer")
    return await get_ctx().adapters.words.validate_answer(
        body["user_answer"], body["correct_answer"], body.get("context", ""), *_languages(body)
    )


@app.post("/api/words/examples")
async def api_word_examples(request: Request):
    body = await _body(request)
    _required(body, "word")
    examples = await get_ctx().adapters.words.generate_examples(
        body["word"], body.get("meaning", ""), body.get("context", ""), *_languages(body)
    )
    return {"examples": [e.to_dict() for e in examples]}


@app.post("/api/words/similar")
async def api_word_similar(request: Request):
    body = await _body(request)
    _required(body, "word")
    return await get_ctx().adapters.words.generate_similar_words(
        body["word"], body.get("meaning", ""), body.get("context", ""), *_languages(body)
    )


@app.post("/api/words/light-reading")
async def api_word_light_reading(request: Request):
    body = await _body(request)
    words = _word_items(body.get("words"))
    return await get_ctx().adapters.words.generate_light_reading(
        words, body.get("context", ""), *_languages(body), level=body.get("level") or "intermediate"
    )


@app.post("/api/words/add-definition", status_code=201)
async def api_word_add_definition(request: Request):
    body = await _body(request)
    _required(body, "word", "definition")
    try:
        record = await get_ctx().adapters.words.add_word_definition(
            body["word"],
            body["definition"],
            body.get("context", ""),
            body.get("difficulty") or "intermediate",
            body.get("part_of_speech") or "noun",
        )
    except ValueError as e:
        raise HTTPException(400, str(e))
    return {"message": "Definition added successfully", "definition": record.to_dict()}


@app.get("/api/words/health")
async def api_word_health():
    return get_ctx().adapters.words.get_health_status()


# ── API: Vocabulary ───────────────────────────────────────────────────────

@app.post("/api/vocabulary/generate")
async def api_vocabulary_generate(request: Request):
    body = await _body(request)
    words = await get_ctx().adapters.vocabulary.generate_words(
        _int(body, "count", 10),
        body.get("difficulty"),
        body.get("context", ""),
        *_languages(body),
        exclude_words=body.get("exclude_words") or [],
    )
    return {"words": words, "count": len(words)}


@app.post("/api/vocabulary/details")
async def api_vocabulary_details(request: Request):
    body = await _body(request)
    _required(body, "word")
    return await get_ctx().adapters.vocabulary.get_word_details(
        body["word"], body.get("context", ""), *_languages(body)
    )


@app.post("/api/vocabulary/suggestions")
async def api_vocabulary_suggestions(request: Request):
    body = await _body(request)
    suggestions = await get_ctx().adapters.vocabulary.get_word_suggestions(
        body.get("existing_words") or [], body.get("context", ""), _int(body, "count", 5)
    )
    return {"suggestions": suggestions}


@app.get("/api/vocabulary/stats")
async def api_vocabulary_stats(context: str = ""):
    return await get_ctx().adapters.vocabulary.get_vocabulary_stats(context)


@app.get("/api/vocabulary/capability")
async def api_vocabulary_capability(context: str = ""):
    return await get_ctx().adapters.vocabulary.check_vocabulary_capability(context)


@app.get("/api/vocabulary/search")
async def api_vocabulary_search(q: str, context: str | None = None, difficulty: str | None = None, limit: int = 10):
    results = await get_ctx().adapters.vocabulary.search_words(q, context, difficulty, limit)
    return {"query": q, "results": results, "count": len(results)}


@app.get("/api/vocabulary/health")
async def api_vocabulary_health():
    return get_ctx().adapters.vocabulary.get_health_status()


# ── API: Learn ────────────────────────────────────────────────────────────

@app.post("/api/learn/exercises")
async def api_learn_exercises(request: Request):
    body = await _body(request)
    words = _word_items(body.get("words"))
    context = body.get("context", "")
    learn = get_ctx().adapters.learn
    if body.get("exercise_type"):
        exercises = await learn.generate_exercises_by_type(words, context, body["exercise_type"], *_languages(body))
    else:
        types = body.get("exercise_types") or ["multiple_choice"]
        if not isinstance(types, list):
            raise HTTPException(400, "exercise_types must be a list")
        exercises = await learn.generate_exercises(words, context, types, *_languages(body))
    return {"exercises": [e.to_dict() for e in exercises], "count": len(exercises)}


@app.post("/api/learn/validate")
async def api_learn_validate(request: Request):
    body = await _body(request)
    _required(body, "exercise")
    try:
        exercise = Exercise.from_dict(body["exercise"])
    except (ValueError, TypeError) as e:
        raise HTTPException(400, f"exercise: {e}")
    return await get_ctx().adapters.learn.validate_exercise_answer(
        body.get("exercise_id") or exercise.id, str(body.get("user_answer", "")), exercise
    )


@app.post("/api/learn/stats")
async def api_learn_stats(request: Request):
    body = await _body(request)
    return await get_ctx().adapters.learn.get_exercise_stats(_word_items(body.get("words")), body.get("context", ""))


@app.post("/api/learn/capability")
async def api_learn_capability(request: Request):
    body = await _body(request)
    return await get_ctx().adapters.learn.check_exercise_generation_capability(
        _word_items(body.get("words")), body.get("context", ""), body.get("exercise_types") or []
    )


@app.post("/api/learn/difficulty")
async def api_learn_difficulty(request: Request):
    body = await _body(request)
    return await get_ctx().adapters.learn.get_difficulty_recommendations(_word_items(body.get("words")))


@app.get("/api/learn/health")
async def api_learn_health():
    return get_ctx().adapters.learn.get_health_status()


# ── API: Quiz ─────────────────────────────────────────────────────────────

@app.post("/api/quiz/questions")
async def api_quiz_questions(request: Request):
    body = await _body(request)
    ctx = get_ctx()
    count = _int(body, "count", ctx.settings.quiz_question_count)
    if count < 1:
        raise HTTPException(400, "count must be at least 1")
    questions = await ctx.adapters.quiz.generate_questions(
        _word_items(body.get("words")),
        body.get("context", ""),
        body.get("question_types") or [],
        count,
    )
    return {"questions": questions, "count": len(questions)}


@app.post("/api/quiz/stats")
async def api_quiz_stats(request: Request):
    body = await _body(request)
    return await get_ctx().adapters.quiz.get_quiz_stats(_word_items(body.get("words")), body.get("context", ""))


@app.post("/api/quiz/capability")
async def api_quiz_capability(request: Request):
    body = await _body(request)
    return await get_ctx().adapters.quiz.check_quiz_generation_capability(
        _word_items(body.get("words")), body.get("context", "")
    )


@app.get("/api/quiz/health")
async def api_quiz_health():
    return get_ctx().adapters.quiz.get_health_status()


# ── API: Admin ────────────────────────────────────────────────────────────

@app.get("/api/admin/health")
async def api_admin_health():
    ctx = _require_manual()
    health = ctx.loader.health_status()
    stats = ctx.store.get_stats()
    load_stats = ctx.loader.load_stats
    return {
        "status": health.status,
        "message": health.message,
        "details": health.details,
        "statistics": {
            "total_words": stats["total_words"],
            "total_definitions": stats["total_definitions"],
            "total_sentences": stats["total_sentences"],
            "total_contexts": len(stats["available_contexts"]),
            "available_contexts": stats["available_contexts"],
        },
        "data_loaded": bool(health.details.get("loaded")),
        "last_load_time_ms": load_stats.load_time_ms if load_stats else None,
    }


@app.post("/api/admin/reload-data")
async def api_admin_reload():
    ctx = _require_manual()
    log.info("Admin triggered data reload")
    stats = await ctx.loader.initialize_with_retry(ctx.settings.load_max_attempts)
    return {"message": "Data reloaded successfully", "statistics": stats.to_dict(), "timestamp": _now()}


@app.get("/api/admin/definitions")
async def api_admin_definitions(context: str | None = None, search: str | None = None,
                                difficulty: str | None = None):
    ctx = _require_manual()
    definitions = sorted(ctx.store.get_all_definitions(), key=lambda d: d.word)
    if context and context != "all":
        definitions = [d for d in definitions if context.lower() in d.contextual]
    if search:
        term = search.lower()
        definitions = [d for d in definitions if term in d.word.lower() or term in d.general.lower()]
    if difficulty:
        definitions = [d for d in definitions if d.difficulty == difficulty]
    return {
        "definitions": [d.to_dict() for d in definitions],
        "total": len(definitions),
        "available_contexts": ctx.store.get_available_contexts(),
    }


@app.post("/api/admin/definitions", status_code=201)
async def api_admin_add_definition(request: Request):
    ctx = _require_manual()
    body = await _body(request)
    if not body.get("word") or not body.get("general"):
        raise HTTPException(400, "Word and general definition are required")
    try:
        definition = Definition.from_dict(body)
    except ValueError as e:
        raise HTTPException(400, str(e))
    if ctx.store.has_word(definition.word):
        raise HTTPException(409, "Word already exists. Use PUT to update.")
    await ctx.store.add_definition(definition)
    saved = ctx.store.get_definition_record(definition.word)
    return {"message": "Definition added successfully", "word": saved.word, "definition": saved.to_dict()}


@app.put("/api/admin/definitions/{word}")
async def api_admin_update_definition(word: str, request: Request):
    ctx = _require_manual()
    body = await _body(request)
    if not body.get("general"):
        raise HTTPException(400, "General definition is required")
    contextual = body.get("contextual")
    if contextual is not None and not isinstance(contextual, dict):
        raise HTTPException(400, "contextual must be an object")
    try:
        updated = await ctx.store.update_definition(
            word,
            body["general"],
            contextual=contextual,
            difficulty=body.get("difficulty"),
            part_of_speech=body.get("part_of_speech"),
        )
    except ValueError as e:
        raise HTTPException(400, str(e))
    return {"message": "Definition updated successfully", "word": updated.word, "definition": updated.to_dict()}


@app.delete("/api/admin/definitions/{word}")
async def api_admin_delete_definition(word: str):
    ctx = _require_manual()
    if not await ctx.store.remove_definition(word):
        raise DefinitionNotFoundError(word)
    return {"message": "Definition deleted successfully", "word": word.lower()}


@app.get("/api/admin/sentences/{word}")
async def api_admin_sentences(word: str):
    ctx = _require_manual()
    sentences = ctx.store.get_sentence_examples(word)
    return {"word": word, "sentences": [s.to_dict() for s in sentences], "count": len(sentences)}


@app.post("/api/admin/sentences/{word}", status_code=201)
async def api_admin_add_sentence(word: str, request: Request):
    ctx = _require_manual()
    body = await _body(request)
    if not body.get("sentence"):
        raise HTTPException(400, "Sentence is required")
    try:
        example = SentenceExample.from_dict(body)
        await ctx.store.add_sentence_example(word, example)
    except ValueError as e:
        raise HTTPException(400, str(e))
    return {"message": "Sentence example added successfully", "word": word, "sentence": example.to_dict()}


@app.get("/api/admin/exercises/stats")
async def api_admin_exercise_stats():
    ctx = _require_manual()
    stats = ctx.generator.generation_stats()
    return {
        "statistics": stats,
        "available_types": stats["exercise_types"],
        "template_coverage": stats["template_coverage"],
    }


@app.get("/api/admin/export")
async def api_admin_export(format: str = "json"):
    ctx = _require_manual()
    if format != "json":
        raise HTTPException(400, "Unsupported export format")
    return JSONResponse(
        ctx.store.export_data(),
        headers={"Content-Disposition": 'attachment; filename="vocab-content-data.json"'},
    )


@app.post("/api/admin/import")
async def api_admin_import(request: Request):
    ctx = _require_manual()
    body = await _body(request)
    data = body.get("data")
    if not isinstance(data, dict):
        raise HTTPException(400, "Import data is required")
    result = await ctx.store.import_data(data, overwrite=bool(body.get("overwrite", False)))
    await ctx.loader.initialize_with_retry(ctx.settings.load_max_attempts)
    return {"message": "Data imported successfully", "result": result, "timestamp": _now()}


@app.get("/api/admin/config")
async def api_admin_config():
    ctx = _require_manual()
    return {
        "mode": ctx.settings.mode,
        "data_path": str(ctx.settings.data_full_path),
        "features": {
            "admin_panel": True,
            "llm_features": False,
            "data_validation": True,
        },
        "settings": ctx.settings.to_dict(),
    }
