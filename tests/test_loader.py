"""Tests for startup loading, retry and data validation."""
from __future__ import annotations

import asyncio
import json

import pytest

from vocab_content.errors import DataLoadError, StartupError
from vocab_content.loader import DataLoader, backoff_ms
from vocab_content.store import ContentStore


class SleepRecorder:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def _flaky(store: ContentStore, failures: int):
    """Make ``store.reload`` fail *failures* times before working."""
    real_reload = store.reload
    calls = {"n": 0}

    async def reload():
        calls["n"] += 1
        if calls["n"] <= failures:
            raise DataLoadError(f"source unavailable (call {calls['n']})")
        await real_reload()

    store.reload = reload
    return calls


class TestBackoff:
    def test_schedule(self):
        assert [backoff_ms(n) for n in range(1, 6)] == [1000, 2000, 4000, 5000, 5000]


class TestLoadAllData:
    @pytest.mark.asyncio
    async def test_counts(self, data_dir):
        loader = DataLoader(ContentStore(data_dir))
        stats = await loader.load_all_data()

        assert loader.is_loaded
        assert stats.definitions_loaded == 4
        assert stats.sentences_loaded == 4
        assert stats.similar_words_loaded == 2
        assert stats.exercise_templates_loaded == 2
        assert stats.distractors_loaded == 8
        assert stats.errors == []
        assert stats.load_time_ms >= 0

    @pytest.mark.asyncio
    async def test_picks_up_changes(self, store, data_dir):
        loader = DataLoader(store)
        (data_dir / "definitions" / "extra.json").write_text(
            json.dumps([{"word": "zephyr", "general": "a gentle breeze"}])
        )
        stats = await loader.load_all_data()
        assert stats.definitions_loaded == 5


class TestInitializeWithRetry:
    @pytest.mark.asyncio
    async def test_succeeds_on_third_attempt(self, data_dir):
        store = ContentStore(data_dir)
        calls = _flaky(store, failures=2)
        sleep = SleepRecorder()
        loader = DataLoader(store, sleep=sleep)

        stats = await loader.initialize_with_retry(3)

        assert calls["n"] == 3
        assert sleep.delays == [1.0, 2.0]
        assert stats.definitions_loaded == 4
        assert loader.load_stats is stats

    @pytest.mark.asyncio
    async def test_first_try_does_not_sleep(self, data_dir):
        sleep = SleepRecorder()
        await DataLoader(ContentStore(data_dir), sleep=sleep).initialize_with_retry(3)
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_exhaustion_raises_startup_error(self, data_dir):
        store = ContentStore(data_dir)
        _flaky(store, failures=10)
        sleep = SleepRecorder()
        loader = DataLoader(store, sleep=sleep)

        with pytest.raises(StartupError) as exc_info:
            await loader.initialize_with_retry(3)

        assert exc_info.value.attempts == 3
        assert str(exc_info.value) == (
            "Failed to load data after 3 attempts. Last error: source unavailable (call 3)"
        )
        # No sleep after the final attempt
        assert sleep.delays == [1.0, 2.0]
        assert not loader.is_loaded

    @pytest.mark.asyncio
    async def test_delay_is_capped(self, data_dir):
        store = ContentStore(data_dir)
        _flaky(store, failures=5)
        sleep = SleepRecorder()

        await DataLoader(store, sleep=sleep).initialize_with_retry(6)
        assert sleep.delays == [1.0, 2.0, 4.0, 5.0, 5.0]

    @pytest.mark.asyncio
    async def test_real_parse_error_is_retried(self, tmp_path):
        root = tmp_path / "broken"
        (root / "definitions").mkdir(parents=True)
        (root / "definitions" / "bad.json").write_text("{{{")
        sleep = SleepRecorder()

        with pytest.raises(StartupError, match="bad.json"):
            await DataLoader(ContentStore(root), sleep=sleep).initialize_with_retry(2)
        assert sleep.delays == [1.0]


class TestValidateDataIntegrity:
    def test_valid_with_warnings(self, store):
        result = DataLoader(store).validate_data_integrity()

        assert result.is_valid
        assert result.errors == []
        assert 'Word "algorithm" has no example sentences' in result.warnings
        assert 'Word "bank" has insufficient distractors (0/3)' in result.warnings
        assert not any('"meeting" has insufficient' in w for w in result.warnings)
        assert result.stats == {
            "total_words": 4,
            "words_with_sentences": 3,
            "words_with_similar": 1,
            "words_with_distractors": 1,
            "contexts_found": ["business", "geography"],
        }

    def test_orphan_sentence_file(self, store, data_dir):
        (data_dir / "sentences" / "zephyr.json").write_text(
            json.dumps([{"sentence": "A zephyr moved the leaves.", "context": "daily"}])
        )
        asyncio.run(store.reload())
        result = DataLoader(store).validate_data_integrity()
        assert 'Sentence file "zephyr.json" has no matching definition' in result.warnings

    def test_context_without_templates(self, store, data_dir):
        (data_dir / "sentences" / "algorithm.json").write_text(
            json.dumps([{"sentence": "The algorithm ran.", "context": "technology"}])
        )
        asyncio.run(store.reload())
        result = DataLoader(store).validate_data_integrity()
        assert 'No exercise templates found for context "technology"' in result.warnings
        assert result.is_valid

    def test_blank_general_definition_is_an_error(self, store, data_dir):
        (data_dir / "definitions" / "extra.json").write_text(
            json.dumps([{"word": "quokka", "general": "   "}])
        )
        asyncio.run(store.reload())
        result = DataLoader(store).validate_data_integrity()
        assert not result.is_valid
        assert result.errors == ['Word "quokka" has an empty general definition']

    def test_empty_store_is_valid(self, empty_store):
        result = DataLoader(empty_store).validate_data_integrity()
        assert result.is_valid
        assert result.stats["total_words"] == 0


class TestHealthStatus:
    def test_not_loaded(self, data_dir):
        health = DataLoader(ContentStore(data_dir)).health_status()
        assert health.status == "error"
        assert health.details == {"loaded": False}

    def test_store_loaded_without_loader_stats(self, store):
        health = DataLoader(store).health_status()
        assert health.status == "warning"

    @pytest.mark.asyncio
    async def test_healthy(self, data_dir):
        loader = DataLoader(ContentStore(data_dir))
        await loader.load_all_data()
        health = loader.health_status()
        assert health.status == "healthy"
        assert health.details["stats"]["definitions_loaded"] == 4

    def test_errors_reported(self, store, data_dir):
        (data_dir / "definitions" / "extra.json").write_text(
            json.dumps([{"word": "quokka", "general": " "}])
        )
        loader = DataLoader(store)
        asyncio.run(loader.load_all_data())
        health = loader.health_status()
        assert health.status == "error"
        assert health.to_dict()["details"]["errors"] == ['Word "quokka" has an empty general definition']
