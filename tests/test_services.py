"""Tests for the manual-mode engines."""
from __future__ import annotations

import json
import random

import pytest

from vocab_content.errors import WordNotFoundError
from vocab_content.models import ExerciseType, WordItem
from vocab_content.services.manual_learn import ManualLearnEngine, recommended_difficulty
from vocab_content.services.manual_quiz import POINTS, ManualQuizEngine, pick_question_type
from vocab_content.services.manual_vocabulary import ManualVocabularyEngine, coverage_label
from vocab_content.services.manual_words import ManualWordEngine, check_answer


@pytest.fixture
def words_engine(store, composer):
    return ManualWordEngine(store, composer)


@pytest.fixture
def vocab_engine(store):
    return ManualVocabularyEngine(store, rng=random.Random(3))


@pytest.fixture
def learn_engine(generator):
    return ManualLearnEngine(generator)


@pytest.fixture
def quiz_engine(generator):
    return ManualQuizEngine(generator, rng=random.Random(5))


class TestCheckAnswer:
    def test_exact_ignores_punctuation_and_case(self):
        result = check_answer("Financial institution!", "financial institution")
        assert result["is_correct"] is True
        assert result["explanation"] == 'Correct! "financial institution" is the right answer.'

    def test_near_match_accepted(self):
        assert check_answer("a financial institution", "financial institution")["is_correct"] is True

    def test_short_partial_rejected(self):
        result = check_answer("financial", "financial institution")
        assert result["is_correct"] is False
        assert result["explanation"].startswith("Close, but not quite right.")

    def test_wrong(self):
        result = check_answer("a boat", "financial institution")
        assert result["is_correct"] is False
        assert result["feedback"] == (
            'Not quite. Your answer "a boat" doesn\'t match "financial institution". Try again!'
        )

    def test_empty_answer_is_wrong(self):
        assert check_answer("", "bank")["is_correct"] is False


class TestManualWordEngine:
    @pytest.mark.asyncio
    async def test_definition(self, words_engine):
        assert await words_engine.generate_definition("bank", "geography") == "river edge"
        assert "zephyr" in await words_engine.generate_definition("zephyr", "daily")

    @pytest.mark.asyncio
    async def test_examples(self, words_engine):
        examples = await words_engine.generate_examples("bank", "financial institution", "business")
        assert [e.sentence for e in examples] == ["She opened an account at the bank."]

    @pytest.mark.asyncio
    async def test_placeholder_example(self, words_engine):
        [example] = await words_engine.generate_examples("zephyr", "a gentle breeze", "daily")
        assert "zephyr" in example.sentence
        assert example.context == "daily"
        assert "a gentle breeze" in example.context_note

    @pytest.mark.asyncio
    async def test_similar_words(self, words_engine):
        result = await words_engine.generate_similar_words("bank", "", "business")
        assert [s["word"] for s in result["similar_words"]] == ["lender", "shore"]
        assert (await words_engine.generate_similar_words("zephyr", "", ""))["similar_words"] == []

    @pytest.mark.asyncio
    async def test_light_reading_counts(self, words_engine):
        words = [WordItem("1", "bank"), WordItem("2", "meeting"), WordItem("3", "algorithm")]
        result = await words_engine.generate_light_reading(words, "business", level="beginner")

        assert result["words_included"] == 2
        assert result["total_words_in_list"] == 3
        assert result["list_name"] == "business Vocabulary"
        assert result["level"] == "beginner"
        assert len(result["highlighted_words"]) == 2

    @pytest.mark.asyncio
    async def test_word_listing(self, words_engine):
        assert await words_engine.has_word("Bank")
        assert not await words_engine.has_word("zephyr")
        assert await words_engine.get_all_words() == ["algorithm", "bank", "deadline", "meeting"]

    @pytest.mark.asyncio
    async def test_add_word_definition(self, words_engine, store, data_dir):
        record = await words_engine.add_word_definition("Zephyr", "a gentle breeze", "Weather", "advanced")

        assert record.word == "zephyr"
        assert store.get_definition("zephyr", "weather") == "a gentle breeze"
        assert store.get_word_difficulty("zephyr") == "advanced"
        saved = json.loads((data_dir / "definitions" / "manual_entries.json").read_text())
        assert saved[0]["word"] == "zephyr"

    @pytest.mark.asyncio
    async def test_add_word_definition_validates(self, words_engine):
        with pytest.raises(ValueError):
            await words_engine.add_word_definition("zephyr", "a gentle breeze", "", "expert")

    def test_health(self, words_engine):
        available, details = words_engine.health()
        assert available
        assert details == {"data_loaded": True, "total_words": 4}


class TestManualVocabularyEngine:
    def test_coverage_label(self):
        assert [coverage_label(n) for n in (0, 10, 30, 100)] == ["poor", "limited", "good", "excellent"]

    @pytest.mark.asyncio
    async def test_generate_words_for_context(self, vocab_engine):
        words = await vocab_engine.generate_words(10, None, "business")
        assert {w["word"] for w in words} == {"bank", "meeting", "deadline", "algorithm"}
        by_word = {w["word"]: w for w in words}
        assert by_word["meeting"]["meaning"] == "a scheduled discussion between colleagues"
        assert by_word["bank"]["example"] == "She opened an account at the bank."
        assert by_word["algorithm"]["example"] == 'Example sentence for "algorithm" would go here.'
        assert len(by_word["bank"]["similar_words"]) == 2

    @pytest.mark.asyncio
    async def test_generate_words_filters(self, vocab_engine):
        words = await vocab_engine.generate_words(10, "beginner", "business", exclude_words=["Meeting"])
        assert [w["word"] for w in words] == ["bank"]
        assert len(await vocab_engine.generate_words(2, None, "business")) == 2
        assert await vocab_engine.generate_words(0, None, "business") == []

    @pytest.mark.asyncio
    async def test_word_details(self, vocab_engine):
        details = await vocab_engine.get_word_details("bank", "geography", "English", "French")
        assert details["meaning"] == "river edge"
        assert details["contextual_definitions"] == {"geography": "river edge"}
        assert details["frequency"] == "common"
        assert details["translations"]["French"] == '[French translation of "bank"]'
        assert details["pronunciation"] == "/bank/"

    @pytest.mark.asyncio
    async def test_word_details_unknown(self, vocab_engine):
        with pytest.raises(WordNotFoundError, match='Word "zephyr" not found in context "daily"'):
            await vocab_engine.get_word_details("zephyr", "daily")

    @pytest.mark.asyncio
    async def test_stats(self, vocab_engine):
        stats = await vocab_engine.get_vocabulary_stats("business")
        assert stats["total_words"] == 4
        assert stats["difficulty_distribution"] == {"beginner": 2, "intermediate": 1, "advanced": 1}
        assert stats["most_common_words"][0] == "bank"

    @pytest.mark.asyncio
    async def test_capability(self, vocab_engine, empty_store):
        result = await vocab_engine.check_vocabulary_capability("business")
        assert result["can_generate"] is True
        assert result["coverage"] == "poor"
        assert result["suggestions"][0] == "Limited vocabulary available (4 words)"

        empty = await ManualVocabularyEngine(empty_store).check_vocabulary_capability("business")
        assert empty["can_generate"] is False
        assert empty["available_words"] == 0

    @pytest.mark.asyncio
    async def test_search(self, vocab_engine):
        hits = await vocab_engine.search_words("dead")
        assert [h["word"] for h in hits] == ["deadline"]
        hits = await vocab_engine.search_words("institution", context="geography")
        assert hits == [{
            "word": "bank", "meaning": "river edge", "difficulty_level": "beginner", "part_of_speech": "noun",
        }]
        assert await vocab_engine.search_words("  ") == []
        assert await vocab_engine.search_words("a", difficulty="advanced") == [{
            "word": "algorithm", "meaning": "a step-by-step procedure",
            "difficulty_level": "advanced", "part_of_speech": "noun",
        }]

    @pytest.mark.asyncio
    async def test_suggestions(self, vocab_engine):
        suggestions = await vocab_engine.get_word_suggestions(["bank"], "business", count=3)
        assert [s["word"] for s in suggestions] == ["lender", "shore", "deadline"]
        assert suggestions[0]["confidence"] == 0.8
        assert suggestions[2]["confidence"] == 0.5


class TestManualLearnEngine:
    def test_recommended_difficulty(self):
        assert recommended_difficulty([]) == "beginner"
        assert recommended_difficulty([WordItem("1", "bank")]) == "beginner"
        assert recommended_difficulty([WordItem("1", "deadline")]) == "intermediate"
        assert recommended_difficulty([WordItem("1", "internationalization")]) == "advanced"

    @pytest.mark.asyncio
    async def test_generate_by_type(self, learn_engine, word_items):
        exercises = await learn_engine.generate_exercises_by_type(word_items, "business", "true_false")
        assert len(exercises) == 3
        assert all(e.type is ExerciseType.TRUE_FALSE for e in exercises)

    @pytest.mark.asyncio
    async def test_validate(self, learn_engine):
        [ex] = await learn_engine.generate_exercises([WordItem("1", "bank")], "", ["fill_in_blank"])
        result = await learn_engine.validate_exercise_answer(ex.id, "BANK", ex)
        assert result["is_correct"] is True

    @pytest.mark.asyncio
    async def test_stats(self, learn_engine, word_items):
        stats = await learn_engine.get_exercise_stats(word_items, "business")
        assert stats["total_words"] == 4
        assert stats["words_with_exercises"] == 3
        assert "sentence_completion" in stats["available_exercise_types"]

    @pytest.mark.asyncio
    async def test_difficulty_recommendations(self, learn_engine):
        words = [WordItem("1", "bank"), WordItem("2", "deadline"), WordItem("3", "algorithm")]
        buckets = await learn_engine.get_difficulty_recommendations(words)
        assert buckets == {"beginner": ["bank"], "intermediate": ["deadline"], "advanced": ["algorithm"]}

    @pytest.mark.asyncio
    async def test_capability(self, learn_engine):
        ok = await learn_engine.check_exercise_generation_capability([WordItem("1", "bank")], "business")
        assert ok == {"can_generate": True, "missing_data": [], "suggestions": []}

        result = await learn_engine.check_exercise_generation_capability(
            [WordItem("1", "bank"), WordItem("2", "zephyr")], "daily"
        )
        assert result["can_generate"] is False
        assert result["missing_data"] == [
            'Distractors for "bank"', 'Definition for "zephyr"', 'Distractors for "zephyr"',
        ]
        assert 'Add more distractors for "bank" (currently 2/3)' in result["suggestions"]

    @pytest.mark.asyncio
    async def test_capability_without_distractor_types(self, learn_engine):
        result = await learn_engine.check_exercise_generation_capability(
            [WordItem("1", "deadline")], "business", ["fill_in_blank"]
        )
        assert result["can_generate"] is True


class TestManualQuizEngine:
    def test_pick_question_type(self):
        assert pick_question_type([]) is ExerciseType.MULTIPLE_CHOICE
        assert pick_question_type(["true_false", "multiple_choice"]) is ExerciseType.MULTIPLE_CHOICE
        assert pick_question_type(["true_false", "matching"]) is ExerciseType.TRUE_FALSE

    @pytest.mark.asyncio
    async def test_questions(self, quiz_engine, word_items):
        questions = await quiz_engine.generate_questions(word_items, "business")
        assert {q["word"] for q in questions} == {"bank", "meeting", "deadline"}
        for q in questions:
            assert q["type"] == "multiple_choice"
            assert q["points"] == POINTS[ExerciseType.MULTIPLE_CHOICE]
            assert q["correct"] in q["options"]
            assert q["difficulty"] == "easy"

        ids = {q["word"]: q["id"] for q in questions}
        assert ids["bank"].startswith("quiz_1_")

    @pytest.mark.asyncio
    async def test_questions_limit_and_type(self, quiz_engine, word_items):
        questions = await quiz_engine.generate_questions(word_items, "business", ["true_false"], limit=2)
        assert len(questions) == 2
        assert all(q["type"] == "true_false" and q["points"] == 5 for q in questions)

    @pytest.mark.asyncio
    async def test_non_positive_limit_gives_no_questions(self, quiz_engine, word_items):
        assert await quiz_engine.generate_questions(word_items, "business", limit=0) == []
        assert await quiz_engine.generate_questions(word_items, "business", limit=-1) == []

    @pytest.mark.asyncio
    async def test_stats(self, quiz_engine, word_items):
        stats = await quiz_engine.get_quiz_stats(word_items, "business")
        assert stats["words_with_questions"] == 3
        assert stats["coverage_percentage"] == 75
        assert stats["estimated_duration"] == 2
        assert stats["recommended_question_types"] == ["multiple_choice", "fill_in_blank"]

    @pytest.mark.asyncio
    async def test_capability(self, quiz_engine, word_items):
        result = await quiz_engine.check_quiz_generation_capability(word_items, "business")
        assert result["can_generate"] is True
        assert 'Definition for "zephyr"' in result["missing_data"]
        assert 'Distractors for "deadline" (has 0, needs 3+)' in result["missing_data"]

    @pytest.mark.asyncio
    async def test_capability_nothing_known(self, quiz_engine):
        result = await quiz_engine.check_quiz_generation_capability([WordItem("1", "zephyr")], "daily")
        assert result["can_generate"] is False
        assert result["suggestions"][0] == "Add definitions for the words in your vocabulary list"
