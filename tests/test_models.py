"""Tests for data models."""
from __future__ import annotations

import pytest

from vocab_content.models import (
    Definition,
    DistractorSet,
    DistractorSource,
    Exercise,
    ExerciseTemplate,
    ExerciseType,
    Found,
    HighlightedWord,
    NotFound,
    ReadingPassage,
    SentenceExample,
    SimilarWord,
    WordItem,
)


class TestDefinition:
    def test_from_dict_defaults(self):
        d = Definition.from_dict({"word": "bank", "general": "financial institution"})
        assert d.contextual == {}
        assert d.difficulty == "intermediate"
        assert d.part_of_speech == "noun"
        assert d.pronunciation is None

    def test_contextual_keys_lowercased(self):
        d = Definition("bank", "financial institution", {"Geography": "river edge"})
        assert d.contextual == {"geography": "river edge"}

    def test_key_is_lowercase(self):
        assert Definition("Bank", "x").key == "bank"

    def test_headword_is_stripped(self):
        d = Definition.from_dict({"word": " Bank ", "general": "financial institution"})
        assert d.word == "Bank"
        assert d.key == "bank"

    @pytest.mark.parametrize("raw", [
        {"word": "quokka", "general": 42},
        {"word": 7, "general": "a small marsupial"},
        {"word": "quokka", "general": "a small marsupial", "contextual": {"zoology": 3}},
    ])
    def test_non_string_text_rejected(self, raw):
        with pytest.raises(ValueError, match="strings"):
            Definition.from_dict(raw)

    def test_missing_general_rejected(self):
        with pytest.raises(ValueError, match="general"):
            Definition.from_dict({"word": "bank"})

    def test_unknown_difficulty_rejected(self):
        with pytest.raises(ValueError, match="difficulty"):
            Definition.from_dict({"word": "bank", "general": "x", "difficulty": "expert"})

    def test_contextual_must_be_object(self):
        with pytest.raises(ValueError):
            Definition.from_dict({"word": "bank", "general": "x", "contextual": ["river edge"]})

    def test_to_dict_omits_empty_optionals(self):
        d = Definition("bank", "financial institution").to_dict()
        assert "pronunciation" not in d
        assert "audio_file" not in d
        assert d["contextual"] == {}


class TestSentenceExample:
    def test_from_dict_defaults(self):
        s = SentenceExample.from_dict({"sentence": "The bank opens at nine."})
        assert s.context == "general"
        assert s.difficulty == "intermediate"
        assert s.translation is None

    def test_empty_translation_is_none(self):
        s = SentenceExample.from_dict({"sentence": "x", "translation": ""})
        assert s.translation is None

    def test_non_string_sentence_rejected(self):
        with pytest.raises(ValueError, match="sentence"):
            SentenceExample.from_dict({"sentence": ["The", "bank"]})

    def test_rejects_non_object(self):
        with pytest.raises(ValueError):
            SentenceExample.from_dict("The bank opens at nine.")


class TestSimilarWord:
    def test_score_parsed_as_float(self):
        s = SimilarWord.from_dict({"word": "shore", "meaning": "land along water", "similarity_score": "0.5"})
        assert s.similarity_score == 0.5
        assert s.usage_note == ""

    def test_non_string_meaning_rejected(self):
        with pytest.raises(ValueError, match="meaning"):
            SimilarWord.from_dict({"word": "lender", "meaning": 1, "similarity_score": 0.5})

    def test_score_out_of_range(self):
        with pytest.raises(ValueError, match="out of range"):
            SimilarWord.from_dict({"word": "shore", "meaning": "land", "similarity_score": -0.1})


class TestExerciseTemplate:
    def test_type_parsed(self):
        t = ExerciseTemplate.from_dict({"type": "true_false", "question_template": "True or False: {word}"})
        assert t.type is ExerciseType.TRUE_FALSE
        assert t.to_dict()["type"] == "true_false"

    def test_non_string_template_rejected(self):
        with pytest.raises(ValueError, match="question_template"):
            ExerciseTemplate.from_dict({"type": "multiple_choice", "question_template": {"en": "x"}})

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            ExerciseTemplate.from_dict({"type": "essay", "question_template": "x"})


class TestWordItem:
    def test_id_defaults_to_value(self):
        w = WordItem.from_dict({"value": "bank"})
        assert w.id == "bank"
        assert w.meaning == ""

    def test_numeric_id(self):
        assert WordItem.from_dict({"id": 3, "value": "bank"}).id == "3"


class TestExercise:
    def test_to_dict_and_back(self):
        ex = Exercise(
            id="mc_bank_1",
            type=ExerciseType.MULTIPLE_CHOICE,
            question='What does "bank" mean?',
            correct="financial institution",
            word="bank",
            context="business",
            difficulty="beginner",
            explanation='"bank" means: financial institution',
            options=["financial institution", "a boat"],
            distractor_source=DistractorSource.PARTIAL,
        )
        d = ex.to_dict()
        assert d["type"] == "multiple_choice"
        assert d["distractor_source"] == "partial"
        assert Exercise.from_dict(d) == ex

    def test_optional_fields_omitted(self):
        ex = Exercise("fib_bank_1", ExerciseType.FILL_IN_BLANK, "q", "bank", "bank", "", "beginner", "")
        d = ex.to_dict()
        assert "options" not in d
        assert "distractor_source" not in d

    def test_from_dict_requires_correct(self):
        with pytest.raises(ValueError, match="correct"):
            Exercise.from_dict({"type": "multiple_choice"})


class TestResults:
    def test_found_and_not_found(self):
        assert Found("river edge").value == "river edge"
        nf = NotFound("zephyr")
        assert nf.message == 'Definition not found for "zephyr". Please add it to the definitions database.'

    def test_distractor_set_provenance(self):
        assert DistractorSet(("a", "b", "c"), DistractorSource.CURATED, 3).is_curated
        assert not DistractorSet(("a", "b", "c"), DistractorSource.PARTIAL, 1).is_curated


class TestReadingPassage:
    def test_to_dict(self):
        p = ReadingPassage(
            title="Vocabulary in Context",
            content="Intro. The bank is open.",
            word_count=5,
            reading_time_minutes=1,
            highlighted_words=[HighlightedWord("bank", "financial institution", 11)],
            difficulty="beginner",
            context="daily",
        )
        d = p.to_dict()
        assert d["highlighted_words"] == [
            {"word": "bank", "definition": "financial institution", "position": 11}
        ]
        assert d["reading_time_minutes"] == 1
