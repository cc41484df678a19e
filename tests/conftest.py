"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import json
import random
from pathlib import Path

import pytest

from vocab_content.exercises import ExerciseGenerator
from vocab_content.models import WordItem
from vocab_content.passages import PassageComposer
from vocab_content.store import ContentStore

DEFINITIONS = [
    {
        "word": "bank",
        "general": "financial institution",
        "contextual": {"geography": "river edge"},
        "difficulty": "beginner",
        "part_of_speech": "noun",
    },
    {
        "word": "meeting",
        "general": "a gathering of people",
        "contextual": {"business": "a scheduled discussion between colleagues"},
        "difficulty": "beginner",
        "part_of_speech": "noun",
    },
    {
        "word": "deadline",
        "general": "the latest time something must be done",
        "contextual": {"business": "the date a deliverable is due"},
        "difficulty": "intermediate",
        "part_of_speech": "noun",
    },
    {
        "word": "algorithm",
        "general": "a step-by-step procedure",
        "contextual": {"technology": "a set of rules a computer follows"},
        "difficulty": "advanced",
        "part_of_speech": "noun",
    },
]

SENTENCES = {
    "bank": [
        {
            "sentence": "She opened an account at the bank.",
            "translation": "Elle a ouvert un compte à la banque.",
            "context": "business",
            "difficulty": "beginner",
        },
        {
            "sentence": "We sat on the bank of the river.",
            "context": "geography",
            "difficulty": "intermediate",
        },
    ],
    "meeting": [
        {"sentence": "The meeting starts at nine.", "context": "business", "difficulty": "beginner"},
    ],
    "deadline": [
        {"sentence": "We moved the deadline to Friday.", "context": "business", "difficulty": "intermediate"},
    ],
}

SIMILAR_WORDS = {
    "bank": [
        {"word": "lender", "meaning": "one who lends money", "similarity_score": 0.8, "usage_note": "formal"},
        {"word": "shore", "meaning": "land along water", "similarity_score": 0.6},
    ],
}

TEMPLATES = {
    "business": [
        {"type": "multiple_choice", "question_template": "What does {word} mean at work?", "context": "business"},
    ],
    "geography": [
        {"type": "multiple_choice", "question_template": "What does {word} mean outdoors?", "context": "geography"},
    ],
}

DISTRACTORS = {
    "business_bank": ["a type of bread", "a musical instrument", "a kind of weather"],
    "daily_bank": ["a kind of bird", "a small boat"],
    "meeting": ["a sports trophy", "a kitchen tool", "a kind of fabric"],
}


def _dump(path: Path, payload) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def write_data_tree(root: Path) -> Path:
    """Lay out a small curated data directory under *root*."""
    _dump(root / "definitions" / "core.json", DEFINITIONS)
    for word, sentences in SENTENCES.items():
        _dump(root / "sentences" / f"{word}.json", sentences)
    for word, similar in SIMILAR_WORDS.items():
        _dump(root / "similar-words" / f"{word}.json", similar)
    for context, templates in TEMPLATES.items():
        _dump(root / "exercises" / "templates" / f"{context}.json", templates)
    for name, distractors in DISTRACTORS.items():
        _dump(root / "exercises" / "distractors" / f"{name}.json", distractors)
    return root


@pytest.fixture
def data_dir(tmp_path):
    """A populated data directory in a temp folder."""
    return write_data_tree(tmp_path / "data")


@pytest.fixture
def store(data_dir):
    """A ContentStore loaded from ``data_dir``."""
    s = ContentStore(data_dir)
    asyncio.run(s.load_all())
    return s


@pytest.fixture
def empty_store(tmp_path):
    """A loaded ContentStore over an empty directory."""
    s = ContentStore(tmp_path / "empty")
    asyncio.run(s.load_all())
    return s


@pytest.fixture
def generator(store):
    return ExerciseGenerator(store, rng=random.Random(7))


@pytest.fixture
def composer(store):
    return PassageComposer(store, rng=random.Random(7))


@pytest.fixture
def word_items():
    """A caller's word list: three known words and one unknown."""
    return [
        WordItem(id="1", value="bank", meaning=""),
        WordItem(id="2", value="meeting", meaning=""),
        WordItem(id="3", value="deadline", meaning=""),
        WordItem(id="4", value="zephyr", meaning="???"),
    ]
