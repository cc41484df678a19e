"""Sentence search and reading passages assembled from curated examples."""
from __future__ import annotations

import logging
import math
import random
from dataclasses import replace
from typing import TYPE_CHECKING, Sequence

from vocab_content.exercises import shuffle, word_pattern
from vocab_content.models import HighlightedWord, ReadingPassage, SentenceExample, WordItem

if TYPE_CHECKING:
    from vocab_content.store import ContentStore

log = logging.getLogger("vocab_content.passages")

WORDS_PER_MINUTE = 200

INTROS = {
    "business": "In the business world, understanding key terminology is essential.",
    "daily": "In our everyday lives, we encounter many important concepts.",
    "technology": "Modern technology relies on specific terminology that's important to understand.",
    "sports": "Sports and athletic activities involve specialized vocabulary.",
    "geography": "Understanding geographical terms helps us describe the world around us.",
    "academic": "Academic study requires familiarity with specialized vocabulary.",
    "default": "Learning new vocabulary helps us communicate more effectively.",
}

CONCLUSIONS = {
    "business": "These terms form the foundation of business communication.",
    "daily": "These words help us express ourselves in daily conversations.",
    "technology": "Understanding these terms is key to navigating the digital world.",
    "sports": "This vocabulary is essential for discussing athletic activities.",
    "geography": "These terms help us describe and understand our physical world.",
    "academic": "This vocabulary is fundamental for academic success.",
    "default": "Mastering these words will improve your communication skills.",
}

TITLES = {
    "business": "Business Vocabulary in Context",
    "daily": "Everyday English Conversations",
    "technology": "Technology Terms and Usage",
    "sports": "Sports and Athletic Vocabulary",
    "geography": "Geographical Terms and Descriptions",
    "academic": "Academic Vocabulary in Practice",
    "default": "Vocabulary in Context",
}


def _for_context(table: dict[str, str], context: str) -> str:
    return table.get((context or "").lower(), table["default"])


def reading_time(word_count: int) -> int:
    return math.ceil(word_count / WORDS_PER_MINUTE)


class PassageComposer:
    def __init__(self, store: ContentStore, rng: random.Random | None = None):
        self.store = store
        self.rng = rng or random.Random()

    def compose(
        self, words: Sequence[WordItem], context: str, level: str = "intermediate"
    ) -> ReadingPassage:
        """Intro, then the first example sentence of each word that has one, then a conclusion.

        Words without an example for *context* are left out.  An included word
        is highlighted at its first whole-word match; if its sentence only
        contains an inflected form, the sentence stays and the highlight is
        skipped.
        """
        parts = [_for_context(INTROS, context)]
        offset = len(parts[0]) + 1
        highlights: list[HighlightedWord] = []

        for item in words:
            examples = self.store.get_sentence_examples(item.value, context)
            if not examples:
                continue
            sentence = examples[0].sentence
            match = word_pattern(item.value).search(sentence)
            if match:
                meaning = item.meaning or self.store.get_definition(item.value, context)
                highlights.append(
                    HighlightedWord(word=item.value, definition=meaning, position=offset + match.start())
                )
            else:
                log.warning("%r does not appear as a whole word in its example; not highlighted", item.value)
            parts.append(sentence)
            offset += len(sentence) + 1

        parts.append(_for_context(CONCLUSIONS, context))
        content = " ".join(parts)
        word_count = len(content.split())

        log.info(
            "Composed passage: %d/%d words included (%s)",
            len(highlights), len(words), context or "no context",
        )
        return ReadingPassage(
            title=_for_context(TITLES, context),
            content=content,
            word_count=word_count,
            reading_time_minutes=reading_time(word_count),
            highlighted_words=highlights,
            difficulty=level,
            context=context,
        )

    # ── Sentence search ───────────────────────────────────────────────────

    def search_sentences(
        self,
        word: str,
        context: str | None = None,
        difficulty: str | None = None,
        limit: int | None = None,
        include_translations: bool = True,
    ) -> list[SentenceExample]:
        sentences = self.store.get_sentence_examples(word, context)
        if difficulty:
            sentences = [s for s in sentences if s.difficulty == difficulty]
        if limit:
            sentences = sentences[:limit]
        if not include_translations:
            sentences = [replace(s, translation=None) for s in sentences]
        return sentences

    def sentences_for_words(
        self, words: Sequence[str], context: str | None = None, difficulty: str | None = None
    ) -> dict[str, list[SentenceExample]]:
        return {w: self.search_sentences(w, context, difficulty) for w in words}

    def find_sentences_with_multiple_words(
        self, words: Sequence[str], context: str | None = None, min_words: int = 2
    ) -> list[SentenceExample]:
        """Distinct sentences mentioning at least *min_words* of *words*."""
        seen: set[str] = set()
        found = []
        lowered = [w.lower() for w in words]
        for word in words:
            for example in self.store.get_sentence_examples(word, context):
                if example.sentence in seen:
                    continue
                text = example.sentence.lower()
                if sum(1 for w in lowered if w in text) >= min_words:
                    seen.add(example.sentence)
                    found.append(example)
        return found

    def sentences_by_difficulty(
        self, difficulty: str, context: str | None = None, limit: int | None = None
    ) -> list[SentenceExample]:
        sentences = [
            s
            for word in sorted(self.store.get_all_words())
            for s in self.store.get_sentence_examples(word, context)
            if s.difficulty == difficulty
        ]
        sentences = shuffle(sentences, self.rng)
        return sentences[:limit] if limit else sentences

    @staticmethod
    def validate_sentence_usage(sentence: str, word: str, expected_meaning: str) -> dict:
        if word.lower() not in sentence.lower():
            return {
                "is_valid": False,
                "feedback": f'The sentence should contain the word "{word}".',
                "suggestions": [
                    f'Try using "{word}" in your sentence.',
                    f'Make sure to spell "{word}" correctly.',
                ],
            }
        is_valid = len(sentence) > 10 and " " in sentence
        if is_valid:
            return {"is_valid": True, "feedback": f'Good use of "{word}" in context!', "suggestions": []}
        return {
            "is_valid": False,
            "feedback": f'The sentence could be improved to better demonstrate the meaning of "{word}".',
            "suggestions": [
                f'Try to show the meaning of "{word}" more clearly.',
                "Consider adding more context to your sentence.",
                f"Make sure your sentence demonstrates: {expected_meaning}",
            ],
        }
