"""Definitions, examples, similar words and light reading from curated data."""
from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Sequence

from vocab_content.models import Definition, SentenceExample, WordItem

if TYPE_CHECKING:
    from vocab_content.passages import PassageComposer
    from vocab_content.store import ContentStore

log = logging.getLogger("vocab_content.words")

MAX_EXAMPLES = 5
NEAR_MATCH_RATIO = 0.7


def _normalize(answer: str) -> str:
    return re.sub(r"[^\w\s]", "", answer.strip().lower())


def check_answer(user_answer: str, correct_answer: str) -> dict:
    """Punctuation-insensitive comparison with a near-match allowance.

    A containment match counts as correct when the user's answer is at least
    70% as long as the expected one.
    """
    user = _normalize(user_answer)
    correct = _normalize(correct_answer)
    exact = user == correct
    partial = bool(user and correct) and (correct in user or user in correct)
    is_correct = exact or (partial and len(user) > len(correct) * NEAR_MATCH_RATIO)

    if is_correct:
        explanation = f'Correct! "{correct_answer}" is the right answer.'
        feedback = f'Well done! Your answer "{user_answer}" is correct.'
    elif partial:
        explanation = f'Close, but not quite right. The correct answer is "{correct_answer}".'
        feedback = (
            f'You\'re on the right track with "{user_answer}", '
            f'but the exact answer is "{correct_answer}".'
        )
    else:
        explanation = f'Incorrect. The correct answer is "{correct_answer}".'
        feedback = f'Not quite. Your answer "{user_answer}" doesn\'t match "{correct_answer}". Try again!'
    return {"is_correct": is_correct, "explanation": explanation, "feedback": feedback}


class ManualWordEngine:
    mode = "manual"

    def __init__(self, store: ContentStore, composer: PassageComposer):
        self.store = store
        self.composer = composer

    def health(self) -> tuple[bool, dict]:
        return self.store.is_loaded, {
            "data_loaded": self.store.is_loaded,
            "total_words": len(self.store.get_all_words()),
        }

    async def generate_definition(
        self, word: str, context: str, base_language: str = "English", target_language: str = "English"
    ) -> str:
        return self.store.get_definition(word, context)

    async def validate_answer(
        self,
        user_answer: str,
        correct_answer: str,
        context: str,
        base_language: str = "English",
        target_language: str = "English",
    ) -> dict:
        return check_answer(user_answer, correct_answer)

    async def generate_examples(
        self,
        word: str,
        meaning: str,
        context: str,
        base_language: str = "English",
        target_language: str = "English",
    ) -> list[SentenceExample]:
        examples = self.composer.search_sentences(word, context, limit=MAX_EXAMPLES)
        if examples:
            return examples
        log.info("No curated examples for %r in %r, using a placeholder", word, context)
        return [
            SentenceExample(
                sentence=f'Here is an example using "{word}": This demonstrates the meaning of {word}.',
                context=context or "general",
                difficulty="beginner",
                context_note=f'Basic example for the word "{word}" meaning: {meaning}',
            )
        ]

    async def generate_similar_words(
        self,
        word: str,
        meaning: str,
        context: str,
        base_language: str = "English",
        target_language: str = "English",
    ) -> dict:
        similar = self.store.get_similar_words(word)
        if not similar:
            log.info("No similar words for %r in curated data", word)
        return {"similar_words": [s.to_dict() for s in similar]}

    async def generate_light_reading(
        self,
        words: Sequence[WordItem],
        context: str,
        base_language: str = "English",
        target_language: str = "English",
        level: str = "intermediate",
    ) -> dict:
        passage = self.composer.compose(words, context, level)
        result = passage.to_dict()
        result.update(
            list_name=f"{context} Vocabulary",
            list_context=context,
            level=passage.difficulty,
            words_included=len(passage.highlighted_words),
            total_words_in_list=len(words),
        )
        return result

    async def has_word(self, word: str) -> bool:
        return self.store.has_word(word)

    async def get_all_words(self) -> list[str]:
        return sorted(self.store.get_all_words())

    async def add_word_definition(
        self,
        word: str,
        definition: str,
        context: str,
        difficulty: str = "intermediate",
        part_of_speech: str = "noun",
    ) -> Definition:
        record = Definition.from_dict({
            "word": word,
            "general": definition,
            "contextual": {context: definition} if context else {},
            "difficulty": difficulty,
            "part_of_speech": part_of_speech,
        })
        await self.store.add_definition(record)
        return self.store.get_definition_record(word)
