"""Prompt templates for the model-backed engines."""
from __future__ import annotations

from typing import Sequence

from vocab_content.models import WordItem

JSON_ONLY = "Respond in this exact JSON format only, with no other text:"

DEFINITION_PROMPT = """\
Define the {base_language} word "{word}" for a learner whose native language is \
{target_language}.
Context: {context}

Give one clear sentence that explains the meaning the word has in this context. \
Respond with the definition only, no quotes and no preamble.
"""

VALIDATE_PROMPT = """\
A vocabulary learner was asked for "{correct_answer}" (context: {context}) and answered \
"{user_answer}".

Decide whether the answer should be accepted. Accept synonyms and minor spelling \
mistakes that keep the meaning; reject answers with a different meaning.

""" + JSON_ONLY + """
{{
  "is_correct": true,
  "explanation": "One sentence on why the answer is or is not acceptable",
  "feedback": "One encouraging sentence addressed to the learner"
}}
"""

EXAMPLES_PROMPT = """\
Write {count} natural example sentences in {base_language} using the word "{word}" \
with the meaning "{meaning}" in a {context} context. Translate each sentence into \
{target_language}.

""" + JSON_ONLY + """
{{
  "examples": [
    {{"sentence": "...", "translation": "...", "context_note": "short note on the usage"}}
  ]
}}
"""

SIMILAR_WORDS_PROMPT = """\
List up to {count} {base_language} words close in meaning to "{word}" \
("{meaning}") as used in a {context} context. For each, say how it differs.

""" + JSON_ONLY + """
{{
  "similar_words": [
    {{"word": "...", "meaning": "...", "similarity_score": 0.8, "usage_note": "..."}}
  ]
}}
"""

LIGHT_READING_PROMPT = """\
Write a short, easy {level} reading passage (120-200 words) in {base_language} about \
a {context} topic. Use each of these words once, spelled exactly as given:

{word_list}

""" + JSON_ONLY + """
{{
  "title": "Passage title",
  "content": "The passage text"
}}
"""

VOCABULARY_PROMPT = """\
Suggest {count} {base_language} vocabulary words for {difficulty} learners in a \
{context} context. Learners speak {target_language}.
{exclude_section}
""" + JSON_ONLY + """
{{
  "words": [
    {{"word": "...", "meaning": "...", "example": "...", "part_of_speech": "noun"}}
  ]
}}
"""

WORD_DETAILS_PROMPT = """\
Describe the {base_language} word "{word}" as used in a {context} context, for a \
learner who speaks {target_language}.

""" + JSON_ONLY + """
{{
  "word": "{word}",
  "meaning": "...",
  "example": "...",
  "part_of_speech": "...",
  "pronunciation": "/.../",
  "etymology": "...",
  "usage_notes": "..."
}}
"""

EXERCISES_PROMPT = """\
Create one vocabulary exercise for each word below ({context} context). \
Allowed exercise types: {types}.

{word_list}

Rules:
- multiple_choice and matching: exactly 4 options, one of which is the correct meaning.
- true_false: options are ["True", "False"] and correct is "True" or "False".
- fill_in_blank and sentence_completion: a sentence with the word replaced by "_____"; \
correct is the word itself; no options.

""" + JSON_ONLY + """
{{
  "exercises": [
    {{"word": "...", "type": "multiple_choice", "question": "...", "options": ["..."], \
"correct": "...", "explanation": "..."}}
  ]
}}
"""


def format_word_list(words: Sequence[WordItem]) -> str:
    lines = []
    for w in words:
        if w.meaning:
            lines.append(f"- {w.value}: {w.meaning}")
        else:
            lines.append(f"- {w.value}")
    return "\n".join(lines)


def format_exclusions(words: Sequence[str]) -> str:
    if not words:
        return ""
    return "Do not suggest any of these words: " + ", ".join(words) + "\n"
