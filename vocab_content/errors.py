"""Exceptions raised by the content engine."""
from __future__ import annotations


class ContentError(Exception):
    """Base class for content-engine failures."""


class DataLoadError(ContentError):
    """A backing source could not be read or parsed."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


class StartupError(ContentError):
    """Loading kept failing after every retry; the process should not serve."""

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts


class DefinitionNotFoundError(ContentError):
    def __init__(self, word: str):
        super().__init__(f'Definition for "{word}" not found')
        self.word = word


class WordNotFoundError(DefinitionNotFoundError):
    def __init__(self, word: str, context: str | None = None):
        super().__init__(word)
        self.context = context
        if context:
            self.args = (f'Word "{word}" not found in context "{context}"',)
        else:
            self.args = (f'Word "{word}" not found',)


class GenerationError(ContentError):
    """The language model did not produce a usable answer."""


class ModeError(ContentError):
    """The operation only exists in the other data mode."""


class PersistenceError(ContentError):
    """Memory was updated but the write-through to disk failed."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path
