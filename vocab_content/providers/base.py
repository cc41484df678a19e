from __future__ import annotations

from abc import ABC, abstractmethod


class LLMProvider(ABC):
    @abstractmethod
    async def generate(self, prompt: str, temperature: float = 0.7, thinking: bool = False) -> str:
        ...

    @abstractmethod
    def name(self) -> str:
        ...

    def is_configured(self) -> bool:
        """Whether credentials or an endpoint are set; says nothing about reachability."""
        return True
