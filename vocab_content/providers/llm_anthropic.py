from __future__ import annotations

import os

from vocab_content.providers.base import LLMProvider


class AnthropicProvider(LLMProvider):
    def __init__(self, model: str = "claude-sonnet-4-20250514", max_tokens: int = 2048):
        import anthropic
        self.api_key = os.environ.get("ANTHROPIC_API_KEY", "")
        self.client = anthropic.AsyncAnthropic(api_key=self.api_key)
        self.model = model
        self.max_tokens = max_tokens

    async def generate(self, prompt: str, temperature: float = 0.7, thinking: bool = False) -> str:
        message = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=temperature,
            messages=[{"role": "user", "content": prompt}],
        )
        return "".join(block.text for block in message.content if block.type == "text")

    def name(self) -> str:
        return f"anthropic/{self.model}"

    def is_configured(self) -> bool:
        return bool(self.api_key)
