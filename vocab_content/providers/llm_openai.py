from __future__ import annotations

import os

from vocab_content.providers.base import LLMProvider


class OpenAIProvider(LLMProvider):
    def __init__(self, model: str = "gpt-4o-mini"):
        import openai
        self.api_key = os.environ.get("OPENAI_API_KEY", "")
        self.client = openai.AsyncOpenAI(api_key=self.api_key)
        self.model = model

    async def generate(self, prompt: str, temperature: float = 0.7, thinking: bool = False) -> str:
        resp = await self.client.chat.completions.create(
            model=self.model,
            temperature=temperature,
            messages=[{"role": "user", "content": prompt}],
        )
        return resp.choices[0].message.content or ""

    def name(self) -> str:
        return f"openai/{self.model}"

    def is_configured(self) -> bool:
        return bool(self.api_key)
