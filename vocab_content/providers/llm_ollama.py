from __future__ import annotations

import logging
import time

import httpx

from vocab_content.providers.base import LLMProvider

log = logging.getLogger("vocab_content.llm")


class OllamaProvider(LLMProvider):
    def __init__(self, base_url: str = "http://localhost:11434", model: str = "qwen3:8b", timeout: float = 120.0):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout

    async def generate(self, prompt: str, temperature: float = 0.7, thinking: bool = False) -> str:
        log.debug("── PROMPT (%s) ──\n%s", self.model, prompt)
        t0 = time.monotonic()
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(
                f"{self.base_url}/api/generate",
                json={
                    "model": self.model,
                    "prompt": prompt,
                    "options": {"temperature": temperature},
                    "stream": False,
                    "think": thinking,
                },
            )
            resp.raise_for_status()
            data = resp.json()
        response = data["response"]
        log.info("%s answered in %.1fs (%s tokens)", self.name(), time.monotonic() - t0, data.get("eval_count", "?"))
        log.debug("── RESPONSE ──\n%s", response)
        return response

    def name(self) -> str:
        return f"ollama/{self.model}"

    def is_configured(self) -> bool:
        return bool(self.base_url and self.model)
