from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"

DEFAULTS = {
    "manual_data_mode": False,
    "data_dir": "data",
    "llm_provider": "ollama",
    "llm_model": "qwen3:8b",
    "ollama_url": "http://localhost:11434",
    "load_max_attempts": 3,
    "quiz_question_count": 10,
}


@dataclass
class Settings:
    manual_data_mode: bool = DEFAULTS["manual_data_mode"]
    data_dir: str = DEFAULTS["data_dir"]
    llm_provider: str = DEFAULTS["llm_provider"]
    llm_model: str = DEFAULTS["llm_model"]
    ollama_url: str = DEFAULTS["ollama_url"]
    load_max_attempts: int = DEFAULTS["load_max_attempts"]
    quiz_question_count: int = DEFAULTS["quiz_question_count"]

    @property
    def project_root(self) -> Path:
        return Path(__file__).resolve().parent.parent

    @property
    def data_full_path(self) -> Path:
        p = Path(self.data_dir)
        if p.is_absolute():
            return p
        return self.project_root / p

    @property
    def mode(self) -> str:
        return "manual" if self.manual_data_mode else "llm"

    def to_dict(self) -> dict:
        return {
            "manual_data_mode": self.manual_data_mode,
            "data_dir": self.data_dir,
            "llm_provider": self.llm_provider,
            "llm_model": self.llm_model,
            "ollama_url": self.ollama_url,
            "load_max_attempts": self.load_max_attempts,
            "quiz_question_count": self.quiz_question_count,
        }


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_settings() -> Settings:
    """Read ``config.json`` (if present), then apply environment overrides.

    ``MANUAL_DATA_MODE`` is read once here; the adapters never look at the
    environment themselves.
    """
    raw: dict = {}
    if CONFIG_PATH.exists():
        raw = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    known = {f.name for f in Settings.__dataclass_fields__.values()}
    filtered = {k: v for k, v in raw.items() if k in known}

    env_mode = os.environ.get("MANUAL_DATA_MODE")
    if env_mode is not None:
        filtered["manual_data_mode"] = _env_flag(env_mode)
    env_dir = os.environ.get("VOCAB_CONTENT_DATA_DIR")
    if env_dir:
        filtered["data_dir"] = env_dir
    return Settings(**filtered)
