"""Runtime settings read from the environment (``.env`` supported)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

STORAGE_KEY = "amc8_stats"
MOCK_TOTAL_SECONDS = 40 * 60


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        return default
    return max(minimum, value)


def _env_str(name: str) -> Optional[str]:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return None
    return value.strip()


@dataclass(frozen=True)
class Settings:
    state_dir: Path
    question_latency: float
    mock_latency: float
    advice_latency: float
    azure_openai_endpoint: Optional[str] = None
    azure_openai_api_key: Optional[str] = None
    azure_openai_deployment: Optional[str] = None
    azure_openai_api_version: str = "2024-10-21"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"

    @property
    def online_configured(self) -> bool:
        azure = bool(self.azure_openai_endpoint and self.azure_openai_deployment)
        return azure or bool(self.openai_api_key)


def load_settings() -> Settings:
    return Settings(
        state_dir=Path(os.environ.get("STATE_DIR", ".data/state")),
        question_latency=_env_int("QUESTION_LATENCY_MS", 300) / 1000,
        mock_latency=_env_int("MOCK_LATENCY_MS", 500) / 1000,
        advice_latency=_env_int("ADVICE_LATENCY_MS", 400) / 1000,
        azure_openai_endpoint=_env_str("AZURE_OPENAI_ENDPOINT"),
        azure_openai_api_key=_env_str("AZURE_OPENAI_API_KEY"),
        azure_openai_deployment=_env_str("AZURE_OPENAI_DEPLOYMENT"),
        azure_openai_api_version=_env_str("AZURE_OPENAI_API_VERSION") or "2024-10-21",
        openai_api_key=_env_str("OPENAI_API_KEY"),
        openai_model=_env_str("OPENAI_MODEL") or "gpt-4o-mini",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
