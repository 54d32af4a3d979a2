"""Configuration Module

Explicit configuration objects for the LLM provider, the analysis pipeline
and the HTTP application. Values come from environment variables (a local
``.env`` file is loaded first) and are built once at process start, then
passed into the objects that need them.

Environment variables:
  LLM_API_KEY / GROQ_API_KEY: provider API key (required for AI calls)
  LLM_BASE_URL: OpenAI-compatible endpoint (default: Groq)
  LLM_PRIMARY_MODEL / LLM_FALLBACK_MODEL: model names
  LLM_TIMEOUT_SECONDS: per-request timeout (default: 60)
  MIN_DOCUMENT_CHARS: minimum normalized text length (default: 50)
  MAX_ANALYSIS_CHARS: truncation ceiling (default: 50000)
  ANALYSIS_CHUNK_SIZE: target chunk size in characters (default: 7000)
  MAX_ANALYSIS_CHUNKS: chunk cap (default: 8)
  ANALYSIS_JSON_RETRIES: retries for malformed model JSON (default: 1)
  APP_ENV: "development" enables debug detail in error responses
  MAX_UPLOAD_SIZE: upload limit in bytes (default: 50MB)
  LOG_DIR: directory for the DEBUG log file (default: logs)
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

DEFAULT_BASE_URL = "https://api.groq.com/openai/v1"
PRIMARY_MODEL = "llama-3.3-70b-versatile"
FALLBACK_MODEL = "llama-3.1-8b-instant"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


class ProviderConfig(BaseModel):
    """Connection settings for the LLM completion provider."""

    api_key: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    primary_model: str = PRIMARY_MODEL
    fallback_model: Optional[str] = FALLBACK_MODEL
    timeout_seconds: float = Field(default=60.0, gt=0)
    max_client_retries: int = Field(default=2, ge=0)

    @classmethod
    def from_env(cls) -> "ProviderConfig":
        return cls(
            api_key=os.getenv("LLM_API_KEY") or os.getenv("GROQ_API_KEY"),
            base_url=os.getenv("LLM_BASE_URL", DEFAULT_BASE_URL),
            primary_model=os.getenv("LLM_PRIMARY_MODEL", PRIMARY_MODEL),
            fallback_model=os.getenv("LLM_FALLBACK_MODEL", FALLBACK_MODEL) or None,
            timeout_seconds=float(os.getenv("LLM_TIMEOUT_SECONDS", "60")),
        )


class PipelineSettings(BaseModel):
    """Bounds applied by the PDF analysis pipeline.

    The character ceiling and the chunk cap are independent: the ceiling
    truncates text, the cap drops whole chunks.
    """

    min_document_chars: int = Field(default=50, ge=0)
    max_analysis_chars: int = Field(default=50_000, gt=0)
    chunk_size: int = Field(default=7_000, gt=0)
    max_chunks: int = Field(default=8, gt=0)
    json_retries: int = Field(default=1, ge=0)

    @classmethod
    def from_env(cls) -> "PipelineSettings":
        return cls(
            min_document_chars=_env_int("MIN_DOCUMENT_CHARS", 50),
            max_analysis_chars=_env_int("MAX_ANALYSIS_CHARS", 50_000),
            chunk_size=_env_int("ANALYSIS_CHUNK_SIZE", 7_000),
            max_chunks=_env_int("MAX_ANALYSIS_CHUNKS", 8),
            json_retries=_env_int("ANALYSIS_JSON_RETRIES", 1),
        )


class AppSettings(BaseModel):
    app_env: str = "production"
    max_upload_size: int = 52_428_800  # 50MB
    log_dir: Path = Path("logs")

    @property
    def debug_errors(self) -> bool:
        return self.app_env == "development"

    @classmethod
    def from_env(cls) -> "AppSettings":
        return cls(
            app_env=os.getenv("APP_ENV", "production"),
            max_upload_size=_env_int("MAX_UPLOAD_SIZE", 52_428_800),
            log_dir=Path(os.getenv("LOG_DIR", "logs")),
        )
