from __future__ import annotations
import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    gemini_api_key: str | None = os.getenv("GEMINI_API_KEY")
    gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
    gemini_base_url: str = os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta")

    max_tokens: int = int(os.getenv("MAX_TOKENS", 8192))
    temperature: float = float(os.getenv("TEMPERATURE", 0.1))
    batch_size: int = int(os.getenv("BATCH_SIZE", 5))
    max_comment_chars: int = int(os.getenv("MAX_COMMENT_CHARS", 5000))
    request_timeout: float = float(os.getenv("REQUEST_TIMEOUT", 60))
    max_retries: int = int(os.getenv("MAX_RETRIES", 3))

    cache_dir: str = os.getenv("CACHE_DIR", ".cache")
    use_cache: bool = _flag("USE_CACHE")
    duckdb_path: str = os.getenv("DUCKDB_PATH", "./data/commentlens.duckdb")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

CFG = Settings()
