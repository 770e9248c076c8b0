import os
from dataclasses import dataclass, field
from typing import List, Optional


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"Invalid {name}: {raw}") from e


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"Invalid {name}: {raw}") from e


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    brightdata_api_token: str = ""
    brightdata_base_url: str = "https://api.brightdata.com"
    brightdata_dataset_id: str = "gd_l1viktl72bvl7bjuj0"
    brightdata_include_errors: bool = True
    poll_interval: float = 12.0
    poll_max_attempts: int = 10
    http_timeout: float = 30.0

    llm_provider: str = "openai"
    openai_api_key: str = ""
    openai_chat_model: str = "gpt-4o-mini"
    openai_base_url: Optional[str] = None
    ollama_base_url: str = "http://localhost:11434"
    ollama_chat_model: str = "llama3.1"
    insight_max_payload_chars: int = 0

    staging_mode: str = "local"
    staging_dir: str = "./data/uploads"

    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000"])
    host: str = "0.0.0.0"
    port: int = 5000
    log_level: str = "INFO"

    @staticmethod
    def from_env() -> "Settings":
        origins_raw = os.getenv("CORS_ORIGINS", "http://localhost:3000")
        origins = [o.strip() for o in origins_raw.split(",") if o.strip()]

        poll_max_attempts = _env_int("POLL_MAX_ATTEMPTS", 10)
        if poll_max_attempts < 1:
            raise ValueError(f"Invalid POLL_MAX_ATTEMPTS: {poll_max_attempts}")

        return Settings(
            brightdata_api_token=os.getenv("BRIGHTDATA_API_TOKEN", ""),
            brightdata_base_url=os.getenv("BRIGHTDATA_BASE_URL", "https://api.brightdata.com"),
            brightdata_dataset_id=os.getenv("BRIGHTDATA_DATASET_ID", "gd_l1viktl72bvl7bjuj0"),
            brightdata_include_errors=_env_bool("BRIGHTDATA_INCLUDE_ERRORS", True),
            poll_interval=_env_float("POLL_INTERVAL_SECONDS", 12.0),
            poll_max_attempts=poll_max_attempts,
            http_timeout=_env_float("HTTP_TIMEOUT", 30.0),
            llm_provider=os.getenv("LLM_PROVIDER", "openai").lower(),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            openai_chat_model=os.getenv("OPENAI_CHAT_MODEL", "gpt-4o-mini"),
            openai_base_url=os.getenv("OPENAI_BASE_URL") or None,
            ollama_base_url=os.getenv("OLLAMA_BASE_URL", "http://localhost:11434"),
            ollama_chat_model=os.getenv("OLLAMA_CHAT_MODEL", "llama3.1"),
            insight_max_payload_chars=_env_int("INSIGHT_MAX_PAYLOAD_CHARS", 0),
            staging_mode=os.getenv("STAGING_MODE", "local").lower(),
            staging_dir=os.getenv("STAGING_DIR", "./data/uploads"),
            cors_origins=origins,
            host=os.getenv("HOST", "0.0.0.0"),
            port=_env_int("PORT", 5000),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
