"""
Centralized configuration for FeedGate ingestion.
All parameters in one place, overridable via environment variables.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional
import yaml
from pathlib import Path

# Load YAML config if exists
def _load_yaml_config() -> dict:
    """Load config.yaml if it exists, else return empty dict."""
    config_path = Path(__file__).parent.parent.parent / "config.yaml"
    if config_path.exists():
        with open(config_path, 'r') as f:
            return yaml.safe_load(f) or {}
    return {}

_yaml = _load_yaml_config()

DEFAULT_TAGGING_RULES = Path(__file__).parent / "data" / "tagging_rules.yaml"


class Settings(BaseSettings):
    """Application configuration with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # === Fetch Configuration ===
    request_timeout: int = Field(
        default=_yaml.get('fetch', {}).get('timeout_seconds', 30),
        gt=0,
        description="Hard timeout per HTTP attempt (seconds)"
    )
    fetch_max_retries: int = Field(
        default=_yaml.get('fetch', {}).get('max_retries', 2),
        ge=0,
        description="Retries after the first attempt on transient failures"
    )
    fetch_backoff_base_seconds: float = Field(
        default=_yaml.get('fetch', {}).get('backoff_base_seconds', 1.0),
        ge=0.0
    )
    fetch_backoff_cap_seconds: float = Field(
        default=_yaml.get('fetch', {}).get('backoff_cap_seconds', 10.0),
        ge=0.0
    )
    user_agent: str = Field(
        default=_yaml.get('fetch', {}).get('user_agent', "FeedGateBot/1.0 (+https://feedgate.dev)")
    )
    polite_delay_seconds: float = Field(
        default=_yaml.get('fetch', {}).get('polite_delay_seconds', 1.0),
        ge=0.0,
        description="Fixed delay between requests to scrape targets"
    )

    # === Content ===
    content_max_chars: int = Field(
        default=_yaml.get('content', {}).get('max_chars', 50_000),
        gt=0,
        description="Hard cap on canonical item content length"
    )

    # === Tagging ===
    tagging_rules_path: str = Field(
        default=_yaml.get('tagging', {}).get('rules_path', str(DEFAULT_TAGGING_RULES)),
        description="Versioned tagging rule document (YAML or JSON)"
    )
    tagging_cache_size: int = Field(
        default=_yaml.get('tagging', {}).get('cache_size', 1000),
        ge=0
    )
    semantic_threshold: Optional[float] = Field(
        default=_yaml.get('tagging', {}).get('semantic_threshold'),
        ge=0.0,
        le=1.0,
        description="Overrides confidence_threshold of the rule document when set"
    )

    # === Embeddings / LLM ===
    embedding_model: str = Field(
        default=_yaml.get('embeddings', {}).get('model', "text-embedding-3-small")
    )
    embedding_max_chars: int = Field(
        default=_yaml.get('embeddings', {}).get('max_chars', 8000),
        gt=0
    )
    openai_api_key: str | None = Field(default=None)
    secrets_dir: str = Field(
        default="/run/secrets",
        description="Mounted secret files, checked before openai_api_key"
    )
    llm_model: str = Field(
        default=_yaml.get('llm', {}).get('model', "gpt-4o-mini"),
        description="Model for the optional summary agent"
    )
    llm_temperature: float = Field(
        default=_yaml.get('llm', {}).get('temperature', 0.3),
        ge=0.0,
        le=2.0
    )
    enable_summaries: bool = Field(
        default=_yaml.get('llm', {}).get('enable_summaries', False),
        description="Generate TL;DR summaries for items that have none"
    )

    # === Pipeline ===
    adapter_timeout_seconds: float = Field(
        default=_yaml.get('pipeline', {}).get('adapter_timeout_seconds', 300),
        gt=0
    )
    enable_tagging: bool = Field(default=_yaml.get('pipeline', {}).get('enable_tagging', True))
    generate_embeddings: bool = Field(default=_yaml.get('pipeline', {}).get('generate_embeddings', True))
    enable_validation: bool = Field(default=_yaml.get('pipeline', {}).get('enable_validation', True))
    persist_delay_seconds: float = Field(
        default=_yaml.get('pipeline', {}).get('persist_delay_seconds', 0.05),
        ge=0.0,
        description="Pause between upserts"
    )

    # === Storage / Logs ===
    redis_url: str = Field(default=_yaml.get('storage', {}).get('redis_url', "redis://localhost:6379/0"))
    log_dir: str = Field(default=_yaml.get('logging', {}).get('log_dir', "logs"))


settings = Settings()
