"""Settings for the SafeSpeak content analysis service."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_HIGHLIGHT_TEMPLATE = '<span class="vulgar-highlight">{}</span>'
_CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"


def _env_field(default, *env_names: str):
    if env_names:
        alias = AliasChoices(*env_names) if len(env_names) > 1 else env_names[0]
        return Field(default=default, validation_alias=alias)
    return Field(default=default)


class Settings(BaseSettings):
    environment: str = _env_field("production", "ENV", "APP_ENV", "ENVIRONMENT")
    service_name: str = _env_field("safespeak-api", "SERVICE_NAME")
    git_commit: str = _env_field("unknown", "GIT_COMMIT", "COMMIT_SHA", "SOURCE_VERSION")

    obs_enabled: bool = _env_field(True, "OBS_ENABLED")
    obs_log_level: str = _env_field("INFO", "LOG_LEVEL")
    obs_log_sampling_rate_info: float = _env_field(1.0, "LOG_SAMPLING_RATE_INFO")

    # Third-party moderation service used by the strict reject/allow policy.
    # Without an API key the local keyword scan is used directly.
    openai_api_key: Optional[str] = _env_field(None, "OPENAI_API_KEY")
    openai_base_url: str = _env_field("https://api.openai.com/v1", "OPENAI_BASE_URL")
    openai_moderation_model: str = _env_field("omni-moderation-latest", "OPENAI_MODERATION_MODEL")
    moderation_timeout_seconds: float = _env_field(5.0, "MODERATION_TIMEOUT_SECONDS")

    # Statistical classifiers are best-effort and loaded in the background
    classifiers_enabled: bool = _env_field(False, "CLASSIFIERS_ENABLED")
    toxicity_model: str = _env_field("unitary/toxic-bert", "TOXICITY_MODEL")
    sentiment_model: str = _env_field("distilbert-base-uncased-finetuned-sst-2-english", "SENTIMENT_MODEL")

    content_analysis_config: str = _env_field(str(_CONFIG_DIR / "content_analysis.yml"), "CONTENT_ANALYSIS_CONFIG")
    lexicon_path: Optional[str] = _env_field(None, "LEXICON_PATH")
    highlight_template: str = _env_field(DEFAULT_HIGHLIGHT_TEMPLATE, "HIGHLIGHT_TEMPLATE")

    def is_prod(self) -> bool:
        return self.environment.lower() in ("prod", "production", "live")

    def is_dev(self) -> bool:
        return self.environment.lower() in ("dev", "development")

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


settings = Settings()
