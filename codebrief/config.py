"""Application configuration loaded from config.yaml and environment variables."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

PROJECT_ROOT = Path(__file__).resolve().parent.parent
CONFIG_YAML_PATH = PROJECT_ROOT / "config.yaml"


# --- YAML sub-models ---


class CollectionConfig(BaseModel):
    """Collection window and orchestrator limits."""

    hours: int = 24
    task_timeout_seconds: float = 60.0
    shutdown_grace_seconds: float = 30.0
    max_workers: int | None = None


class RetryConfig(BaseModel):
    """Fixed-delay retry settings shared by every network call."""

    max_attempts: int = 3
    delay_seconds: float = 2.0


class HttpConfig(BaseModel):
    """Outbound HTTP client timeouts (seconds)."""

    connect_timeout: float = 30.0
    read_timeout: float = 60.0
    write_timeout: float = 30.0
    user_agent: str = "CodeBrief/1.0"


class GeminiConfig(BaseModel):
    """Gemini model configuration."""

    model: str = "gemini-2.5-flash"
    temperature: float = 0.7
    max_output_tokens: int = 2048


class GitHubConfig(BaseModel):
    """GitHub releases and trending settings."""

    api_url: str = "https://api.github.com"
    repos: list[str] = Field(
        default_factory=lambda: ["react", "vue", "angular", "svelte", "next.js"]
    )
    trending_languages: list[str] = Field(
        default_factory=lambda: ["javascript", "typescript"]
    )
    min_stars: int = 100


class RedditConfig(BaseModel):
    """Reddit subreddit settings."""

    api_url: str = "https://www.reddit.com"
    subreddits: list[str] = Field(
        default_factory=lambda: ["webdev", "javascript", "reactjs", "Frontend"]
    )
    min_upvotes: int = 50
    time_filter: str = "day"


class HackerNewsConfig(BaseModel):
    """Hacker News top stories settings."""

    api_url: str = "https://hacker-news.firebaseio.com/v0"
    min_score: int = 100
    max_stories: int = 30
    max_items: int = 10
    keywords: list[str] = Field(
        default_factory=lambda: [
            "javascript",
            "react",
            "vue",
            "angular",
            "frontend",
            "css",
            "web",
            "browser",
            "typescript",
            "node",
        ]
    )
    keyword_bypass_score: int = 200


class DevToConfig(BaseModel):
    """Dev.to article settings."""

    api_url: str = "https://dev.to/api"
    tags: list[str] = Field(
        default_factory=lambda: ["javascript", "react", "webdev", "frontend"]
    )
    min_reactions: int = 10


class RssConfig(BaseModel):
    """RSS feed URLs."""

    feeds: list[str] = Field(default_factory=list)


class NpmConfig(BaseModel):
    """npm registry settings."""

    registry_url: str = "https://registry.npmjs.org"
    packages: list[str] = Field(default_factory=list)


class ScheduleConfig(BaseModel):
    """Scheduler timing settings."""

    daily_digest_hour: int = 9
    daily_digest_minute: int = 0
    timezone: str = "UTC"


# --- Main settings ---


class Settings(BaseSettings):
    """Application settings combining .env secrets and config.yaml values."""

    # App config
    env: str = Field(default="dev")
    log_format: str = Field(default="text")
    enable_internal_scheduler: bool = Field(default=True)

    # Secrets from .env
    gemini_api_key: str = Field(default="")
    slack_webhook_url: str = Field(default="")
    pipeline_trigger_token: str = Field(default="")

    # YAML-sourced config
    collection: CollectionConfig = Field(default_factory=CollectionConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    http: HttpConfig = Field(default_factory=HttpConfig)
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    reddit: RedditConfig = Field(default_factory=RedditConfig)
    hackernews: HackerNewsConfig = Field(default_factory=HackerNewsConfig)
    devto: DevToConfig = Field(default_factory=DevToConfig)
    rss: RssConfig = Field(default_factory=RssConfig)
    npm: NpmConfig = Field(default_factory=NpmConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)

    model_config = {
        "env_file": str(PROJECT_ROOT / ".env"),
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    def __init__(self, **kwargs: Any) -> None:
        yaml_data = _load_yaml_config()
        merged = {**yaml_data, **kwargs}
        super().__init__(**merged)


def _load_yaml_config() -> dict[str, Any]:
    """Read and parse config.yaml, returning an empty dict when absent."""
    if not CONFIG_YAML_PATH.exists():
        return {}
    with CONFIG_YAML_PATH.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings singleton."""
    return Settings()
