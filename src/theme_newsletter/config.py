"""Configuration management."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml


@dataclass
class ClaudeConfig:
    """Claude API settings."""
    model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 8192
    temperature: float = 0.5
    max_retries: int = 5
    initial_retry_delay: float = 2.0
    request_delay: float = 1.5


@dataclass
class GenerationConfig:
    """Per-theme generation settings."""
    max_retry_count: int = 3
    retry_delay: float = 1.0


@dataclass
class DispatchConfig:
    """Email dispatch settings."""
    batch_size: int = 100
    rate_limit_delay: float = 0.5
    max_rate_limit_retries: int = 3
    rate_limit_retry_delay: float = 1.0


@dataclass
class SearchConfig:
    """Feed search settings."""
    feeds: list[str] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    max_results: int = 20


@dataclass
class StoreConfig:
    """Theme store settings."""
    themes_file: Path = Path("themes.yaml")


@dataclass
class LoggingConfig:
    """Logging settings."""
    level: str = "INFO"
    json: bool = False


@dataclass
class PromptsConfig:
    """Prompts for LLM."""
    newsletter: dict = field(default_factory=lambda: {
        "system": (
            "You are an editor who writes concise email newsletters. "
            "Answer with a single JSON object with the keys "
            "\"subject\", \"html_body\" and \"text_body\"."
        ),
        "user": (
            "Theme instructions:\n{prompt}\n\n"
            "Source material ({count} items):\n{results_json}"
        ),
    })


@dataclass
class Settings:
    """Application settings."""

    # API keys and sender (from environment only)
    anthropic_api_key: str = ""
    resend_api_key: str = ""
    from_email: str = ""

    # Config sections
    claude: ClaudeConfig = field(default_factory=ClaudeConfig)
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    dispatch: DispatchConfig = field(default_factory=DispatchConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    prompts: PromptsConfig = field(default_factory=PromptsConfig)

    @property
    def claude_model(self) -> str:
        return self.claude.model

    @property
    def claude_max_tokens(self) -> int:
        return self.claude.max_tokens

    @property
    def claude_temperature(self) -> float:
        return self.claude.temperature

    @property
    def claude_max_retries(self) -> int:
        return self.claude.max_retries

    @property
    def claude_initial_retry_delay(self) -> float:
        return self.claude.initial_retry_delay

    @property
    def claude_request_delay(self) -> float:
        return self.claude.request_delay

    @property
    def themes_file(self) -> Path:
        return self.store.themes_file

    def missing_credentials(self) -> list[str]:
        """Names of required environment variables that are not set."""
        required = {
            "ANTHROPIC_API_KEY": self.anthropic_api_key,
            "RESEND_API_KEY": self.resend_api_key,
            "FROM_EMAIL": self.from_email,
        }
        return [name for name, value in required.items() if not value]


def load_config(config_path: Path = Path("config.yaml")) -> dict:
    """Load configuration from YAML file."""
    if not config_path.exists():
        return {}

    with open(config_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def get_settings(config_path: Path = Path("config.yaml")) -> Settings:
    """Get application settings from YAML config and environment."""
    config = load_config(config_path)

    settings = Settings(
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", ""),
        resend_api_key=os.getenv("RESEND_API_KEY", ""),
        from_email=os.getenv("FROM_EMAIL", ""),
    )

    # Apply YAML config
    for section in ("claude", "generation", "dispatch", "search", "logging"):
        if section in config:
            target = getattr(settings, section)
            for key, value in config[section].items():
                setattr(target, key, value)

    if "store" in config:
        for key, value in config["store"].items():
            setattr(settings.store, key, Path(value))

    if "prompts" in config:
        settings.prompts = PromptsConfig(**config["prompts"])

    return settings
