"""Configuration management for Hornerito.

Reads configuration from ~/.config/hornerito.toml and creates default config if needed.
"""

import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional
import tomllib
import tomli_w


@dataclass
class Config:
    """Application configuration."""

    base_dir: Path
    db_data_dir: Path
    db_filename: str
    log_level: str
    log_dir: Path
    telegram_bot_token: str = ""
    dashboard_url: Optional[str] = None
    llm_enabled: bool = False
    llm_provider: Optional[str] = "openai"
    llm_openai_api_key: str = ""
    llm_openai_model: Optional[str] = None
    llm_timeout: float = 10.0
    llm_refine_descriptions: bool = False
    llm_chat_replies: bool = False
    recurring_check_interval_minutes: int = 60

    @property
    def db_path(self) -> Path:
        """Get the full database path (data_dir/filename)."""
        return self.db_data_dir / self.db_filename

    @classmethod
    def default(cls) -> "Config":
        """Create a Config with default values."""
        home = Path.home()
        base_dir = home / "data" / "hornerito"
        return cls(
            base_dir=base_dir,
            db_data_dir=base_dir / "db",
            db_filename="hornerito.db",
            log_level="INFO",
            log_dir=base_dir / "logs",
        )


def get_config_path() -> Path:
    """Get the path to the config file."""
    return Path.home() / ".config" / "hornerito.toml"


def get_migrations_dir() -> Path:
    """Get the path to the migrations directory.

    This is always relative to the code location, not configurable.
    """
    return Path(__file__).parent / "db" / "migrations"


def load_config() -> Config:
    """Load configuration from file, creating default if it doesn't exist.

    Secrets left empty in the file are read from the TELEGRAM_BOT_TOKEN and
    OPENAI_API_KEY environment variables.

    Returns:
        Config object with loaded or default values.
    """
    config_path = get_config_path()

    # If config doesn't exist, create it with defaults
    if not config_path.exists():
        config = Config.default()
        _write_config(config)
        return _apply_environment(config)

    # Load existing config
    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    # Parse with defaults for any missing values
    base_dir = Path(data.get("base_dir", Path.home() / "data" / "hornerito"))

    db_config = data.get("database", {})
    db_data_dir = Path(db_config.get("data_dir", base_dir / "db"))
    db_filename = db_config.get("filename", "hornerito.db")

    log_config = data.get("logging", {})
    log_level = log_config.get("level", "INFO")
    log_dir = Path(log_config.get("log_dir", base_dir / "logs"))

    telegram_config = data.get("telegram", {})
    dashboard_config = data.get("dashboard", {})

    llm_config = data.get("llm", {})

    recurring_config = data.get("recurring", {})

    config = Config(
        base_dir=base_dir,
        db_data_dir=db_data_dir,
        db_filename=db_filename,
        log_level=log_level,
        log_dir=log_dir,
        telegram_bot_token=telegram_config.get("bot_token", ""),
        dashboard_url=dashboard_config.get("url") or None,
        llm_enabled=llm_config.get("enabled", False),
        llm_provider=llm_config.get("provider", "openai"),
        llm_openai_api_key=llm_config.get("openai_api_key", ""),
        llm_openai_model=llm_config.get("openai_model") or None,
        llm_timeout=float(llm_config.get("timeout", 10.0)),
        llm_refine_descriptions=llm_config.get("refine_descriptions", False),
        llm_chat_replies=llm_config.get("chat_replies", False),
        recurring_check_interval_minutes=int(
            recurring_config.get("check_interval_minutes", 60)
        ),
    )

    return _apply_environment(config)


def _apply_environment(config: Config) -> Config:
    """Fill empty secrets from the environment."""
    if not config.telegram_bot_token:
        config.telegram_bot_token = os.environ.get("TELEGRAM_BOT_TOKEN", "")
    if not config.llm_openai_api_key:
        config.llm_openai_api_key = os.environ.get("OPENAI_API_KEY", "")
    return config


def _write_config(config: Config) -> None:
    """Write config to the config file.

    Args:
        config: Config object to write.
    """
    config_path = get_config_path()

    # Ensure config directory exists
    config_path.parent.mkdir(parents=True, exist_ok=True)

    # Convert config to TOML structure
    data = {
        "base_dir": str(config.base_dir),
        "database": {
            "data_dir": str(config.db_data_dir),
            "filename": config.db_filename,
        },
        "logging": {
            "level": config.log_level,
            "log_dir": str(config.log_dir),
        },
        "telegram": {
            "bot_token": config.telegram_bot_token,
        },
        "dashboard": {
            "url": config.dashboard_url or "",
        },
        "llm": {
            "enabled": config.llm_enabled,
            "provider": config.llm_provider or "openai",
            "openai_api_key": config.llm_openai_api_key,
            "openai_model": config.llm_openai_model or "",
            "timeout": config.llm_timeout,
            "refine_descriptions": config.llm_refine_descriptions,
            "chat_replies": config.llm_chat_replies,
        },
        "recurring": {
            "check_interval_minutes": config.recurring_check_interval_minutes,
        },
    }

    # Write TOML file
    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)
