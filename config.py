"""Configuration management for Spendwatch.

Reads configuration from ~/.config/spendwatch.toml and creates default config if needed.
"""

import os
from pathlib import Path
from dataclasses import dataclass
import tomllib
import tomli_w

from money import parse_decimal


@dataclass
class Config:
    """Application configuration."""

    base_dir: Path
    db_data_dir: Path
    db_filename: str
    log_level: str
    log_dir: Path
    receipts_dir: Path
    receipt_max_attempts: int = 3
    default_category_budget: str = "500.00"
    db_timeout: float = 5.0
    job_lease_seconds: int = 300
    llm_enabled: bool = False
    llm_provider: str = "openai"
    llm_openai_api_key: str = ""
    llm_openai_model: str = "gpt-4o-mini"
    enable_reset: bool = False

    @property
    def db_path(self) -> Path:
        """Get the full database path (data_dir/filename)."""
        return self.db_data_dir / self.db_filename

    @classmethod
    def default(cls) -> "Config":
        """Create a Config with default values."""
        home = Path.home()
        base_dir = home / "data" / "spendwatch"
        return cls(
            base_dir=base_dir,
            db_data_dir=base_dir / "db",
            db_filename="spendwatch.db",
            log_level="INFO",
            log_dir=base_dir / "logs",
            receipts_dir=base_dir / "receipts",
        )


def get_config_path() -> Path:
    """Get the path to the config file."""
    return Path.home() / ".config" / "spendwatch.toml"


def get_migrations_dir() -> Path:
    """Get the path to the migrations directory.

    This is always relative to the code location, not configurable.
    """
    return Path(__file__).parent / "db" / "migrations"


def load_config() -> Config:
    """Load configuration from file, creating default if it doesn't exist.

    Returns:
        Config object with loaded or default values.
    """
    config_path = get_config_path()

    # If config doesn't exist, create it with defaults
    if not config_path.exists():
        config = Config.default()
        _write_config(config)
        return _apply_env(config)

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    # Parse with defaults for any missing values
    base_dir = Path(data.get("base_dir", Path.home() / "data" / "spendwatch"))

    db_config = data.get("database", {})
    db_data_dir = Path(db_config.get("data_dir", base_dir / "db"))
    db_filename = db_config.get("filename", "spendwatch.db")
    db_timeout = float(db_config.get("timeout", 5.0))

    log_config = data.get("logging", {})
    log_level = log_config.get("level", "INFO")
    log_dir = Path(log_config.get("log_dir", base_dir / "logs"))

    receipts_config = data.get("receipts", {})
    receipts_dir = Path(receipts_config.get("upload_dir", base_dir / "receipts"))
    receipt_max_attempts = int(receipts_config.get("max_attempts", 3))
    default_category_budget = str(
        receipts_config.get("default_category_budget", "500.00")
    )

    jobs_config = data.get("jobs", {})
    job_lease_seconds = int(jobs_config.get("lease_seconds", 300))

    llm_config = data.get("llm", {})

    config = Config(
        base_dir=base_dir,
        db_data_dir=db_data_dir,
        db_filename=db_filename,
        log_level=log_level,
        log_dir=log_dir,
        receipts_dir=receipts_dir,
        receipt_max_attempts=receipt_max_attempts,
        default_category_budget=default_category_budget,
        db_timeout=db_timeout,
        job_lease_seconds=job_lease_seconds,
        llm_enabled=llm_config.get("enabled", False),
        llm_provider=llm_config.get("provider", "openai"),
        llm_openai_api_key=llm_config.get("openai_api_key", ""),
        llm_openai_model=llm_config.get("openai_model", "gpt-4o-mini"),
        enable_reset=data.get("enable_reset", False),
    )
    return _check(_apply_env(config))


def _check(config: Config) -> Config:
    """Reject settings the rest of the application cannot work with.

    Raises:
        ValueError: Naming the offending setting.
    """
    if config.receipt_max_attempts < 1:
        raise ValueError("receipts.max_attempts must be at least 1")
    budget = parse_decimal(config.default_category_budget)
    if budget is None or budget <= 0:
        raise ValueError(
            f"receipts.default_category_budget must be a positive amount, "
            f"got {config.default_category_budget!r}"
        )
    if config.db_timeout <= 0:
        raise ValueError("database.timeout must be positive")
    if config.job_lease_seconds < 1:
        raise ValueError("jobs.lease_seconds must be at least 1")
    return config


def _apply_env(config: Config) -> Config:
    """Fill in secrets from the environment when the file leaves them empty."""
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

    data = {
        "base_dir": str(config.base_dir),
        "enable_reset": config.enable_reset,
        "database": {
            "data_dir": str(config.db_data_dir),
            "filename": config.db_filename,
            "timeout": config.db_timeout,
        },
        "logging": {
            "level": config.log_level,
            "log_dir": str(config.log_dir),
        },
        "receipts": {
            "upload_dir": str(config.receipts_dir),
            "max_attempts": config.receipt_max_attempts,
            "default_category_budget": config.default_category_budget,
        },
        "jobs": {
            "lease_seconds": config.job_lease_seconds,
        },
        "llm": {
            "enabled": config.llm_enabled,
            "provider": config.llm_provider,
            "openai_api_key": config.llm_openai_api_key,
            "openai_model": config.llm_openai_model,
        },
    }

    with open(config_path, "wb") as f:
        tomli_w.dump(data, f)
