"""Configuration management for unilib.

Loads configuration from environment variables and provides defaults.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


@dataclass
class Config:
    """Application configuration."""

    # Database
    db_path: Path

    # Circulation rules
    loan_period_days: int
    daily_fine: int  # currency units per full day late

    # Notifications
    notification_retention_days: int

    # Logging
    log_level: str

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path_str = os.environ.get(
            "UNILIB_DB_PATH",
            str(Path.home() / ".unilib" / "library.db"),
        )
        db_path = Path(db_path_str).expanduser()

        return cls(
            db_path=db_path,
            loan_period_days=int(os.environ.get("UNILIB_LOAN_PERIOD_DAYS", "30")),
            daily_fine=int(os.environ.get("UNILIB_DAILY_FINE", "50")),
            notification_retention_days=int(
                os.environ.get("UNILIB_NOTIFICATION_RETENTION_DAYS", "30")
            ),
            log_level=os.environ.get("UNILIB_LOG_LEVEL", "WARNING").upper(),
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if self.loan_period_days <= 0:
            errors.append(f"Loan period must be positive: {self.loan_period_days}")

        if self.daily_fine < 0:
            errors.append(f"Daily fine cannot be negative: {self.daily_fine}")

        if self.notification_retention_days <= 0:
            errors.append(
                f"Notification retention must be positive: {self.notification_retention_days}"
            )

        if not isinstance(logging.getLevelName(self.log_level), int):
            errors.append(f"Unknown log level: {self.log_level}")

        # Check database directory is writable
        if str(self.db_path) != ":memory:" and not self.db_path.parent.exists():
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except PermissionError:
                errors.append(f"Cannot create database directory: {self.db_path.parent}")

        return errors


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global config instance. Used for testing."""
    global _config
    _config = None
