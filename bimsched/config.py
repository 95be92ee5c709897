"""BIMSched configuration management.

Loads configuration from environment variables with sensible defaults.
Schedule naming and grouping defaults reproduce the department schedule
layout (Rooms grouped by Department).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


@dataclass
class DBConfig:
    """Database connection configuration for the standalone document store."""

    url: str
    echo: bool = False  # SQL logging


@dataclass
class ScheduleConfig:
    """What the builder groups on and how it names the schedules it creates."""

    record_category: str = "Rooms"
    group_attribute: str = "Department"
    name_template: str = "Department - {key}"
    aggregate_name: str = "All Departments"
    mutation_label: str = "Create schedule"

    @classmethod
    def from_env(cls) -> ScheduleConfig:
        """Load schedule settings; needs no database, so hosts can use it directly."""
        return cls(
            record_category=os.getenv("RECORD_CATEGORY", "Rooms"),
            group_attribute=os.getenv("GROUP_ATTRIBUTE", "Department"),
            name_template=os.getenv("SCHEDULE_NAME_TEMPLATE", "Department - {key}"),
            aggregate_name=os.getenv("AGGREGATE_SCHEDULE_NAME", "All Departments"),
            mutation_label=os.getenv("MUTATION_LABEL", "Create schedule"),
        )

    def schedule_name(self, key: str | None) -> str:
        """Render the per-group schedule name; a null key renders as empty text."""
        return self.name_template.format(key="" if key is None else key)


@dataclass
class AppConfig:
    """Root application configuration.

    Loads from environment variables with fail-fast on missing required values.
    """

    db: DBConfig
    log_level: str = "INFO"
    log_format: str = "text"  # json or text
    schedules: ScheduleConfig = field(default_factory=ScheduleConfig)

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load configuration from environment variables.

        Required environment variables:
        - DATABASE_URL: SQLAlchemy connection string for the document store

        Optional (with defaults):
        - LOG_LEVEL: Logging verbosity (default: "INFO")
        - JSON_LOGS: "true" for JSON log lines (default: console)
        - RECORD_CATEGORY, GROUP_ATTRIBUTE, SCHEDULE_NAME_TEMPLATE,
          AGGREGATE_SCHEDULE_NAME, MUTATION_LABEL

        Raises:
            KeyError: If required environment variables are missing
        """
        database_url = os.environ.get("DATABASE_URL")
        if not database_url:
            raise KeyError(
                "DATABASE_URL environment variable is required. "
                "Example: sqlite:///./bimsched.db"
            )

        return cls(
            db=DBConfig(
                url=database_url,
                echo=os.getenv("DB_ECHO", "false").lower() == "true",
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format="json" if os.getenv("JSON_LOGS", "false").lower() == "true" else "text",
            schedules=ScheduleConfig.from_env(),
        )


# Singleton instance (lazy-loaded)
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create singleton AppConfig instance from environment.

    Raises:
        KeyError: If required environment variables are missing
    """
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next get_config() re-reads the environment."""
    global _config
    _config = None
