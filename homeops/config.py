"""Runtime configuration for the HomeOps calendar engine."""
from dataclasses import dataclass
from datetime import date, datetime
import os

from dotenv import load_dotenv
import pytz

# Load environment variables but prioritize local development
load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Settings read from the environment.

    The engine never reads these globals directly; callers pass a
    ``Settings`` instance so tests can inject their own.
    """

    database_url: str = "sqlite:///./homeops.db"
    timezone: str = "UTC"
    source_timeout_seconds: float = 5.0
    log_level: str = "INFO"
    environment: str = "development"
    frontend_url: str = "http://localhost:3000"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        timeout_raw = os.environ.get("SOURCE_FETCH_TIMEOUT", "5.0")
        try:
            timeout = float(timeout_raw)
        except ValueError:
            print(f"[CONFIG] Ignoring invalid SOURCE_FETCH_TIMEOUT={timeout_raw!r}, using 5.0")
            timeout = 5.0

        return cls(
            database_url=os.environ.get("DATABASE_URL", cls.database_url),
            timezone=os.environ.get("HOMEOPS_TIMEZONE", cls.timezone),
            source_timeout_seconds=timeout,
            log_level=os.environ.get("LOG_LEVEL", cls.log_level).upper(),
            environment=os.environ.get("ENVIRONMENT", cls.environment),
            frontend_url=os.environ.get("FRONTEND_URL", cls.frontend_url),
        )

    def today(self) -> date:
        """Current calendar date in the household's time zone."""
        return datetime.now(pytz.timezone(self.timezone)).date()


def get_settings() -> Settings:
    """Dependency for getting settings."""
    return Settings.from_env()
