import os
import logging
from dataclasses import dataclass, field


DEFAULT_DATABASE_URL = "sqlite:///./locallibrary.db"


@dataclass
class Settings:
    """
    Application settings read from the environment.

    Only DATABASE_URL matters in production; the default points at a local
    SQLite file for development.
    """

    database_url: str = field(
        default_factory=lambda: os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
    )
    environment: str = field(default_factory=lambda: os.getenv("APP_ENV", "development"))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    db_timeout: float = field(
        default_factory=lambda: float(os.getenv("DB_TIMEOUT", "10"))
    )

    @property
    def debug(self) -> bool:
        return self.environment == "development"


def configure_logging(settings: Settings):
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
