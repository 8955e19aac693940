"""Runtime settings for Feed Mirror, read from the environment."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from feed_mirror.errors import ConfigurationError

DEFAULT_DB_PATH = "feed_mirror.db"
DEFAULT_UPLOADS_DIR = "uploads"
DEFAULT_UPLOADS_URL = "/uploads"
DEFAULT_POLL_INTERVAL = 900  # 15 minutes
DEFAULT_HTTP_TIMEOUT = 20.0


@dataclass
class Settings:
    """Settings shared by the importer, the poller and the HTTP trigger."""

    source_url: str = ""
    db_path: str = DEFAULT_DB_PATH
    uploads_dir: str = DEFAULT_UPLOADS_DIR
    uploads_url: str = DEFAULT_UPLOADS_URL
    poll_interval: int = DEFAULT_POLL_INTERVAL
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    timezone: str = "UTC"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        """Build settings from MIRROR_* environment variables.

        Args:
            dotenv: Load a .env file first, if one exists.

        Raises:
            ConfigurationError: If a numeric setting cannot be parsed.
        """
        if dotenv:
            load_dotenv()

        return cls(
            source_url=os.environ.get("MIRROR_SOURCE_URL", "").strip(),
            db_path=os.environ.get("MIRROR_DB_PATH", DEFAULT_DB_PATH),
            uploads_dir=os.environ.get("MIRROR_UPLOADS_DIR", DEFAULT_UPLOADS_DIR),
            uploads_url=os.environ.get("MIRROR_UPLOADS_URL", DEFAULT_UPLOADS_URL),
            poll_interval=_number("MIRROR_POLL_INTERVAL", DEFAULT_POLL_INTERVAL, int),
            http_timeout=_number("MIRROR_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT, float),
            timezone=os.environ.get("MIRROR_TIMEZONE", "UTC"),
            log_level=os.environ.get("MIRROR_LOG_LEVEL", "INFO").upper(),
        )


def _number(name: str, default, cast):
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")
