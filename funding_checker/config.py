"""Environment-driven settings for the Funding Manifest Checker."""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional
import logging
import os

logger = logging.getLogger(__name__)

DEFAULT_REPOS_FILE = Path(__file__).resolve().parent / "data" / "repos.json"


@dataclass(frozen=True)
class Settings:
    """Settings read once from the environment."""
    github_token: Optional[str]
    github_api_url: str
    github_timeout: float
    repos_file: Path
    log_level: str


@lru_cache()
def get_settings() -> Settings:
    """
    Reads settings from environment variables.

    - GITHUB_TOKEN: optional token; unauthenticated requests get a much lower rate limit
    - GITHUB_API_URL: defaults to https://api.github.com
    - GITHUB_TIMEOUT: request timeout in seconds, defaults to 30
    - REPOS_FILE: JSON list of leaderboard repository URLs
    - LOG_LEVEL: defaults to INFO

    Returns:
        Settings
    """
    token = os.environ.get("GITHUB_TOKEN") or None
    if not token:
        logger.warning("GITHUB_TOKEN not set, using unauthenticated GitHub requests")

    timeout_str = os.environ.get("GITHUB_TIMEOUT", "30")
    try:
        timeout = float(timeout_str)
    except ValueError:
        logger.warning(f"Invalid GITHUB_TIMEOUT '{timeout_str}', using 30 seconds")
        timeout = 30.0

    return Settings(
        github_token=token,
        github_api_url=os.environ.get("GITHUB_API_URL", "https://api.github.com"),
        github_timeout=timeout,
        repos_file=Path(os.environ.get("REPOS_FILE", str(DEFAULT_REPOS_FILE))),
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
    )


def clear_settings_cache() -> None:
    """Clears the cached settings (useful for testing)."""
    get_settings.cache_clear()
