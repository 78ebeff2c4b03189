"""Runtime settings loaded from the environment."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_PATH = Path(__file__).parent / "templates" / "starred.md.j2"
DEFAULT_OUTPUT_PATH = "out.md"
DEFAULT_TIMEOUT_SECONDS = 60.0
DEFAULT_MAX_WORKERS = 16


class ConfigurationError(Exception):
    """Raised when required settings are missing or invalid."""
    pass


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Validated configuration for one report run."""

    token: str
    user_name: str
    output_path: str = DEFAULT_OUTPUT_PATH
    template_path: str = str(DEFAULT_TEMPLATE_PATH)
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    max_workers: int = DEFAULT_MAX_WORKERS
    dedupe: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, dotenv: bool = True) -> "Settings":
        """
        Read settings from environment variables.

        Args:
            environ: Mapping to read from. Uses ``os.environ`` if None.
            dotenv: Load a ``.env`` file into ``os.environ`` first

        Returns:
            Settings instance (not yet validated)

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed
        """
        if environ is None:
            if dotenv:
                load_dotenv(find_dotenv(usecwd=True))
            environ = os.environ

        # TOKEN is accepted for older setups
        token = environ.get("GITHUB_TOKEN") or environ.get("TOKEN", "")
        try:
            timeout = float(environ.get("FETCH_TIMEOUT", DEFAULT_TIMEOUT_SECONDS))
            max_workers = int(environ.get("MAX_WORKERS", DEFAULT_MAX_WORKERS))
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e

        return cls(
            token=token,
            user_name=environ.get("GITHUB_USER", ""),
            output_path=environ.get("OUTPUT_PATH", DEFAULT_OUTPUT_PATH),
            template_path=environ.get("TEMPLATE_PATH", str(DEFAULT_TEMPLATE_PATH)),
            timeout=timeout,
            max_workers=max_workers,
            dedupe=_parse_bool(environ.get("DEDUPE", "")),
        )

    def validate(self) -> "Settings":
        """Raise ``ConfigurationError`` for settings no run can proceed with."""
        if not self.token:
            raise ConfigurationError("Missing GitHub token (set GITHUB_TOKEN)")
        if not self.user_name:
            raise ConfigurationError("Missing user name (set GITHUB_USER)")
        # also rejects nan
        if not self.timeout > 0:
            raise ConfigurationError(f"Timeout must be positive, got {self.timeout}")
        if self.max_workers < 1:
            raise ConfigurationError(f"MAX_WORKERS must be at least 1, got {self.max_workers}")
        if not self.output_path:
            raise ConfigurationError("Missing output path")
        logger.debug(f"Settings validated for user {self.user_name}")
        return self
