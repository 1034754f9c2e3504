"""Process configuration read from the environment."""
from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]

DEFAULT_TIMEOUT_SECONDS = 120.0
DEFAULT_MAX_OUTPUT_BYTES = 50 * 1024 * 1024
DEFAULT_MAX_CONCURRENT_COMPILES = 4
DEFAULT_MAX_REQUEST_BYTES = 1024 * 1024


def _env_path(name: str, default: Path) -> Path:
    value = os.getenv(name)
    if value:
        return Path(value).expanduser().resolve()
    return default


def _env_number(name: str, default, cast, *, positive: bool = False):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default
    if value < 0:
        logger.warning("Ignoring negative %s=%r, using %s", name, raw, default)
        return default
    if positive and value == 0:
        logger.warning("Ignoring zero %s, using %s", name, default)
        return default
    return value


@dataclass(frozen=True, slots=True)
class Settings:
    cli_path: Path = PROJECT_ROOT / "bin" / "arduino-cli"
    config_file: Path = PROJECT_ROOT / ".arduino-cli.yaml"
    working_dir: Path = PROJECT_ROOT
    builds_root: Path = field(default_factory=lambda: Path(tempfile.gettempdir()) / "arduino-builds")
    boards_file: Path | None = None
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES
    max_concurrent_compiles: int = DEFAULT_MAX_CONCURRENT_COMPILES
    max_request_bytes: int = DEFAULT_MAX_REQUEST_BYTES
    cors_origins: tuple[str, ...] = ("*",)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""

        defaults = cls()
        boards_file = os.getenv("BOARDS_FILE")
        origins_env = os.getenv("API_CORS_ORIGINS", "")
        origins = tuple(origin.strip() for origin in origins_env.split(",") if origin.strip())

        return cls(
            cli_path=_env_path("ARDUINO_CLI_PATH", defaults.cli_path),
            config_file=_env_path("ARDUINO_CLI_CONFIG", defaults.config_file),
            working_dir=_env_path("ARDUINO_CLI_WORKDIR", defaults.working_dir),
            builds_root=_env_path("BUILDS_ROOT", defaults.builds_root),
            boards_file=Path(boards_file).expanduser().resolve() if boards_file else None,
            timeout_seconds=_env_number(
                "COMPILE_TIMEOUT_SECONDS", defaults.timeout_seconds, float, positive=True
            ),
            max_output_bytes=_env_number(
                "COMPILE_MAX_OUTPUT_BYTES", defaults.max_output_bytes, int, positive=True
            ),
            max_concurrent_compiles=_env_number(
                "MAX_CONCURRENT_COMPILES", defaults.max_concurrent_compiles, int
            ),
            max_request_bytes=_env_number(
                "MAX_REQUEST_BYTES", defaults.max_request_bytes, int, positive=True
            ),
            cors_origins=origins or defaults.cors_origins,
        )
