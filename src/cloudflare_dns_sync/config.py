# --- Standard library imports ---
import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Mapping, Optional

# --- Third-party imports ---
from dotenv import load_dotenv

# --- Project imports ---
from .errors import (
    ConfigError,
    ConfigParseError,
    ConfigValidationError,
    NoConfigurationError,
)


# Load .env once
load_dotenv()

# config.py sits below logger.py in the import graph, so no get_logger() here
logger = logging.getLogger("config")

class Config:
    """Centralized operational parameters (not part of the DNS record config)"""

    # --- Scheduling Policy (NOT user configurable) ---
    SYNC_INTERVAL_S = 4 * 60 * 60   # 4 hours

    # --- Network Policy (NOT user configurable) ---
    HTTP_TIMEOUT_S = 10   # seconds, per request
    USER_AGENT = "cloudflare-dns-sync/1.0"

    # --- Observability Policy ---
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_TIMING = os.getenv("LOG_TIMING", "false").lower() == "true"


# --- Record config sources ---
CONFIG_FILE_NAME = "config.json"
DEFAULT_TTL = 120   # seconds

# File key → environment variable, for the string fields
STRING_FIELDS = {
    "zone_id": "CLOUDFLARE_ZONE_ID",
    "record_id": "CLOUDFLARE_RECORD_ID",
    "record_name": "CLOUDFLARE_RECORD_NAME",
    "api_token": "CLOUDFLARE_API_TOKEN",
}
TTL_ENV_VAR = "CLOUDFLARE_RECORD_TTL"


@dataclass(frozen=True)
class SyncConfig:
    """
    Validated settings for the single DNS record kept in sync.

    Immutable after load. The API token is excluded from repr so the
    object can be logged safely.
    """
    zone_id: str
    record_id: str
    record_name: str
    api_token: str = field(repr=False)
    ttl: int = DEFAULT_TTL

    def validate(self) -> "SyncConfig":
        """
        Enforce the record invariants: every string field non-empty, ttl >= 1.

        Raises:
            ConfigValidationError: naming the first offending variable.
        """
        if not self.api_token:
            raise ConfigValidationError(
                "CLOUDFLARE_API_TOKEN", "CLOUDFLARE_API_TOKEN is required"
            )
        if not self.zone_id:
            raise ConfigValidationError(
                "CLOUDFLARE_ZONE_ID", "CLOUDFLARE_ZONE_ID is required"
            )
        if not self.record_id:
            raise ConfigValidationError(
                "CLOUDFLARE_RECORD_ID", "CLOUDFLARE_RECORD_ID is required"
            )
        if not self.record_name:
            raise ConfigValidationError(
                "CLOUDFLARE_RECORD_NAME", "CLOUDFLARE_RECORD_NAME is required"
            )
        if self.ttl < 1:
            raise ConfigValidationError(
                TTL_ENV_VAR, f"{TTL_ENV_VAR} must be greater than 0"
            )
        return self


def config_file_path() -> Path:
    """Resolve config.json, honoring CONFIG_DIR when it is set."""
    config_dir = os.getenv("CONFIG_DIR", "")
    if config_dir and config_dir != ".":
        return Path(config_dir) / CONFIG_FILE_NAME
    return Path(CONFIG_FILE_NAME)


def read_config_file(path: Path) -> Optional[dict]:
    """
    Read the JSON config file.

    Returns:
        None if the file does not exist, {} if it is blank,
        otherwise the decoded JSON object.

    Raises:
        ConfigError: If the file exists but cannot be read or decoded.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError as e:
        raise ConfigError(f"failed to load config file: {e}") from e

    if not text.strip():
        return {}

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigParseError(f"failed to load config file: {e}") from e

    if not isinstance(data, dict):
        raise ConfigParseError(
            "failed to load config file: top-level value must be a JSON object"
        )
    return data


def parse_ttl(raw: str) -> int:
    """
    Parse a TTL string strictly: re-serializing the integer must give back
    exactly the input, so "060", "+60", " 60" and "6_0" are all rejected.
    """
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigParseError(
            f"failed to parse {TTL_ENV_VAR} environment variable: {raw!r}"
        ) from e

    if str(value) != raw:
        raise ConfigParseError(
            f"failed to parse {TTL_ENV_VAR} environment variable: {raw!r}"
        )
    return value


def _file_values(data: dict) -> dict:
    """Pick the known keys out of the decoded file, checking their types."""
    values = {}

    for key in STRING_FIELDS:
        value = data.get(key)
        if value is None:
            continue
        if not isinstance(value, str):
            raise ConfigParseError(
                f"failed to load config file: {key} must be a string"
            )
        if value:
            values[key] = value

    ttl = data.get("ttl")
    if ttl is not None:
        # bool is an int subclass; true/false is never a TTL
        if isinstance(ttl, bool) or not isinstance(ttl, int):
            raise ConfigParseError(
                "failed to load config file: ttl must be an integer"
            )
        values["ttl"] = ttl

    return values


def load_config(
    path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> SyncConfig:
    """
    Load, merge and validate the record configuration.

    Sources, lowest to highest priority:
        1. config.json (see config_file_path())
        2. CLOUDFLARE_* environment variables that are set and non-empty

    Args:
        path: Explicit config file path (defaults to config_file_path()).
        environ: Environment mapping (defaults to os.environ).

    Raises:
        NoConfigurationError: Neither source supplies any field.
        ConfigParseError: Malformed file or CLOUDFLARE_RECORD_TTL.
        ConfigValidationError: A required field is missing or TTL < 1.
    """
    path = config_file_path() if path is None else Path(path)
    environ = os.environ if environ is None else environ

    try:
        data = read_config_file(path)
        values = _file_values(data) if data is not None else {}
    except ConfigError as e:
        logger.error(f"Failed to load config file {path}: {e}")
        raise

    for key, env_var in STRING_FIELDS.items():
        env_value = environ.get(env_var, "")
        if env_value:
            values[key] = env_value

    raw_ttl = environ.get(TTL_ENV_VAR, "")
    if raw_ttl:
        try:
            values["ttl"] = parse_ttl(raw_ttl)
        except ConfigParseError as e:
            logger.error(str(e))
            raise

    if not values:
        if data is None:
            status = "no config file found and no environment variables set"
        else:
            status = "config file is empty and no environment variables set"
        logger.error(f"No configuration | {status}")
        raise NoConfigurationError(status)

    config = SyncConfig(
        zone_id=values.get("zone_id", ""),
        record_id=values.get("record_id", ""),
        record_name=values.get("record_name", ""),
        api_token=values.get("api_token", ""),
        ttl=values.get("ttl", DEFAULT_TTL),
    )

    try:
        config.validate()
    except ConfigValidationError as e:
        note = " | note: no config file found" if data is None else ""
        logger.error(f"Configuration validation failed: {e}{note}")
        raise

    return config
