# --- Standard library imports ---
import sys
import logging
from typing import Optional

# --- Project imports ---
from .config import Config


# --- Custom log levels ---
TIMING = 25   # Between INFO (20) and WARNING (30)
logging.addLevelName(TIMING, "TIME")

def _log_timing(self, message, *args, **kwargs):
    """logger.timing(...): per-phase durations of a sync tick."""
    if self.isEnabledFor(TIMING):
        self._log(TIMING, message, args, stacklevel=2, **kwargs)

logging.Logger.timing = _log_timing

# --- Filters ---
class TimingFilter(logging.Filter):
    """
    Handler gate for tick phase durations.

    Only TIMING records are affected; every other level passes through,
    so LOG_TIMING can be toggled without touching LOG_LEVEL.
    """
    def __init__(self, enabled: bool):
        super().__init__()
        self.enabled = enabled

    def filter(self, record: logging.LogRecord) -> bool:
        return self.enabled or record.levelno != TIMING

# --- Format configuration constants ---
LOG_LEVEL_EMOJIS = {
    logging.DEBUG: "🧱",
    logging.INFO: "🟢",
    TIMING: "⚡️",
    logging.WARNING: "⚠️ ",
    logging.ERROR: "❌",
    logging.CRITICAL: "🔥",
}

LEVEL_NAME_MAP = {
    "WARNING": "WARN",
    "CRITICAL": "FATAL",
}

LOG_FORMAT = "%(asctime)s %(levelemoji)s %(levelname)-5s %(name)s:%(funcName)s → %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# --- Formatters ---
class EmojiFormatter(logging.Formatter):
    """
    Console layout for the sync service: a level emoji and a level name
    clipped to five characters, so the columns line up.

    Decorations go on a copy of the record; other handlers (and pytest's
    caplog) still see the stock level name.
    """
    def format(self, record: logging.LogRecord) -> str:
        decorated = logging.makeLogRecord(record.__dict__)
        decorated.levelemoji = LOG_LEVEL_EMOJIS.get(record.levelno, "")
        decorated.levelname = LEVEL_NAME_MAP.get(record.levelname, record.levelname)
        return super().format(decorated)

# --- Public logging setup API ---
def resolve_level(name: str) -> int:
    """Map a LOG_LEVEL string to a logging level, falling back to INFO."""
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.INFO

def setup_logging(
    level: int = logging.INFO,
    timing_enabled: Optional[bool] = None,
) -> None:
    """
    Route every logger to stdout through EmojiFormatter.

    TIMING records pass only when `timing_enabled` is true
    (defaults to the LOG_TIMING environment switch).
    """
    if timing_enabled is None:
        timing_enabled = Config.LOG_TIMING

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(EmojiFormatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))
    handler.addFilter(TimingFilter(enabled=timing_enabled))
    root.addHandler(handler)

def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
