# --- Standard library imports ---
import logging


def tlog(
    logger: logging.Logger,
    emoji: str,
    subsystem: str,
    state: str,
    primary: str = "—",
    level: int = logging.INFO,
    **fields,
) -> None:
    """
    Emit one structured telemetry line.

    Format:
        SUBSYSTEM STATE PRIMARY | key=value key=value

    Field order follows keyword order at the call site.
    """
    msg = f"{subsystem:<8} {state:<10} {primary}"
    if fields:
        msg += " | " + " ".join(f"{key}={value}" for key, value in fields.items())

    logger.log(level, f"{emoji} {msg}", stacklevel=2)
