# --- Project imports ---
from .config import Config


class SchedulingPolicy:
    """
    Fixed-interval tick schedule.

    Ticks never overlap and missed ticks are not queued: a tick that
    overruns the interval only shortens the next wait to zero.
    No jitter, no backoff.
    """

    def __init__(self, interval_s: float = Config.SYNC_INTERVAL_S):
        if interval_s <= 0:
            raise ValueError(f"interval must be positive, got {interval_s}")
        self.interval_s = interval_s

    def next_sleep(self, elapsed: float) -> float:
        """Seconds to wait after a tick that took `elapsed` seconds."""
        return max(0.0, self.interval_s - elapsed)

    def describe(self) -> str:
        hours, rem = divmod(int(self.interval_s), 3600)
        minutes, seconds = divmod(rem, 60)
        return f"{hours}h{minutes}m{seconds}s"
