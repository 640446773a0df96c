"""
Exception taxonomy for the DNS sync service.

Startup failures derive from ConfigError and abort the process.
Per-tick failures derive from SyncError; their message always starts with a
stable phase prefix so logs and tests can match on the failing phase.
"""


# --- Configuration (fatal at startup) ---
class ConfigError(Exception):
    """Raised when the runtime configuration cannot be loaded or is invalid."""


class NoConfigurationError(ConfigError):
    """No config file values and no environment variables were found."""

    def __init__(self, status: str = "no configuration"):
        super().__init__("no configuration")
        self.status = status


class ConfigParseError(ConfigError):
    """A config source was present but malformed."""


class ConfigValidationError(ConfigError):
    """A required field is missing or out of range after merging sources."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


# --- Per-tick sync failures (non-fatal) ---
class SyncError(RuntimeError):
    prefix = "sync failed"

    def __init__(self, detail: str):
        super().__init__(f"{self.prefix}: {detail}")
        self.detail = detail


class DiscoveryError(SyncError):
    prefix = "failed to determine IP address"


class DiscoveryTransportError(DiscoveryError):
    """Connection, timeout or body read failure talking to the IP echo service."""


class DiscoveryStatusError(DiscoveryError):
    def __init__(self, status_code: int, detail: str):
        super().__init__(detail)
        self.status_code = status_code


class DiscoveryParseError(DiscoveryError):
    """The echo service answered 2xx but the body is not an IP literal."""


class UpdateError(SyncError):
    prefix = "failed to verify Cloudflare DNS record was updated"


class UpdateTransportError(UpdateError):
    pass


class UpdateStatusError(UpdateError):
    def __init__(self, status_code: int, detail: str):
        super().__init__(detail)
        self.status_code = status_code


# --- Unrecoverable ---
class FatalSyncError(Exception):
    """
    A fault outside the per-tick error contract escaped the sync loop.

    Always chained from the original exception; the process must exit.
    """


class TickCancelled(BaseException):
    """
    Raised from the signal handler while a tick is in flight, interrupting
    any blocking HTTP call. The loop treats it as a clean stop.

    Derives from BaseException, like KeyboardInterrupt, so per-request
    `except` clauses never swallow it.
    """
