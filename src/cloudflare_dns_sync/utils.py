# --- Standard library imports ---
import time
import socket
from typing import Callable, Optional

# --- Third-party imports ---
import requests

# --- Project imports ---
from .config import Config
from .logger import get_logger
from .templates import RequestTemplate
from .errors import (
    DiscoveryParseError,
    DiscoveryStatusError,
    DiscoveryTransportError,
)


RequestDecorator = Callable[[requests.Request], requests.Request]

# --- Body read limits ---
MAX_IP_BODY_BYTES = 1024   # an IPv4 literal plus whitespace is ~16 bytes
MAX_DRAIN_BYTES = 64 * 1024

# Define the logger once for the entire module
logger = get_logger("utils")

def is_valid_ip(ip: str) -> bool:
    """
    Validate an IPv4 address using socket.

    Args:
        ip: IPv4 address string to validate.

    Returns:
        True if the IPv4 address is valid, False otherwise.
    """
    try:
        socket.inet_pton(socket.AF_INET, ip)
        return True
    except (OSError, ValueError):
        return False

def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300

def set_user_agent(request: requests.Request) -> requests.Request:
    """Default request decorator: identify this client to every endpoint."""
    request.headers["User-Agent"] = Config.USER_AGENT
    return request

def send_request(
    session: requests.Session,
    request: requests.Request,
    timeout: float = Config.HTTP_TIMEOUT_S,
) -> requests.Response:
    """
    Prepare and send through the session's connection pool.

    The body is streamed so callers decide whether to read or drain it.
    """
    prepared = session.prepare_request(request)
    return session.send(prepared, timeout=timeout, stream=True)

def deadline_after(timeout: float) -> float:
    """Monotonic instant by which a whole call (send + body) must finish."""
    return time.monotonic() + timeout

def _check_deadline(deadline: Optional[float]) -> None:
    if deadline is not None and time.monotonic() > deadline:
        raise requests.exceptions.ReadTimeout(
            "response body not read before the call deadline"
        )

def read_body(
    resp: requests.Response,
    max_bytes: int,
    deadline: Optional[float] = None,
) -> bytes:
    """
    Read a streamed body one byte at a time, stopping one byte past
    `max_bytes` so callers can tell an oversized body from a full one.

    Single-byte reads keep each blocking read short, so a trickling
    server cannot hold the call much past `deadline`.

    Raises:
        requests.RequestException: Unreadable body or deadline exceeded.
    """
    body = bytearray()
    for chunk in resp.iter_content(chunk_size=1):
        body += chunk
        if len(body) > max_bytes:
            break
        _check_deadline(deadline)
    return bytes(body)

def drain(
    resp: requests.Response,
    max_bytes: int = MAX_DRAIN_BYTES,
    deadline: Optional[float] = None,
) -> None:
    """
    Read the rest of a streamed body and discard it so the
    connection goes back to the pool in a reusable state.

    Bodies larger than `max_bytes` are abandoned; closing the response
    then drops the connection instead of reusing it.

    Raises:
        requests.RequestException: Unreadable body or deadline exceeded.
    """
    seen = 0
    for chunk in resp.iter_content(chunk_size=1024):
        seen += len(chunk)
        if seen >= max_bytes:
            return
        _check_deadline(deadline)

def close_idle_connections(session: requests.Session) -> None:
    """
    Release pooled keep-alive connections held by the session.

    The session stays usable; new connections are opened on demand.
    """
    for adapter in session.adapters.values():
        adapter.close()

def get_ip(
    session: requests.Session,
    template: RequestTemplate,
    decorate: RequestDecorator = set_user_agent,
    timeout: float = Config.HTTP_TIMEOUT_S,
) -> str:
    """
    Resolve the current external IPv4 address from the echo service.

    Single attempt, no fallback services: a failure here fails the tick.

    Raises:
        DiscoveryTransportError: Connection/timeout error, unreadable body
            or body not read before the deadline.
        DiscoveryStatusError: Status outside the 2xx range.
        DiscoveryParseError: Body is oversized or not a valid IPv4 literal.
    """
    request = decorate(template.render())
    deadline = deadline_after(timeout)

    try:
        resp = send_request(session, request, timeout)
    except requests.RequestException as e:
        raise DiscoveryTransportError(
            f"failed to get response from {template.url}: {e}"
        ) from e

    with resp:
        if not is_success(resp.status_code):
            try:
                drain(resp, deadline=deadline)
            except requests.RequestException as e:
                raise DiscoveryTransportError(
                    f"failed to read full non-success response body: {e}"
                ) from e

            raise DiscoveryStatusError(
                resp.status_code,
                f"response status code from {template.url} "
                f"is not in 2xx range: {resp.status_code}",
            )

        try:
            body = read_body(resp, MAX_IP_BODY_BYTES, deadline)
        except requests.RequestException as e:
            raise DiscoveryTransportError(
                f"failed to read response body: {e}"
            ) from e

    if len(body) > MAX_IP_BODY_BYTES:
        raise DiscoveryParseError(
            f"response body from {template.url} exceeds {MAX_IP_BODY_BYTES} bytes"
        )

    ip = body.decode("utf-8", errors="replace").strip()
    if not is_valid_ip(ip):
        raise DiscoveryParseError(
            f"{template.url} failed to return a valid IP address "
            f"in response body: {ip[:64]!r}"
        )

    logger.debug(f"🌐 External IP acquired ({template.url})")
    return ip


# ============================================================
# Performance Timing Utilities (optional instrumentation)
# ============================================================

class Timer:
    def __init__(self, logger):
        self.logger = logger
        self.cycle_start = None
        self.lap_start = None

    def start_cycle(self):
        """Call once at the beginning of a sync tick."""
        now = time.perf_counter()
        self.cycle_start = now
        self.lap_start = now

    def lap(self, label: str):
        """Measure time since last lap."""
        if self.lap_start is None:
            return

        now = time.perf_counter()
        delta_ms = (now - self.lap_start) * 1000
        self.logger.timing(f"Timing | {label:<24} [{delta_ms:8.1f} ms]")
        self.lap_start = now

    def end_cycle(self):
        """End-to-end duration."""
        if self.cycle_start is None:
            return
        total_ms = (time.perf_counter() - self.cycle_start) * 1000
        self.logger.timing(f"Timing | {'Total run_cycle()':<24} [{total_ms:8.1f} ms]")
        self.cycle_start = None
        self.lap_start = None
