# --- Standard library imports ---
import sys
import time
import signal
import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Optional

# --- Third-party imports ---
import requests

# --- Project imports ---
from .telemetry import tlog
from .config import Config, load_config
from .logger import get_logger, resolve_level, setup_logging
from .scheduling_policy import SchedulingPolicy
from .agent import DNSSyncAgent, SyncState
from .utils import close_idle_connections
from .errors import ConfigError, FatalSyncError, SyncError, TickCancelled


EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_FATAL = 2


def main_loop(
    agent: DNSSyncAgent,
    policy: SchedulingPolicy,
    stop_event: threading.Event,
    session: requests.Session,
    clock: Callable[[], float] = time.monotonic,
    tick_in_flight: Optional[threading.Event] = None,
) -> SyncState:
    """
    Supervisor loop: one sync tick per interval until cancelled.

    Responsibilities:
        - Run the first tick immediately, then one per policy interval.
        - Own the SyncState for the lifetime of the loop.
        - Count consecutive failed ticks (logged only, never changes timing).
        - Release idle pooled connections between ticks.
        - Stop as soon as `stop_event` is observed, after a tick or while waiting.
        - Flag `tick_in_flight` while a tick runs so a signal can abort it.

    Per-tick SyncError failures are logged and retried on the next tick.
    TickCancelled aborts the running tick and stops the loop cleanly;
    the state keeps its pre-tick value.
    Anything else is fatal: logged and re-raised as FatalSyncError.

    Returns:
        The final SyncState.
    """
    logger = get_logger("main_loop")
    state = SyncState()

    if stop_event.is_set():
        logger.warning("Service start canceled")
        return state

    if tick_in_flight is None:
        tick_in_flight = threading.Event()

    consecutive_failures = 0
    tick_time = datetime.now(timezone.utc)

    logger.info(f"Service starting | interval={policy.describe()}")

    try:
        while True:
            start = clock()

            try:
                tick_in_flight.set()
                try:
                    agent.run_cycle(state, tick_time)
                finally:
                    tick_in_flight.clear()
            except TickCancelled:
                logger.warning("Sync tick aborted by cancellation")
                break
            except SyncError as e:
                consecutive_failures += 1
                tlog(
                    logger,
                    "🔴",
                    "SYNC",
                    "FAIL",
                    str(e),
                    level=logging.ERROR,
                    consecutive_failures=consecutive_failures,
                )
            else:
                consecutive_failures = 0
                tlog(
                    logger,
                    "💚",
                    "SYNC",
                    "OK",
                    state.last_known_ip,
                    consecutive_failures=consecutive_failures,
                )

            if stop_event.is_set():
                break

            # Nothing reuses pooled connections before the next tick
            close_idle_connections(session)

            remaining = policy.next_sleep(clock() - start)
            logger.info(f"💤 Sleeping ... {remaining:.2f} s")
            if stop_event.wait(remaining):
                break

            tick_time = datetime.now(timezone.utc)

    except Exception as e:
        logger.critical("Service exited unexpectedly", exc_info=True)
        raise FatalSyncError(f"unrecoverable fault in sync loop: {e!r}") from e

    logger.warning("Service stopped")
    return state

def install_signal_handlers(
    stop_event: threading.Event,
    tick_in_flight: Optional[threading.Event] = None,
) -> None:
    """
    Translate SIGTERM/SIGINT into the loop's cancellation event.

    While `tick_in_flight` is set the handler also raises TickCancelled,
    which interrupts a blocking HTTP call instead of waiting out its timeout.
    """
    logger = get_logger("main")

    def _handle(signum, frame):
        logger.warning(f"Received {signal.Signals(signum).name}; stopping")
        stop_event.set()
        if tick_in_flight is not None and tick_in_flight.is_set():
            raise TickCancelled(signal.Signals(signum).name)

    signal.signal(signal.SIGTERM, _handle)
    signal.signal(signal.SIGINT, _handle)

def main(stop_event: Optional[threading.Event] = None) -> int:
    """
    Entry point for the DNS sync service.

    Configures logging, loads the record config and runs the supervisor
    loop until a termination signal arrives.

    Returns:
        Process exit code.
    """

    # Setup logging policy
    setup_logging(level=resolve_level(Config.LOG_LEVEL))
    logger = get_logger("main")
    logger.info("🚀 Starting Cloudflare DNS sync")
    logger.debug(f"Python version: {sys.version}")

    if stop_event is None:
        stop_event = threading.Event()
    tick_in_flight = threading.Event()
    install_signal_handlers(stop_event, tick_in_flight)

    logger.info("Loading config")
    try:
        config = load_config()
    except ConfigError as e:
        logger.error(f"Failed to load runtime config: {e}")
        return EXIT_CONFIG_ERROR

    logger.info(f"Config OK | {config}")

    policy = SchedulingPolicy()

    with requests.Session() as session:
        agent = DNSSyncAgent(config, session)
        try:
            main_loop(agent, policy, stop_event, session, tick_in_flight=tick_in_flight)
        except FatalSyncError as e:
            logger.critical(f"Terminating: {e}")
            logging.shutdown()
            return EXIT_FATAL

    return EXIT_OK

if __name__ == "__main__":
    sys.exit(main())
