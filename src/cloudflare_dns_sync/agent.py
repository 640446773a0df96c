# --- Standard library imports ---
from datetime import datetime
from dataclasses import dataclass
from typing import Optional

# --- Third-party imports ---
import requests

# --- Project imports ---
from .config import SyncConfig
from .logger import get_logger
from .telemetry import tlog
from .cloudflare import CloudflareClient
from .templates import build_ip_lookup_template
from .utils import RequestDecorator, Timer, get_ip, set_user_agent


@dataclass
class SyncState:
    """
    In-memory sync state owned by one loop invocation.

    `last_known_ip` is "" until the first successful update and only
    ever changes after Cloudflare accepted the new value.
    """
    last_known_ip: str = ""


class DNSSyncAgent:
    """
    Keeps one Cloudflare DNS "A" record synchronized with the
    device's current public IP.

    One run_cycle() per tick:
    1. Discover the external IP
    2. Compare with the last IP pushed to Cloudflare
    3. Push an update only when it differs
    4. Commit the new IP to the state only after the push succeeded
    """

    def __init__(
        self,
        config: SyncConfig,
        session: requests.Session,
        decorate: Optional[RequestDecorator] = None,
    ):
        self.logger = get_logger("agent")
        self.session = session
        self.decorate = decorate or set_user_agent
        self.timer = Timer(self.logger)

        # Built once, rendered per tick
        self.ip_lookup = build_ip_lookup_template()
        self.cloudflare_client = CloudflareClient(config, session, self.decorate)

    def run_cycle(self, state: SyncState, tick_time: datetime) -> bool:
        """
        Single discovery and update tick.

        Returns:
            True if the record was updated, False if the IP was unchanged.

        Raises:
            DiscoveryError: The public IP could not be determined.
            UpdateError: Cloudflare did not accept the new IP; `state` is untouched.
        """
        self.timer.start_cycle()
        self.logger.info(f"Sync running | tick_time={tick_time.isoformat()}")

        detected_ip = get_ip(self.session, self.ip_lookup, self.decorate)
        self.timer.lap("IP discovery")

        if detected_ip == state.last_known_ip:
            tlog(self.logger, "🟢", "IP", "UNCHANGED", detected_ip)
            self.timer.end_cycle()
            return False

        tlog(
            self.logger,
            "🟡",
            "IP",
            "CHANGED",
            f"{state.last_known_ip or 'unknown'} → {detected_ip}",
        )

        self.cloudflare_client.update_dns(detected_ip)
        self.timer.lap("Cloudflare DNS update")

        state.last_known_ip = detected_ip
        tlog(
            self.logger,
            "🐾",
            "DNS",
            "UPDATED",
            detected_ip,
            record=self.cloudflare_client.dns_name,
        )
        self.timer.end_cycle()
        return True
