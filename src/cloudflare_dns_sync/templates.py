# --- Standard library imports ---
import json
from urllib.parse import quote
from dataclasses import dataclass, field
from typing import Optional

# --- Third-party imports ---
import requests

# --- Project imports ---
from .config import SyncConfig


# --- Endpoints ---
CHECKIP_URL = "https://checkip.amazonaws.com/"
CLOUDFLARE_API_BASE_URL = "https://api.cloudflare.com/client/v4"


@dataclass(frozen=True)
class RequestTemplate:
    """
    Immutable request skeleton built once at startup.

    Only the JSON value spliced between `body_prefix` and `body_suffix`
    varies per call; everything else is computed ahead of time.
    """
    method: str
    url: str
    headers: tuple[tuple[str, str], ...] = field(default=(), repr=False)
    body_prefix: str = ""
    body_suffix: str = ""

    def render_body(self, value: str) -> str:
        return self.body_prefix + json.dumps(value) + self.body_suffix

    def render(self, value: Optional[str] = None) -> requests.Request:
        """
        Produce a fresh, independently mutable requests.Request.

        Args:
            value: String to JSON-encode into the body, or None for no body.
        """
        data = None
        if value is not None:
            data = self.render_body(value).encode("utf-8")

        return requests.Request(
            method=self.method,
            url=self.url,
            headers=dict(self.headers),
            data=data,
        )


def build_ip_lookup_template() -> RequestTemplate:
    """GET against the plain-text IP echo service."""
    return RequestTemplate(method="GET", url=CHECKIP_URL)


def build_record_update_template(
    config: SyncConfig,
    api_base_url: str = CLOUDFLARE_API_BASE_URL,
) -> RequestTemplate:
    """
    PUT against the single-record endpoint.

    Body layout once rendered:
        {"type":"A","name":<name>,"content":<ip>,"ttl":<ttl>,"proxied":false}
    """
    url = (
        f"{api_base_url}/zones/"
        f"{quote(config.zone_id, safe='')}/dns_records/"
        f"{quote(config.record_id, safe='')}"
    )

    headers = (
        ("Authorization", f"Bearer {config.api_token}"),
        ("Content-Type", "application/json"),
    )

    body_prefix = '{"type":"A","name":' + json.dumps(config.record_name) + ',"content":'
    body_suffix = ',"ttl":' + str(config.ttl) + ',"proxied":false}'

    return RequestTemplate(
        method="PUT",
        url=url,
        headers=headers,
        body_prefix=body_prefix,
        body_suffix=body_suffix,
    )
