# --- Third-party imports ---
import requests

# --- Project imports ---
from .config import Config, SyncConfig
from .logger import get_logger
from .templates import build_record_update_template
from .errors import UpdateStatusError, UpdateTransportError
from .utils import (
    RequestDecorator,
    deadline_after,
    drain,
    is_success,
    send_request,
    set_user_agent,
)


class CloudflareClient:
    """
    Pushes the current IP to the single Cloudflare DNS "A" record.

    The update request is pre-built from the config once; each call only
    splices the JSON-encoded IP into the body.
    """

    def __init__(
        self,
        config: SyncConfig,
        session: requests.Session,
        decorate: RequestDecorator = set_user_agent,
        timeout: float = Config.HTTP_TIMEOUT_S,
    ):
        self.logger = get_logger("cloudflare")
        self.session = session
        self.decorate = decorate
        self.timeout = timeout

        self.dns_name = config.record_name
        self.dns_record_id = config.record_id
        self.template = build_record_update_template(config)

    def update_dns(self, new_ip: str) -> None:
        """
        PUT the record with `new_ip` as its content.

        2xx is the whole contract; the response body is drained, never parsed.

        Raises:
            UpdateTransportError: The request could not be completed.
            UpdateStatusError: Cloudflare answered outside the 2xx range.
        """
        request = self.decorate(self.template.render(new_ip))
        deadline = deadline_after(self.timeout)

        try:
            resp = send_request(self.session, request, self.timeout)
        except requests.RequestException as e:
            raise UpdateTransportError(
                f"failed to get response from cloudflare api: {e}"
            ) from e

        with resp:
            if not is_success(resp.status_code):
                self.logger.error(
                    f"Unexpected response status code from Cloudflare: {resp.status_code}"
                )

                try:
                    drain(resp, deadline=deadline)
                except requests.RequestException as e:
                    self.logger.error(
                        f"Failed to read full non-success response body from Cloudflare: {e}"
                    )
                    raise UpdateStatusError(
                        resp.status_code,
                        f"unexpected response status code from cloudflare: "
                        f"{resp.status_code} (body drain failed)",
                    ) from e

                raise UpdateStatusError(
                    resp.status_code,
                    f"unexpected response status code from cloudflare: {resp.status_code}",
                )

            try:
                drain(resp, deadline=deadline)
            except requests.RequestException as e:
                # Status already says accepted
                self.logger.warning(
                    f"Failed to read full success response body from Cloudflare: {e}"
                )

        self.logger.debug(
            f"PUT accepted for DNS record [{self.dns_record_id}] → {new_ip}"
        )
