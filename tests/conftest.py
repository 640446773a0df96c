import pytest
import requests

from cloudflare_dns_sync.config import SyncConfig


@pytest.fixture
def sync_config():
    return SyncConfig(
        zone_id="aaa111",
        record_id="fff000",
        record_name="vpn.starbase.com",
        api_token="mock_token",
        ttl=120,
    )


@pytest.fixture
def session():
    with requests.Session() as s:
        yield s
