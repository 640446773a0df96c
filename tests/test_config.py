import json
import pytest

from cloudflare_dns_sync.config import (
    DEFAULT_TTL,
    SyncConfig,
    config_file_path,
    load_config,
    parse_ttl,
)
from cloudflare_dns_sync.errors import (
    ConfigError,
    ConfigParseError,
    ConfigValidationError,
    NoConfigurationError,
)


# --- Test Data ---
FULL_ENV = {
    "CLOUDFLARE_ZONE_ID": "aaa111",
    "CLOUDFLARE_RECORD_ID": "fff000",
    "CLOUDFLARE_RECORD_NAME": "vpn.starbase.com",
    "CLOUDFLARE_API_TOKEN": "mock_token",
}

FULL_FILE = {
    "zone_id": "file_zone",
    "record_id": "file_record",
    "record_name": "file.starbase.com",
    "api_token": "file_token",
    "ttl": 300,
}


def write_config(tmp_path, content):
    path = tmp_path / "config.json"
    if isinstance(content, str):
        path.write_text(content)
    else:
        path.write_text(json.dumps(content))
    return path


# ==============================
# TEST GROUP: No Configuration
# ==============================
def test_empty_object_file_and_no_env_is_no_configuration(tmp_path):
    path = write_config(tmp_path, {})

    with pytest.raises(NoConfigurationError) as exc_info:
        load_config(path, environ={})

    assert str(exc_info.value) == "no configuration"
    assert "config file is empty" in exc_info.value.status


def test_missing_file_and_no_env_is_no_configuration(tmp_path):
    with pytest.raises(NoConfigurationError) as exc_info:
        load_config(tmp_path / "config.json", environ={})

    assert "no config file found" in exc_info.value.status


@pytest.mark.parametrize(
    "content",
    [
        "",
        "   \n",
        {"zone_id": "", "record_id": None, "ttl": None},
    ],
)
def test_blank_file_values_count_as_empty(tmp_path, content):
    path = write_config(tmp_path, content)

    with pytest.raises(NoConfigurationError):
        load_config(path, environ={"CLOUDFLARE_ZONE_ID": ""})


# =======================
# TEST GROUP: Merging
# =======================
def test_env_only_config(tmp_path):
    config = load_config(tmp_path / "config.json", environ=FULL_ENV)

    assert config == SyncConfig(
        zone_id="aaa111",
        record_id="fff000",
        record_name="vpn.starbase.com",
        api_token="mock_token",
        ttl=DEFAULT_TTL,
    )


def test_file_only_config(tmp_path):
    path = write_config(tmp_path, FULL_FILE)

    config = load_config(path, environ={})

    assert config.zone_id == "file_zone"
    assert config.api_token == "file_token"
    assert config.ttl == 300


def test_env_overrides_file_values(tmp_path):
    path = write_config(tmp_path, FULL_FILE)

    config = load_config(
        path,
        environ={"CLOUDFLARE_RECORD_NAME": "env.starbase.com", "CLOUDFLARE_RECORD_TTL": "60"},
    )

    assert config.record_name == "env.starbase.com"
    assert config.ttl == 60
    # Untouched fields still come from the file
    assert config.zone_id == "file_zone"


def test_empty_env_value_does_not_override_file(tmp_path):
    path = write_config(tmp_path, FULL_FILE)

    config = load_config(path, environ={"CLOUDFLARE_ZONE_ID": "", "CLOUDFLARE_RECORD_TTL": ""})

    assert config.zone_id == "file_zone"
    assert config.ttl == 300


def test_unknown_file_keys_are_ignored(tmp_path):
    path = write_config(tmp_path, {**FULL_FILE, "proxied": True})

    assert load_config(path, environ={}).record_id == "file_record"


def test_config_dir_resolves_file(tmp_path, monkeypatch):
    monkeypatch.setenv("CONFIG_DIR", str(tmp_path))
    write_config(tmp_path, FULL_FILE)

    assert config_file_path() == tmp_path / "config.json"
    assert load_config(environ={}).zone_id == "file_zone"


@pytest.mark.parametrize("config_dir", ["", "."])
def test_config_dir_defaults_to_working_directory(monkeypatch, config_dir):
    monkeypatch.setenv("CONFIG_DIR", config_dir)

    assert str(config_file_path()) == "config.json"


# ==========================
# TEST GROUP: TTL Parsing
# ==========================
@pytest.mark.parametrize(
    "raw, expected_exception, expected_value",
    [
        ("60", None, 60),
        ("0", None, 0),
        ("-5", None, -5),
        ("abc", ConfigParseError, None),
        ("060", ConfigParseError, None),
        ("+60", ConfigParseError, None),
        (" 60", ConfigParseError, None),
        ("6_0", ConfigParseError, None),
        ("1.5", ConfigParseError, None),
    ],
)
def test_parse_ttl_is_strict(raw, expected_exception, expected_value):
    if expected_exception:
        with pytest.raises(expected_exception):
            parse_ttl(raw)
    else:
        assert parse_ttl(raw) == expected_value


def test_ttl_env_abc_fails_with_parse_error(tmp_path):
    with pytest.raises(ConfigParseError, match="CLOUDFLARE_RECORD_TTL"):
        load_config(tmp_path / "config.json", environ={**FULL_ENV, "CLOUDFLARE_RECORD_TTL": "abc"})


def test_ttl_env_zero_fails_validation(tmp_path):
    with pytest.raises(ConfigValidationError) as exc_info:
        load_config(tmp_path / "config.json", environ={**FULL_ENV, "CLOUDFLARE_RECORD_TTL": "0"})

    assert exc_info.value.field == "CLOUDFLARE_RECORD_TTL"
    assert str(exc_info.value) == "CLOUDFLARE_RECORD_TTL must be greater than 0"


# ==========================
# TEST GROUP: Validation
# ==========================
@pytest.mark.parametrize(
    "missing, expected_message",
    [
        ("CLOUDFLARE_API_TOKEN", "CLOUDFLARE_API_TOKEN is required"),
        ("CLOUDFLARE_ZONE_ID", "CLOUDFLARE_ZONE_ID is required"),
        ("CLOUDFLARE_RECORD_ID", "CLOUDFLARE_RECORD_ID is required"),
        ("CLOUDFLARE_RECORD_NAME", "CLOUDFLARE_RECORD_NAME is required"),
    ],
)
def test_missing_required_field(tmp_path, missing, expected_message):
    environ = {k: v for k, v in FULL_ENV.items() if k != missing}

    with pytest.raises(ConfigValidationError) as exc_info:
        load_config(tmp_path / "config.json", environ=environ)

    assert exc_info.value.field == missing
    assert str(exc_info.value) == expected_message


def test_api_token_is_checked_first(tmp_path):
    with pytest.raises(ConfigValidationError) as exc_info:
        load_config(tmp_path / "config.json", environ={"CLOUDFLARE_RECORD_TTL": "0"})

    assert exc_info.value.field == "CLOUDFLARE_API_TOKEN"


def test_file_ttl_zero_fails_validation(tmp_path):
    path = write_config(tmp_path, {**FULL_FILE, "ttl": 0})

    with pytest.raises(ConfigValidationError, match="must be greater than 0"):
        load_config(path, environ={})


# ============================
# TEST GROUP: Malformed Files
# ============================
@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        "[1, 2, 3]",
        {**FULL_FILE, "ttl": "300"},
        {**FULL_FILE, "ttl": True},
        {**FULL_FILE, "ttl": 1.5},
        {**FULL_FILE, "zone_id": 42},
    ],
)
def test_malformed_file_fails_with_parse_error(tmp_path, content):
    path = write_config(tmp_path, content)

    with pytest.raises(ConfigParseError, match="failed to load config file"):
        load_config(path, environ=FULL_ENV)


def test_config_errors_share_a_base_class():
    for exc_type in (NoConfigurationError, ConfigParseError, ConfigValidationError):
        assert issubclass(exc_type, ConfigError)


def test_repr_hides_api_token(sync_config):
    assert "mock_token" not in repr(sync_config)
    assert "vpn.starbase.com" in repr(sync_config)
