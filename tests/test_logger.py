import pytest
import logging
from cloudflare_dns_sync.logger import TIMING, EmojiFormatter, get_logger, resolve_level, setup_logging
from cloudflare_dns_sync.telemetry import tlog


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Drop the stdout handler setup_logging() installs so it never outlives capsys"""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if isinstance(handler.formatter, EmojiFormatter):
            root.removeHandler(handler)
    root.setLevel(level)


@pytest.mark.parametrize(
    "level, message, expected_in_output",
    [
        (logging.DEBUG, "Of Course I Still Log You", True),
        (logging.INFO, "Just Read The Assertions", True),
        (logging.WARNING, "Starlink, Made On Earth By Humans", True),
        (logging.ERROR, "Optimus reviewing logs...", True),
        (logging.CRITICAL, "Tesla FSD Mad Max mode logging enabled", True),
    ],
)

def test_logger_configuration(capsys, level, message, expected_in_output):
    """Smoke test to ensure logger setup produces expected formatted output at various levels"""
    setup_logging(level=logging.DEBUG)  # always capture all messages
    logger = get_logger("test")

    logger.log(level, message)

    captured = capsys.readouterr()
    assert (message in captured.out) is expected_in_output


def test_short_level_names(capsys):
    setup_logging(level=logging.DEBUG)
    get_logger("test").warning("Falcon 9 booster landed")

    out = capsys.readouterr().out
    assert "⚠️" in out
    assert " WARN  test:" in out
    assert "test:test_short_level_names" in out


def test_formatter_leaves_record_untouched():
    record = logging.LogRecord("test", logging.CRITICAL, __file__, 1, "Starship caught by the tower", None, None)

    line = EmojiFormatter(fmt="%(levelemoji)s %(levelname)s %(message)s").format(record)

    assert line == "🔥 FATAL Starship caught by the tower"
    assert record.levelname == "CRITICAL"
    assert not hasattr(record, "levelemoji")


@pytest.mark.parametrize("enabled", [True, False])
def test_timing_filter(capsys, enabled):
    """TIMING records reach stdout only when timing is enabled"""
    setup_logging(level=logging.DEBUG, timing_enabled=enabled)
    get_logger("test").timing("Timing | IP discovery [ 12.0 ms]")

    out = capsys.readouterr().out
    assert ("IP discovery" in out) is enabled


@pytest.mark.parametrize(
    "name, expected",
    [
        ("DEBUG", logging.DEBUG),
        ("info", logging.INFO),
        (" warning ", logging.WARNING),
        ("TIME", TIMING),
        ("LOUD", logging.INFO),
    ],
)
def test_resolve_level(name, expected):
    assert resolve_level(name) == expected


def test_tlog_formats_fields(caplog):
    caplog.set_level(logging.INFO)
    logger = get_logger("test")

    tlog(logger, "🔴", "SYNC", "FAIL", "boom", level=logging.ERROR, consecutive_failures=3)

    record = caplog.records[-1]
    assert record.levelno == logging.ERROR
    assert "SYNC" in record.getMessage()
    assert record.getMessage().endswith("boom | consecutive_failures=3")
