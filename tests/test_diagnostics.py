import logging
import re

from sticker2gif.core.diagnostics import DiagnosticsLog, capture_diagnostics

TIMESTAMP = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{3}$")


def test_debug_records_are_dropped_unless_requested():
    logger = logging.getLogger("sticker2gif.core.example")

    with capture_diagnostics(debug_mode=False) as sink:
        logger.debug("column detail")
        logger.info("cropping")
    assert sink.messages() == ["cropping"]

    with capture_diagnostics(debug_mode=True) as sink:
        logger.debug("column detail")
        logger.warning("no background")
    assert sink.messages() == ["column detail", "no background"]
    assert [entry.level for entry in sink.entries] == ["DEBUG", "WARNING"]


def test_entries_are_timestamped_and_handler_is_detached():
    package_logger = logging.getLogger("sticker2gif")
    level = package_logger.level

    with capture_diagnostics() as sink:
        logging.getLogger("sticker2gif.cli").info("Saved %s", "out.gif")

    entry = sink.entries[0]
    assert TIMESTAMP.match(entry.timestamp)
    assert entry.message == "Saved out.gif"
    assert sink.lines() == [f"[{entry.timestamp}] Saved out.gif"]
    assert sink not in package_logger.handlers
    assert package_logger.level == level

    sink.clear()
    assert sink.entries == []


def test_other_loggers_are_not_captured():
    with capture_diagnostics() as sink:
        logging.getLogger("elsewhere").warning("unrelated")
    assert isinstance(sink, DiagnosticsLog)
    assert sink.entries == []
