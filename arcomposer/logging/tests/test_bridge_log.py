import logging

from arcomposer.logging.bridge_log import (
    BridgeLogHandler,
    attach_bridge_logging,
    detach_bridge_logging,
    host_level,
)


def test_host_level_mapping():
    assert host_level(logging.DEBUG) == "info"
    assert host_level(logging.INFO) == "info"
    assert host_level(logging.WARNING) == "warn"
    assert host_level(logging.ERROR) == "error"
    assert host_level(logging.CRITICAL) == "error"


def test_handler_forwards_formatted_records():
    lines = []
    handler = BridgeLogHandler(lambda message, level: lines.append((message, level)))
    log = logging.getLogger("arcomposer.tests.bridge_log")
    log.addHandler(handler)
    log.setLevel(logging.DEBUG)
    try:
        log.debug("hidden")
        log.warning("chunk out of range")
    finally:
        log.removeHandler(handler)
    assert lines == [("arcomposer.tests.bridge_log: chunk out of range", "warn")]


def test_attach_and_detach(monkeypatch):
    monkeypatch.delenv("BRIDGE_FORWARD_LOGS", raising=False)
    lines = []
    handler = attach_bridge_logging(lambda m, lvl: lines.append(lvl), logger_name="arcomposer.tests.attach")
    assert handler is not None
    logging.getLogger("arcomposer.tests.attach.child").error("boom")
    detach_bridge_logging(handler, logger_name="arcomposer.tests.attach")
    logging.getLogger("arcomposer.tests.attach.child").error("after detach")
    assert lines == ["error"]


def test_attach_disabled_by_config(monkeypatch):
    monkeypatch.setenv("BRIDGE_FORWARD_LOGS", "false")
    assert attach_bridge_logging(lambda m, lvl: None, logger_name="arcomposer.tests.off") is None
