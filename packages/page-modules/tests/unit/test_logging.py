"""Unit tests — structured logging setup and registration context."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
import structlog

from page_modules.logging import (
    _inject_context_vars,
    bind_registration_context,
    clear_registration_context,
    configure_logging,
    current_module_set,
    get_logger,
)


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()
    clear_registration_context()


@pytest.mark.unit
class TestRegistrationContext:
    def test_bind_and_clear(self) -> None:
        bind_registration_context("imap")
        try:
            assert current_module_set() == "imap"
        finally:
            clear_registration_context()
        assert current_module_set() is None

    def test_bind_none_keeps_current(self) -> None:
        bind_registration_context("imap")
        bind_registration_context(None)
        try:
            assert current_module_set() == "imap"
        finally:
            clear_registration_context()

    def test_processor_injects_module_set(self) -> None:
        bind_registration_context("imap")
        try:
            assert _inject_context_vars(None, "info", {"event": "x"}) == {
                "event": "x",
                "module_set": "imap",
            }
            # An explicit key wins over the bound one.
            assert _inject_context_vars(None, "info", {"module_set": "core"}) == {
                "module_set": "core"
            }
        finally:
            clear_registration_context()

    def test_processor_without_context(self) -> None:
        assert _inject_context_vars(None, "info", {"event": "x"}) == {"event": "x"}


@pytest.mark.unit
class TestConfigureLogging:
    def test_json_log_file(self, tmp_path: Path, restore_logging) -> None:
        path = tmp_path / "page-modules.log"
        configure_logging(level="info", format="json", log_file=str(path))

        log = get_logger("tests.logging")
        bind_registration_context("imap")
        log.info("module_set_registered", page="mail")
        log.debug("not_written")
        clear_registration_context()

        for handler in logging.getLogger().handlers:
            handler.flush()
        records = [json.loads(line) for line in path.read_text().splitlines()]
        assert len(records) == 1
        record = records[0]
        assert record["event"] == "module_set_registered"
        assert record["module_set"] == "imap"
        assert record["page"] == "mail"
        assert record["level"] == "info"
        assert record["logger"] == "tests.logging"
        assert "timestamp" in record

    def test_root_level_and_stderr_handler(self, restore_logging) -> None:
        configure_logging(level="warning", format="console")
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0], logging.StreamHandler)
