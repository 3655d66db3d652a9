"""
Tests for logging setup.
"""

import logging
from pathlib import Path

import pytest

from dockshim.core.observability.logging_config import parse_level, setup_logging


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestParseLevel:
    @pytest.mark.parametrize(
        "name, expected",
        [("debug", logging.DEBUG), ("INFO", logging.INFO), ("error", logging.ERROR)],
    )
    def test_known(self, name, expected):
        assert parse_level(name) == expected

    @pytest.mark.parametrize("name", [None, "", "chatty", "basicConfig"])
    def test_unknown_falls_back_to_warning(self, name):
        assert parse_level(name) == logging.WARNING


class TestSetupLogging:
    def test_console_level(self):
        setup_logging("INFO")
        assert logging.getLogger("dockshim").level == logging.INFO
        assert len(logging.getLogger().handlers) == 1

    def test_file_handler(self, tmp_path: Path):
        log_file = tmp_path / "dockshim.log"
        setup_logging("ERROR", log_file=str(log_file), log_file_level="DEBUG")
        logging.getLogger("dockshim.test").debug("written to file only")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "written to file only" in log_file.read_text()
        assert logging.getLogger().level == logging.DEBUG
