"""Tests for aihub.logging_config.setup_logging."""

import logging
import logging.handlers
from pathlib import Path

import pytest

from aihub.logging_config import DEFAULT_QUIET, setup_logging

_TOUCHED = ("aihub", *DEFAULT_QUIET)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for h in root.handlers[:]:
        root.removeHandler(h)
        h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)
    for name in _TOUCHED:
        logging.getLogger(name).setLevel(logging.NOTSET)


def test_file_handler_only_by_default(tmp_path: Path) -> None:
    setup_logging(tmp_path, {"logging": {"file": "logs/test.log", "level": "debug"}})
    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    handler = root.handlers[0]
    assert isinstance(handler, logging.handlers.RotatingFileHandler)
    assert (tmp_path / "logs").is_dir()


def test_console_handler_when_enabled(tmp_path: Path) -> None:
    setup_logging(tmp_path, {"logging": {"file": "app.log", "log_to_console": True}})
    root = logging.getLogger()
    assert root.level == logging.INFO
    assert len(root.handlers) == 2


def test_unknown_level_falls_back_to_info(tmp_path: Path) -> None:
    setup_logging(tmp_path, {"logging": {"file": "app.log", "level": "chatty"}})
    assert logging.getLogger().level == logging.INFO


def test_messages_written_to_file(tmp_path: Path) -> None:
    setup_logging(tmp_path, {"logging": {"file": "app.log"}})
    logging.getLogger("aihub.test").info("routed %s", "claude")
    for h in logging.getLogger().handlers:
        h.flush()
    content = (tmp_path / "app.log").read_text(encoding="utf-8")
    assert "[INFO] aihub.test: routed claude" in content


def test_http_libraries_quieted_by_default(tmp_path: Path) -> None:
    setup_logging(tmp_path, {"logging": {"file": "app.log", "level": "DEBUG"}})
    for name in ("httpx", "httpcore", "openai"):
        assert logging.getLogger(name).level == logging.WARNING


def test_quiet_levels_from_settings(tmp_path: Path) -> None:
    setup_logging(
        tmp_path,
        {"logging": {"file": "app.log", "level": "INFO", "quiet": {"httpx": "ERROR", "openai": "INFO"}}},
    )
    assert logging.getLogger("httpx").level == logging.ERROR
    assert logging.getLogger("openai").level == logging.INFO
    assert logging.getLogger("httpcore").level == logging.WARNING


def test_quiet_never_below_root_level(tmp_path: Path) -> None:
    setup_logging(tmp_path, {"logging": {"file": "app.log", "level": "ERROR"}})
    assert logging.getLogger("httpx").level == logging.ERROR


def test_verbose_echoes_routing_to_console_only(tmp_path: Path) -> None:
    setup_logging(tmp_path, {"logging": {"file": "app.log"}}, verbose=True)
    root = logging.getLogger()
    file_handler, console = root.handlers
    assert console.level == logging.DEBUG
    assert logging.getLogger("aihub.llm.router").isEnabledFor(logging.DEBUG)

    logging.getLogger("aihub.llm.router").debug("summaries: claude-3 -> claude")
    file_handler.flush()
    assert "claude-3 -> claude" not in (tmp_path / "app.log").read_text(encoding="utf-8")


def test_verbose_reset_on_next_setup(tmp_path: Path) -> None:
    setup_logging(tmp_path, {"logging": {"file": "app.log"}}, verbose=True)
    setup_logging(tmp_path, {"logging": {"file": "app.log"}})
    assert not logging.getLogger("aihub.llm.router").isEnabledFor(logging.DEBUG)
