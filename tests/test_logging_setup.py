"""Tests for CLI logging: level markers, log file format and redaction."""

import logging
import re

import pytest

from dockhand.logging_setup import SUCCESS, add_file_handler, log_success, setup_cli_logging
from dockhand.redact import register_secret


@pytest.fixture
def clean_root():
    root = logging.getLogger()
    saved = root.handlers[:], root.level
    yield root
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = saved[0]
    root.setLevel(saved[1])


def test_success_level_registered():
    assert logging.getLevelName(SUCCESS) == "SUCCESS"
    assert logging.INFO < SUCCESS < logging.WARNING


def test_console_markers(clean_root, capsys):
    setup_cli_logging()
    logger = logging.getLogger("dockhand.test")
    logger.info("info line")
    log_success(logger, "done")
    logger.warning("careful")
    logger.error("broken")

    out = capsys.readouterr().out
    assert "ℹ info line" in out
    assert "✓ done" in out
    assert "⚠ careful" in out
    assert "✗ broken" in out


def test_raw_records_unmarked(clean_root, capsys):
    setup_cli_logging()
    logging.getLogger("dockhand.test").info("remote output", extra={"raw": True})
    assert capsys.readouterr().out == "remote output\n"


def test_log_file_format(clean_root, tmp_path):
    setup_cli_logging()
    log_file = add_file_handler(tmp_path / "logs")
    logger = logging.getLogger("dockhand.test")
    logger.info("starting")
    log_success(logger, "finished")
    for handler in clean_root.handlers:
        handler.flush()

    assert re.search(r"deploy_\d{8}_\d{6}\.log$", log_file)
    lines = open(log_file, encoding="utf-8").read().splitlines()
    assert re.match(r"^\[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\] \[INFO\] starting$", lines[0])
    assert re.match(r"^\[.+\] \[SUCCESS\] finished$", lines[1])


def test_secrets_redacted_from_console_and_file(clean_root, tmp_path, capsys):
    setup_cli_logging()
    log_file = add_file_handler(tmp_path)
    register_secret("ghp_never_shown")
    logging.getLogger("dockhand.source.git").error("git: could not read https://ghp_never_shown@github.com")
    for handler in clean_root.handlers:
        handler.flush()

    assert "ghp_never_shown" not in capsys.readouterr().out
    content = open(log_file, encoding="utf-8").read()
    assert "ghp_never_shown" not in content
    assert "https://***@github.com" in content
