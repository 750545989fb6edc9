import logging
import sys
from pathlib import Path

import pytest

from dataimport.loggingSetup import closeCommandLogger, createCommandLogger, logEvent, mapLogLevel, teeStdStreams


def test_command_log_carries_row_key(tmp_path: Path):
    logger, log_path = createCommandLogger("import", str(tmp_path), "run-9", "INFO")
    try:
        logEvent(logger, logging.WARNING, "run-9", "import", "Row 4 skipped", row=4)
        logger.info("plain message")
    finally:
        closeCommandLogger(logger)

    lines = Path(log_path).read_text(encoding="utf-8").splitlines()
    assert Path(log_path).name == "import_run-9.log"
    assert "runId=run-9 comp=import row=4 msg=Row 4 skipped" in lines[0]
    assert "runId=run-9 comp=core row=- msg=plain message" in lines[1]


def test_tee_copies_stdout_lines_into_log(tmp_path: Path):
    logger, log_path = createCommandLogger("count", str(tmp_path), "run-t", "DEBUG")
    original = sys.stdout
    try:
        with teeStdStreams(logger, "run-t"):
            print("rows=3")
            sys.stdout.write("tail without newline")
        assert sys.stdout is original
    finally:
        closeCommandLogger(logger)

    text = Path(log_path).read_text(encoding="utf-8")
    assert "comp=stdout row=- msg=rows=3" in text
    assert "msg=tail without newline" in text


def test_map_log_level():
    assert mapLogLevel("warn") == logging.WARNING
    assert mapLogLevel(" DEBUG ") == logging.DEBUG
    with pytest.raises(ValueError):
        mapLogLevel("loud")
