#!/usr/bin/env python3
# Copyright (C) 2024 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

import logging
import sys
from pathlib import Path

import pytest

from db2mon.utils import log


def test_get_logger() -> None:
    assert logging.getLogger("db2mon").getEffectiveLevel() == logging.INFO
    assert logging.getLogger("db2mon.store").getEffectiveLevel() == logging.INFO


def test_verbose_level() -> None:
    assert logging.getLevelName(log.VERBOSE) == "VERBOSE"
    assert logging.DEBUG < log.VERBOSE < logging.INFO


@pytest.mark.parametrize(
    "verbosity, level",
    [
        (0, logging.INFO),
        (1, log.VERBOSE),
        (2, logging.DEBUG),
        (3, logging.DEBUG),
    ],
)
def test_verbosity_to_log_level(verbosity: int, level: int) -> None:
    assert log.verbosity_to_log_level(verbosity) == level


def test_verbosity_to_log_level_negative() -> None:
    with pytest.raises(ValueError):
        log.verbosity_to_log_level(-1)


def test_no_console_output_without_verbosity(capsys: pytest.CaptureFixture[str]) -> None:
    log.setup_console_logging(0)
    logging.getLogger("db2mon.test").warning("not visible")
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err == ""


def test_console_output_goes_to_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    log.setup_console_logging(1)
    logger = logging.getLogger("db2mon.test")
    logger.log(log.VERBOSE, "verbose message")
    logger.debug("debug message")

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "VERBOSE: verbose message" in captured.err
    assert "debug message" not in captured.err


def test_open_log(tmp_path: Path) -> None:
    log_file = tmp_path / "trace.log"
    logfile = log.open_log(log_file)
    logging.getLogger("db2mon.test").debug("traced message")
    logfile.flush()

    line = log_file.read_text().strip()
    assert line.endswith("traced message")
    assert "[10] [db2mon.test" in line


def test_clear_console_logging_closes_log_file(tmp_path: Path) -> None:
    logfile = log.open_log(tmp_path / "trace.log")
    assert not logfile.closed
    log.clear_console_logging()
    assert logfile.closed


def test_clear_console_logging_keeps_stderr_open(tmp_path: Path) -> None:
    log.setup_console_logging(1)
    log.open_log(tmp_path / "missing" / "trace.log")
    log.clear_console_logging()
    assert not sys.stderr.closed


def test_open_log_falls_back_to_stderr(tmp_path: Path) -> None:
    assert log.open_log(tmp_path / "missing" / "trace.log") is sys.stderr


def test_clear_console_logging() -> None:
    log.setup_console_logging(2)
    assert log.logger.level == logging.DEBUG

    log.clear_console_logging()
    assert log.logger.level == logging.INFO
    assert [type(h) for h in log.logger.handlers] == [logging.NullHandler]
