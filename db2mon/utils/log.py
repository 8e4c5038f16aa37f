#!/usr/bin/env python3
# Copyright (C) 2024 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

import logging
import sys
from pathlib import Path
from typing import IO

# Just for reference, the predefined logging levels:
#
# syslog        Python         added to Python
# --------------------------------------------
# crit   2      CRITICAL 50
# err    3      ERROR    40
# warn   4      WARNING  30
# info   6      INFO     20
#                              VERBOSE  15
# debug  7      DEBUG    10
#
# The plug-ins write their result to stdout, so every log handler set up here
# writes to stderr or to the trace file.

# We need an additional log level between INFO and DEBUG to reflect the
# repeatable -v option of the plug-ins.
VERBOSE = 15
logging.addLevelName(VERBOSE, "VERBOSE")

logger = logging.getLogger("db2mon")


def get_formatter(
    format_str: str = "%(asctime)s [%(levelno)s] [%(name)s %(process)d] %(message)s",
) -> logging.Formatter:
    """Returns a new message formater instance that uses the standard
    log format by default. You can also set another format if you like."""
    return logging.Formatter(format_str)


def clear_console_logging() -> None:
    # closes the trace file, stderr stays open
    for handler in logger.handlers:
        handler.close()
    logger.handlers[:] = []
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.INFO)


# Set default logging handler to avoid "No handler found" warnings.
clear_console_logging()


def setup_console_logging(verbosity: int) -> None:
    """Write log messages of the requested verbosity to stderr

    Without any -v nothing is written, the plug-in output must stay clean.
    """
    if verbosity <= 0:
        return
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(get_formatter("%(levelname)s: %(message)s"))
    handler.setLevel(verbosity_to_log_level(verbosity))
    _add_handler(handler)


def open_log(log_file_path: Path | str) -> IO[str]:
    """Open the trace file and fall back to stderr if this is not successfull

    All messages down to DEBUG are written to the trace file, each one with
    a time stamp. The file-like object written to is returned, it is closed by
    clear_console_logging().
    """
    log_file_path = Path(log_file_path)

    handler: logging.StreamHandler
    try:
        handler = logging.FileHandler(log_file_path, encoding="utf-8")
    except OSError as e:
        logger.exception("Cannot open log file '%s': %s", log_file_path, e)
        handler = logging.StreamHandler(stream=sys.stderr)

    handler.setFormatter(get_formatter())
    handler.setLevel(logging.DEBUG)
    _add_handler(handler)
    return handler.stream


def _add_handler(handler: logging.Handler) -> None:
    logger.handlers[:] = [h for h in logger.handlers if not isinstance(h, logging.NullHandler)]
    logger.addHandler(handler)
    logger.setLevel(min(handler.level, logger.level))


def verbosity_to_log_level(verbosity: int) -> int:
    """Values for "verbosity":

      0: enables INFO and above
      1: enables VERBOSE and above
      2: enables DEBUG and above (ALL messages)

    Higher values are treated like 2.
    """
    if verbosity < 0:
        raise ValueError()
    if verbosity == 0:
        return logging.INFO
    if verbosity == 1:
        return VERBOSE
    return logging.DEBUG
