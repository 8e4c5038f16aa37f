#!/usr/bin/env python3
# Copyright (C) 2024 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

# This file initializes the pytest environment
# pylint: disable=redefined-outer-name

import logging
import os
from collections.abc import Iterator

import pytest

from db2mon.utils import log

logger = logging.getLogger(__name__)

# This allows exceptions to be handled by IDEs (rather than just printing the results)
# when pytest based tests are being run from inside the IDE
# To enable this, set `_PYTEST_RAISE` to some value != '0' in your IDE
PYTEST_RAISE = os.getenv("_PYTEST_RAISE", "0") != "0"


@pytest.hookimpl(tryfirst=True)
def pytest_exception_interact(call: pytest.CallInfo) -> None:
    if PYTEST_RAISE and call.excinfo is not None:
        raise call.excinfo.value


@pytest.fixture(autouse=True)
def _clean_global_state() -> Iterator[None]:
    """The plug-ins configure the package logger globally"""
    yield
    for handler in log.logger.handlers:
        # capsys may already have closed the captured stderr stream
        stream = getattr(handler, "stream", None)
        if stream is not None and getattr(stream, "closed", False):
            continue
        handler.flush()
    log.clear_console_logging()


@pytest.fixture(autouse=True)
def _isolated_paths(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory) -> None:
    """Never write checkpoints, locks or traces to the real temp directory"""
    base = tmp_path_factory.mktemp("db2mon")
    monkeypatch.setenv("DB2MON_STATE_DIR", str(base / "state"))
    monkeypatch.setenv("DB2MON_LOCK_DIR", str(base / "lock"))
    monkeypatch.setenv("DB2MON_TRACE_DIR", str(base / "trace"))
