#!/usr/bin/env python3
# Copyright (C) 2024 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

from __future__ import annotations

import logging

from db2mon.utils.exceptions import (
    MKAlreadyRunning,
    MKCheckpointError,
    MKCommandError,
    MKEnvironmentError,
    MKException,
    MKTerminate,
    MKTimeout,
    MKUsageError,
)

from .checkresults import CheckReport, ServiceState

__all__ = ["CheckResultErrorHandler", "handle_failure"]

logger = logging.getLogger("db2mon")


class CheckResultErrorHandler:
    """Turn every exception raised while checking into a terminal report

    MKTerminate (help, version) passes through. In debug mode unexpected
    exceptions pass through as well.
    """

    def __init__(self, *, debug: bool = False) -> None:
        self.debug = debug
        self._result: CheckReport | None = None

    @property
    def result(self) -> CheckReport | None:
        return self._result

    def __enter__(self) -> CheckResultErrorHandler:
        return self

    def __exit__(self, type_: object, value: BaseException | None, traceback: object) -> bool:
        if value is None:
            return True
        if not isinstance(value, Exception) or isinstance(value, MKTerminate):
            return False
        self._result = handle_failure(value, debug=self.debug)
        return True


def handle_failure(exc: Exception, *, debug: bool = False) -> CheckReport:
    if isinstance(exc, MKUsageError):
        return CheckReport.unknown(
            f"Invalid arguments: {exc}", details=(exc.usage,) if exc.usage else ()
        )

    if isinstance(exc, MKAlreadyRunning):
        return CheckReport.unknown(f"{exc}, nothing done")

    if isinstance(exc, MKTimeout):
        return CheckReport.unknown(f"Timed out: {exc}")

    if isinstance(exc, MKCheckpointError):
        return CheckReport(state=ServiceState.CRITICAL, summary=str(exc))

    if isinstance(exc, (MKCommandError, MKEnvironmentError)):
        return CheckReport.unknown(str(exc))

    if isinstance(exc, MKException):
        return CheckReport.unknown(str(exc) or exc.__class__.__name__)

    if debug:
        raise exc

    logger.exception("Unhandled exception")
    return CheckReport.unknown(f"Internal error: {exc.__class__.__name__}: {exc}")
