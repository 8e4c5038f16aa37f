#!/usr/bin/env python3
# Copyright (C) 2024 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""User-defined exceptions and error handling related constant."""

__all__ = [
    "MKAlreadyRunning",
    "MKCheckpointError",
    "MKCommandError",
    "MKEnvironmentError",
    "MKException",
    "MKGeneralException",
    "MKTerminate",
    "MKTimeout",
    "MKUsageError",
]


# never used directly in the code. Just some wrapper to make all of our
# exceptions handleable with one call
class MKException(Exception):
    pass


class MKGeneralException(MKException):
    pass


class MKUsageError(MKException):
    """Invalid or missing command line arguments

    The usage text of the plug-in is attached to the report.
    """

    def __init__(self, message: str, usage: str = "") -> None:
        super().__init__(message)
        self.usage = usage


class MKEnvironmentError(MKException):
    """The monitored environment is not usable (instance path, checkpoint files...)"""


class MKAlreadyRunning(MKException):
    """Another invocation with the same arguments holds the lock artifact"""


class MKCommandError(MKException):
    """An external command failed or produced output we can not parse"""


class MKCheckpointError(MKException):
    """The checkpoint could not be saved after a measurement has been made"""


# This exception is raised when the current program execution should be
# terminated without any further output, e.g. after printing the help or
# the version. The exit code is carried along.
class MKTerminate(MKException):
    def __init__(self, exit_code: int) -> None:
        super().__init__(exit_code)
        self.exit_code = exit_code


class MKTimeout(MKException):
    """Raise when a timeout is reached.

    See also:
        `db2mon.datasources.commands` runs the external commands with a timeout.
    """
