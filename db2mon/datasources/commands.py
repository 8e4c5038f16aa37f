#!/usr/bin/env python3
# Copyright (C) 2024 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

import dataclasses
import logging
import shlex
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from db2mon.utils.exceptions import MKCommandError, MKTimeout
from db2mon.utils.log import VERBOSE

logger = logging.getLogger("db2mon.commands")


@dataclasses.dataclass(frozen=True)
class CommandResult:
    returncode: int
    stdout: str
    stderr: str = ""


class CommandRunner(Protocol):
    def __call__(
        self, command: Sequence[str], *, timeout: float, cwd: Path | None = None
    ) -> CommandResult: ...


def run_command(
    command: Sequence[str], *, timeout: float, cwd: Path | None = None
) -> CommandResult:
    logger.log(VERBOSE, "Executing: %s", shlex.join(command))
    try:
        completed_process = subprocess.run(
            command,
            capture_output=True,
            encoding="utf-8",
            errors="surrogateescape",
            timeout=timeout,
            cwd=cwd,
            check=False,
        )
    except subprocess.TimeoutExpired:
        raise MKTimeout(f"{command[0]} did not finish within {timeout:g} seconds")
    except OSError as e:
        raise MKCommandError(f"Cannot execute {command[0]}: {e}")

    logger.debug("Exit code %d, stdout: %r", completed_process.returncode, completed_process.stdout)
    if completed_process.stderr:
        logger.debug("stderr: %r", completed_process.stderr)
    return CommandResult(
        completed_process.returncode, completed_process.stdout, completed_process.stderr
    )
