#!/usr/bin/env python3
# Copyright (C) 2024 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

# pylint: disable=redefined-outer-name

import shutil
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path

import pytest

from db2mon.datasources.commands import CommandResult


class FakeRunner:
    """Stands in for run_command and answers by the name of the executed program

    The DB2 commands are wrapped by /bin/sh -c, the program is looked up in the
    shell command line then.
    """

    def __init__(self, responses: Mapping[str, CommandResult | Exception]) -> None:
        self.responses = dict(responses)
        self.calls: list[list[str]] = []

    def __call__(
        self, command: Sequence[str], *, timeout: float, cwd: Path | None = None
    ) -> CommandResult:
        self.calls.append(list(command))
        program = command[-1].split("&&")[-1].split()[0] if command[0] == "/bin/sh" else command[0]
        response = self.responses[program]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def fake_runner() -> Callable[[Mapping[str, CommandResult | Exception]], FakeRunner]:
    return FakeRunner


@pytest.fixture
def instance_home(tmp_path: Path) -> Path:
    home = tmp_path / "db2inst1"
    (home / "sqllib").mkdir(parents=True)
    (home / "sqllib" / "db2profile").write_text("# DB2 profile\n")
    return home


@pytest.fixture
def git_available() -> None:
    if shutil.which("git") is None:
        pytest.skip("git is not installed")
