#!/usr/bin/env python3
# Copyright (C) 2024 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

import os
from collections.abc import Callable
from pathlib import Path
from typing import NewType

import psutil

ProcessId = NewType("ProcessId", int)

LivenessProbe = Callable[[ProcessId], bool]


def current_pid() -> ProcessId:
    return ProcessId(os.getpid())


def pid_from_file(pid_file: Path) -> ProcessId | None:
    """Read a process id from a given pid file"""
    try:
        return ProcessId(int(pid_file.read_text(encoding="utf-8").strip()))
    except (OSError, ValueError):
        return None


def process_exists(pid: ProcessId) -> bool:
    try:
        return psutil.pid_exists(pid)
    except (psutil.Error, OSError):
        return False
