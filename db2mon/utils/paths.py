#!/usr/bin/env python3
# Copyright (C) 2024 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""This module serves the path structure of the plug-ins.

Every location can be moved by an environment variable, the default is the
shared temporary directory of the host.
"""

import os
import tempfile
from pathlib import Path


def _env_path(varname: str) -> Path:
    return Path(os.environ.get(varname) or tempfile.gettempdir())


def state_dir() -> Path:
    """Default location of the checkpoints (-D/--directory)"""
    return _env_path("DB2MON_STATE_DIR")


def lock_dir() -> Path:
    return _env_path("DB2MON_LOCK_DIR")


def trace_dir() -> Path:
    return _env_path("DB2MON_TRACE_DIR")


def trace_file(check_name: str) -> Path:
    return trace_dir() / f"{check_name}.log"
