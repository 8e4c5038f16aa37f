#!/usr/bin/env python3
# Copyright (C) 2024 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""Lock information from the database snapshot

The command line processor prints the snapshot as "Key = Value" records:

    Locks held currently                       = 3
    Lock waits                                 = 12
    Time database waited on locks (ms)         = 3458
    Lock list memory in use (Bytes)            = 11520
    Deadlocks detected                         = 0
    Lock escalations                           = 0
    Exclusive lock escalations                 = 0
    Agents currently waiting on locks          = 1
    Lock Timeouts                              = 0
"""

import logging
import re
from collections.abc import Mapping

from db2mon.checkengine.checkresults import Metric
from db2mon.checkengine.measurement import Measurement
from db2mon.utils.exceptions import MKCommandError

from .commands import CommandRunner, run_command
from .db2 import Db2Instance

logger = logging.getLogger("db2mon.db2snapshot")

WAITING_AGENTS = "agents currently waiting on locks"

EXTRA_METRICS: Mapping[str, str] = {
    "Locks_held": "locks held currently",
    "Lock_waits": "lock waits",
    "Lock_wait_time": "time database waited on locks (ms)",
    "Deadlocks": "deadlocks detected",
    "Lock_escalations": "lock escalations",
    "Lock_timeouts": "lock timeouts",
}

# SQL1032N  No start database manager command was issued.  SQLSTATE=57019
_SQL_MESSAGE = re.compile(r"^(SQL\d{4,5})([NWCI])\b")

# 0: ok, 1: no rows, 2: warning, 4: DB2 or SQL error, 8: command line processor error
_CLP_ERROR = 4


def parse_snapshot(output: str) -> Mapping[str, str]:
    """Keys are normalized to lower case, the spelling varies between versions"""
    records = {}
    for line in output.splitlines():
        key, sep, value = line.partition("=")
        if sep and key.strip():
            records[key.strip().lower()] = value.strip()
    return records


def raise_for_sql_error(output: str) -> None:
    for line in output.splitlines():
        if (match := _SQL_MESSAGE.match(line.strip())) and match.group(2) in "NC":
            raise MKCommandError(" ".join(line.split()))


def _to_int(value: str) -> int | None:
    try:
        return int(value)
    except ValueError:
        return None


def read_lock_waits(
    instance: Db2Instance,
    database: str,
    *,
    timeout: float,
    run: CommandRunner = run_command,
) -> Measurement:
    result = run(
        instance.command("db2", f"get snapshot for database on {database}"),
        timeout=timeout,
    )
    raise_for_sql_error(result.stdout)
    if result.returncode >= _CLP_ERROR:
        raise MKCommandError(
            f"db2 failed (exit code {result.returncode}): "
            f"{(result.stderr or result.stdout).strip() or 'no output'}"
        )

    records = parse_snapshot(result.stdout)
    if (raw := records.get(WAITING_AGENTS)) is None or (waiting := _to_int(raw)) is None:
        raise MKCommandError(
            f"Cannot parse the database snapshot of {database}: "
            f"no value for 'Agents currently waiting on locks'"
        )

    extra = []
    for metric_name, key in EXTRA_METRICS.items():
        # "Not Collected" if the lock monitor switch is off
        if (value := _to_int(records.get(key, ""))) is not None:
            extra.append(Metric(metric_name, value))
        else:
            logger.debug("No value for %r in snapshot", key)

    return Measurement(
        metric_name="Waiting_agents",
        value=waiting,
        summary=f"{waiting} agents waiting on locks in database {database}",
        details=tuple(f"{m.name.replace('_', ' ')}: {m.value}" for m in extra),
        extra_metrics=tuple(extra),
    )
