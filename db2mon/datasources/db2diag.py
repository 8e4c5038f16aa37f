#!/usr/bin/env python3
# Copyright (C) 2024 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""New records in the diagnostic log of an instance

The checkpoint is the time stamp of the last run, kept in a small text file.
The records are read with db2diag, restricted to the time window since the
checkpoint and to the configured severity levels.
"""

from __future__ import annotations

import collections
import datetime
import logging
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path

from db2mon.checkengine.checkresults import Metric
from db2mon.checkengine.measurement import Measurement
from db2mon.utils import store
from db2mon.utils.exceptions import MKCheckpointError, MKCommandError, MKEnvironmentError

from .commands import CommandRunner, run_command
from .db2 import Db2Instance

logger = logging.getLogger("db2mon.db2diag")

# db2diag -time accepts YYYY-MM-DD-hh.mm.ss
TIMESTAMP_FORMAT = "%Y-%m-%d-%H.%M.%S"

DEFAULT_LEVELS = "Critical,Severe,Error"


def format_timestamp(timestamp: datetime.datetime) -> str:
    return timestamp.strftime(TIMESTAMP_FORMAT)


def parse_timestamp(text: str) -> datetime.datetime:
    return datetime.datetime.strptime(text.strip(), TIMESTAMP_FORMAT)


def split_levels(levels: str) -> Sequence[str]:
    return [l.strip() for l in levels.split(",") if l.strip()]


def count_records(output: str, levels: Sequence[str]) -> Mapping[str, int]:
    """One record per non-empty line, the text is the level of the record

    >>> dict(count_records("Error\\n\\nSevere\\nerror\\n", ["Critical", "Severe", "Error"]))
    {'Critical': 0, 'Severe': 1, 'Error': 2}
    """
    canonical = {l.lower(): l for l in levels}
    counts: collections.Counter[str] = collections.Counter({l: 0 for l in levels})
    for line in output.splitlines():
        if not (level := line.strip()):
            continue
        counts[canonical.get(level.lower(), level)] += 1
    return counts


class DiagLogSource:
    def __init__(
        self,
        instance: Db2Instance,
        directory: Path,
        *,
        levels: str = DEFAULT_LEVELS,
        timeout: float,
        run: CommandRunner = run_command,
        now: Callable[[], datetime.datetime] = datetime.datetime.now,
    ) -> None:
        self.instance = instance
        self.checkpoint_file = directory / f"db2mon_diag_log.{instance.key}.timestamp"
        self.levels = split_levels(levels) or split_levels(DEFAULT_LEVELS)
        self._timeout = timeout
        self._run = run
        self._now = now
        self._measured_until: datetime.datetime | None = None

    def describe(self) -> str:
        return str(self.checkpoint_file)

    def exists(self) -> bool:
        return self.checkpoint_file.exists()

    def create(self) -> None:
        self._save(self._next_checkpoint())

    def last_timestamp(self) -> datetime.datetime:
        content = store.load_text_from_file(self.checkpoint_file)
        try:
            return parse_timestamp(content)
        except ValueError:
            raise MKEnvironmentError(
                f"Invalid checkpoint {self.checkpoint_file}: {content.strip()!r}"
            )

    def _next_checkpoint(self) -> datetime.datetime:
        return self._now().replace(microsecond=0)

    def measure(self) -> Measurement:
        """Count the records of [checkpoint, next checkpoint - 1s]

        Both ends of "db2diag -time" are inclusive. The second of the next
        checkpoint belongs to the window of the next run.
        """
        since = self.last_timestamp()
        next_checkpoint = self._next_checkpoint()
        until = next_checkpoint - datetime.timedelta(seconds=1)
        # nothing to read if the checkpoint was set within the current second
        output = self._read_levels(since, until) if until >= since else ""
        counts = count_records(output, self.levels)
        total = sum(counts.values())
        self._measured_until = next_checkpoint
        return Measurement(
            metric_name="Messages",
            value=total,
            summary=f"{total} new messages in diagnostic log since {format_timestamp(since)}",
            details=tuple(f"{level}: {count}" for level, count in counts.items()),
            extra_metrics=tuple(Metric(level, count) for level, count in counts.items()),
        )

    def _read_levels(self, since: datetime.datetime, until: datetime.datetime) -> str:
        result = self._run(
            self.instance.command(
                "db2diag",
                "-time",
                f"{format_timestamp(since)}:{format_timestamp(until)}",
                "-level",
                ",".join(self.levels),
                "-fmt",
                "%{level}",
            ),
            timeout=self._timeout,
        )
        if result.returncode != 0 and result.stderr.strip():
            raise MKCommandError(
                f"db2diag failed (exit code {result.returncode}): {result.stderr.strip()}"
            )
        return result.stdout

    def commit(self, measurement: Measurement) -> None:
        try:
            self._save(self._measured_until or self._next_checkpoint())
        except MKEnvironmentError as e:
            raise MKCheckpointError(str(e))

    def _save(self, timestamp: datetime.datetime) -> None:
        try:
            store.makedirs(self.checkpoint_file.parent)
        except OSError as e:
            raise MKEnvironmentError(f"Cannot create directory {self.checkpoint_file.parent}: {e}")
        store.save_text_to_file(self.checkpoint_file, format_timestamp(timestamp) + "\n")
        logger.info("Checkpoint %s set to %s", self.checkpoint_file, format_timestamp(timestamp))
