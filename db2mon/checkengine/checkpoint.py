#!/usr/bin/env python3
# Copyright (C) 2024 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""Evaluation of a delta against a persisted checkpoint

The first run for a target only creates the checkpoint, there is nothing to
compare yet. Every later run measures the delta since the checkpoint,
classifies it and moves the checkpoint forward, unless the caller wants to
keep it ("noreplace").
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Protocol

from db2mon.utils.exceptions import MKCheckpointError, MKEnvironmentError

from .checkresults import CheckReport, ServiceState, worst_service_state
from .levels import Levels
from .measurement import evaluate, Measurement

logger = logging.getLogger("db2mon.checkpoint")

FIRST_EXECUTION = "First execution, nothing to compare"


class DeltaSource(Protocol):
    def describe(self) -> str: ...

    def exists(self) -> bool: ...

    def create(self) -> None: ...

    def measure(self) -> Measurement:
        """Compute the delta against the checkpoint without touching it"""

    def commit(self, measurement: Measurement) -> None:
        """Move the checkpoint to the state of the given measurement"""


def evaluate_delta(
    source: DeltaSource,
    levels: Levels,
    *,
    noreplace: bool = False,
    extra: bool = False,
) -> CheckReport:
    if not source.exists():
        logger.info("No checkpoint for %s, creating it", source.describe())
        source.create()
        return CheckReport(
            state=ServiceState.OK,
            summary=FIRST_EXECUTION,
            details=(f"Checkpoint created: {source.describe()}",),
        )

    measurement = source.measure()
    logger.debug("Measured %s=%d", measurement.metric_name, measurement.value)
    report = evaluate(measurement, levels, extra=extra)

    if noreplace:
        logger.info("Keeping checkpoint %s", source.describe())
        return dataclasses.replace(
            report, details=(*report.details, "Checkpoint was not updated (noreplace)")
        )

    try:
        source.commit(measurement)
    except (MKCheckpointError, MKEnvironmentError) as e:
        logger.error("Cannot update checkpoint %s: %s", source.describe(), e)
        return report.with_state(
            worst_service_state(report.state, ServiceState.CRITICAL, default=0),
            f"checkpoint not updated: {e}",
        )
    return report
