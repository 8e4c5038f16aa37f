#!/usr/bin/env python3
# Copyright (C) 2024 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

from __future__ import annotations

import dataclasses
from collections.abc import Sequence

from .checkresults import CheckReport, Metric
from .levels import check_levels, Levels


@dataclasses.dataclass(frozen=True, kw_only=True)
class Measurement:
    """One value obtained from the monitored system during a single run"""

    metric_name: str
    value: int
    summary: str
    details: Sequence[str] = ()
    extra_metrics: Sequence[Metric] = ()


def evaluate(measurement: Measurement, levels: Levels, *, extra: bool = False) -> CheckReport:
    state, levelsinfo = check_levels(measurement.value, levels)
    return CheckReport(
        state=state,
        summary=f"{measurement.summary}{levelsinfo}",
        metrics=(
            Metric(measurement.metric_name, measurement.value, levels.warning, levels.critical),
        ),
        details=tuple(measurement.details),
        detail_metrics=tuple(measurement.extra_metrics) if extra else (),
    )
