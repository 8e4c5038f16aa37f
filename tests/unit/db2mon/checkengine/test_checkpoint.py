#!/usr/bin/env python3
# Copyright (C) 2024 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

# pylint: disable=redefined-outer-name

import pytest

from db2mon.checkengine.checkpoint import evaluate_delta, FIRST_EXECUTION
from db2mon.checkengine.checkresults import Metric, ServiceState
from db2mon.checkengine.levels import Levels
from db2mon.checkengine.measurement import Measurement
from db2mon.utils.exceptions import MKCheckpointError


class CounterSource:
    """The checkpoint is the counter value of the last run"""

    def __init__(self, checkpoint: int | None, current: int) -> None:
        self.checkpoint = checkpoint
        self.current = current
        self.commit_error: Exception | None = None

    def describe(self) -> str:
        return "counter"

    def exists(self) -> bool:
        return self.checkpoint is not None

    def create(self) -> None:
        self.checkpoint = self.current

    def measure(self) -> Measurement:
        assert self.checkpoint is not None
        delta = self.current - self.checkpoint
        return Measurement(
            metric_name="Delta",
            value=delta,
            summary=f"{delta} new",
            extra_metrics=(Metric("Counter", self.current),),
        )

    def commit(self, measurement: Measurement) -> None:
        if self.commit_error is not None:
            raise self.commit_error
        self.checkpoint = self.current


LEVELS = Levels(5, 20)


def test_first_execution_creates_checkpoint() -> None:
    source = CounterSource(None, 100)
    report = evaluate_delta(source, LEVELS)
    assert report.state is ServiceState.OK
    assert report.summary == FIRST_EXECUTION
    assert report.details == ("Checkpoint created: counter",)
    assert not report.metrics
    assert source.checkpoint == 100


def test_first_execution_with_noreplace_creates_checkpoint() -> None:
    source = CounterSource(None, 100)
    assert evaluate_delta(source, LEVELS, noreplace=True).summary == FIRST_EXECUTION
    assert source.checkpoint == 100


@pytest.mark.parametrize(
    "current, state",
    [
        (100, ServiceState.OK),
        (104, ServiceState.OK),
        (105, ServiceState.WARNING),
        (120, ServiceState.CRITICAL),
    ],
)
def test_delta_is_classified_and_committed(current: int, state: ServiceState) -> None:
    source = CounterSource(100, current)
    report = evaluate_delta(source, LEVELS)
    assert report.state is state
    assert report.metrics == (Metric("Delta", current - 100, 5, 20),)
    assert not report.detail_metrics
    assert source.checkpoint == current


def test_noreplace_keeps_checkpoint() -> None:
    source = CounterSource(100, 110)
    report = evaluate_delta(source, LEVELS, noreplace=True)
    assert report.state is ServiceState.WARNING
    assert report.details == ("Checkpoint was not updated (noreplace)",)
    assert source.checkpoint == 100

    # the next run still sees the same delta
    assert evaluate_delta(source, LEVELS, noreplace=True).state is ServiceState.WARNING


def test_extra_metrics() -> None:
    report = evaluate_delta(CounterSource(100, 101), LEVELS, extra=True)
    assert report.detail_metrics == (Metric("Counter", 101),)


def test_failed_commit_is_critical() -> None:
    source = CounterSource(100, 101)
    source.commit_error = MKCheckpointError("disk full")
    report = evaluate_delta(source, LEVELS)
    assert report.state is ServiceState.CRITICAL
    assert report.summary == "1 new, checkpoint not updated: disk full"
    assert source.checkpoint == 100
