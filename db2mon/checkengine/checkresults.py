#!/usr/bin/env python3
# Copyright (C) 2024 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Sequence

from db2mon.utils.statename import service_state_name

__all__ = ["CheckReport", "Metric", "ServiceState", "worst_service_state"]

NOT_EXECUTED = "test was not executed"


class ServiceState(enum.IntEnum):
    OK = 0
    WARNING = 1
    CRITICAL = 2
    UNKNOWN = 3

    def __str__(self) -> str:
        return service_state_name(self.value)


def worst_service_state(*states: int, default: int) -> ServiceState:
    """Return the 'worst' aggregation of all states

    The order of severity is OK -> WARN -> UNKNOWN -> CRIT, so this
    is just not quite `max`.

    >>> worst_service_state(0, 1, 3, default=0)
    <ServiceState.UNKNOWN: 3>
    >>> worst_service_state(0, 1, 2, 3, default=0)
    <ServiceState.CRITICAL: 2>
    >>> worst_service_state(default=0)
    <ServiceState.OK: 0>
    """
    return ServiceState(2 if 2 in states else max(states, default=default))


@dataclasses.dataclass(frozen=True)
class Metric:
    name: str
    value: int | float
    warn: int | float | None = None
    crit: int | float | None = None
    min: int | float | None = None
    max: int | float | None = None

    def as_perfdata(self) -> str:
        """Nagios performance data: 'label'=value;warn;crit;min;max

        Trailing empty fields are dropped.
        """
        fields = [
            "" if v is None else _render_number(v)
            for v in (self.value, self.warn, self.crit, self.min, self.max)
        ]
        while len(fields) > 1 and not fields[-1]:
            fields.pop()
        return f"'{self.name}'=" + ";".join(fields)


def _render_number(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@dataclasses.dataclass(frozen=True, kw_only=True)
class CheckReport:
    state: ServiceState = ServiceState.UNKNOWN
    summary: str = ""
    metrics: Sequence[Metric] = ()
    details: Sequence[str] = ()
    detail_metrics: Sequence[Metric] = ()

    @property
    def safe_summary(self) -> str:
        return self.summary or NOT_EXECUTED

    def with_state(self, state: ServiceState, reason: str = "") -> CheckReport:
        summary = f"{self.summary}, {reason}" if self.summary and reason else self.summary or reason
        return dataclasses.replace(self, state=state, summary=summary)

    @classmethod
    def unknown(cls, summary: str, details: Sequence[str] = ()) -> CheckReport:
        return cls(state=ServiceState.UNKNOWN, summary=summary, details=tuple(details))
