#!/usr/bin/env python3
# Copyright (C) 2024 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""Checking of a measured value against upper warning/critical levels"""

from __future__ import annotations

from typing import NamedTuple

from .checkresults import ServiceState


class Levels(NamedTuple):
    warning: int
    critical: int

    @classmethod
    def validated(cls, warning: int, critical: int) -> Levels:
        """Create levels, rejecting pairs that can never produce a WARNING"""
        if warning <= 0 or critical <= 0:
            raise ValueError(
                f"Thresholds must be positive (warning: {warning}, critical: {critical})"
            )
        if warning >= critical:
            raise ValueError(
                f"Warning threshold ({warning}) must be lower than critical threshold ({critical})"
            )
        return cls(warning, critical)


def check_levels(value: int | float, levels: Levels) -> tuple[ServiceState, str]:
    """Classify the value and return the levels info for the summary

    >>> check_levels(3, Levels(5, 10))
    (<ServiceState.OK: 0>, '')
    >>> check_levels(5, Levels(5, 10))
    (<ServiceState.WARNING: 1>, ' (warn/crit at 5/10)')
    """
    if value >= levels.critical:
        return ServiceState.CRITICAL, _levelsinfo(levels)
    if value >= levels.warning:
        return ServiceState.WARNING, _levelsinfo(levels)
    return ServiceState.OK, ""


def _levelsinfo(levels: Levels) -> str:
    return f" (warn/crit at {levels.warning}/{levels.critical})"
