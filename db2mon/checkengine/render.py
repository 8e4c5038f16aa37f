#!/usr/bin/env python3
# Copyright (C) 2024 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""Rendering of a check report for the monitoring core

Two encodings are supported:

STANDARD (Nagios plug-in API)::

    <summary>|<perfdata>
    <long text>|<long perfdata>

CHECK_MK (local check format)::

    <state> <check name> <perfdata or -> <summary>
"""

import enum
from collections.abc import Sequence

from .checkresults import CheckReport, Metric


class OutputFormat(enum.Enum):
    STANDARD = "standard"
    CHECK_MK = "check_mk"


def render(report: CheckReport, output_format: OutputFormat, check_name: str) -> str:
    if output_format is OutputFormat.CHECK_MK:
        return _render_check_mk(report, check_name)
    return _render_standard(report)


def _render_standard(report: CheckReport) -> str:
    first = _with_perfdata(_replace_pipe(report.safe_summary), report.metrics, " ")
    second = _with_perfdata(
        "\n".join(_replace_pipe(line) for line in report.details), report.detail_metrics, "\n"
    )
    return f"{first}\n{second}"


def _render_check_mk(report: CheckReport, check_name: str) -> str:
    metrics = "|".join(m.as_perfdata() for m in report.metrics) or "-"
    summary = _replace_pipe(report.safe_summary).replace("\n", " ")
    return f"{int(report.state)} {_service_token(check_name)} {metrics} {summary}"


def _with_perfdata(text: str, metrics: Sequence[Metric], separator: str) -> str:
    if not metrics:
        return text
    return f"{text}|" + separator.join(m.as_perfdata() for m in metrics)


def _service_token(check_name: str) -> str:
    """The service name is a single token in the local check format"""
    return "_".join(check_name.split()) or "-"


def _replace_pipe(txt: str) -> str:
    """The vertical bar indicates end of service output and start of metrics.
    Replace the ones in the output by a Unicode "Light vertical bar"
    """
    return txt.replace("|", "❘")
