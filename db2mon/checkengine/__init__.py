#!/usr/bin/env python3
# Copyright (C) 2024 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""The check runner shared by all plug-ins.

The typical sequence of events is

.. uml::

    actor Nagios
    participant Runner
    participant InstanceLock
    participant ActiveCheck
    participant Renderer

    Nagios -> Runner : run_check(argv)
    Runner --> Runner : parse and validate arguments
    Runner -> InstanceLock : acquire()
    Runner -> ActiveCheck : execute(args)
    ActiveCheck --> ActiveCheck : measure, classify, move checkpoint
    ActiveCheck -> Runner : CheckReport
    Runner -> InstanceLock : release()
    Runner -> Renderer : render(CheckReport, OutputFormat)
    Renderer --> Nagios : text and exit code

See Also:
    db2mon.datasources for the collaborators measuring the DB2 instance.

"""

from .checkpoint import DeltaSource, evaluate_delta
from .checkresults import CheckReport, Metric, ServiceState
from .levels import check_levels, Levels
from .measurement import evaluate, Measurement
from .render import OutputFormat, render
from .runner import ActiveCheck, run_check, run_plugin

__all__ = [
    "ActiveCheck",
    "check_levels",
    "CheckReport",
    "DeltaSource",
    "evaluate",
    "evaluate_delta",
    "Levels",
    "Measurement",
    "Metric",
    "OutputFormat",
    "render",
    "run_check",
    "run_plugin",
    "ServiceState",
]
