#!/usr/bin/env python3
# Copyright (C) 2024 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""check_db2_diag_log - Monitor new messages in the DB2 diagnostic log"""

import argparse
import sys
from collections.abc import Sequence

from db2mon.checkengine import ActiveCheck, CheckReport, evaluate_delta, run_plugin
from db2mon.checkengine.commandline import (
    add_checkpoint_arguments,
    add_instance_arguments,
    add_threshold_arguments,
    CheckpointArgs,
    InstanceArgs,
    ThresholdArgs,
)
from db2mon.datasources.commands import CommandRunner, run_command
from db2mon.datasources.db2 import Db2Instance
from db2mon.datasources.db2diag import DEFAULT_LEVELS, DiagLogSource


class Args(InstanceArgs, ThresholdArgs, CheckpointArgs):
    level: str = DEFAULT_LEVELS


class CheckDiagLog(ActiveCheck[Args]):
    name = "check_db2_diag_log"
    description = "Check the number of new messages in the diagnostic log of a DB2 instance"
    args_model = Args

    def __init__(self, run: CommandRunner = run_command) -> None:
        self._run = run

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        add_instance_arguments(parser)
        add_threshold_arguments(parser, warning=5, critical=20)
        add_checkpoint_arguments(parser)
        parser.add_argument(
            "-l",
            "--level",
            default=DEFAULT_LEVELS,
            help="Comma separated levels of the messages to count (default: %(default)s)",
        )

    def service_name(self, args: Args) -> str:
        return f"DB2_Diag_Log_{args.instance.name}"

    def execute(self, args: Args) -> CheckReport:
        source = DiagLogSource(
            Db2Instance.from_home(args.instance),
            args.directory,
            levels=args.level,
            timeout=args.timeout,
            run=self._run,
        )
        return evaluate_delta(source, args.levels, noreplace=args.noreplace, extra=args.extra)


def main(argv: Sequence[str] | None = None) -> int:
    return run_plugin(CheckDiagLog(), sys.argv[1:] if argv is None else argv)


if __name__ == "__main__":
    sys.exit(main())
