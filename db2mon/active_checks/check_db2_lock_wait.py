#!/usr/bin/env python3
# Copyright (C) 2024 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""check_db2_lock_wait - Monitor agents waiting on locks in a DB2 database"""

import argparse
import sys
from collections.abc import Sequence

from pydantic import Field

from db2mon.checkengine import ActiveCheck, CheckReport, evaluate, run_plugin
from db2mon.checkengine.commandline import (
    add_instance_arguments,
    add_threshold_arguments,
    InstanceArgs,
    ThresholdArgs,
)
from db2mon.datasources.commands import CommandRunner, run_command
from db2mon.datasources.db2 import Db2Instance
from db2mon.datasources.db2snapshot import read_lock_waits


class Args(InstanceArgs, ThresholdArgs):
    # database alias: up to 8 characters, letters, digits and @ # $ _
    database: str = Field(pattern=r"^[A-Za-z0-9@#$_]{1,8}$")


class CheckLockWait(ActiveCheck[Args]):
    name = "check_db2_lock_wait"
    description = "Check the number of agents waiting on locks in a DB2 database"
    args_model = Args

    def __init__(self, run: CommandRunner = run_command) -> None:
        self._run = run

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        add_instance_arguments(parser)
        parser.add_argument(
            "-d",
            "--database",
            required=True,
            help="Name of the database to check",
        )
        add_threshold_arguments(parser, warning=1, critical=5)

    def service_name(self, args: Args) -> str:
        return f"DB2_Lock_Wait_{args.instance.name}_{args.database}"

    def execute(self, args: Args) -> CheckReport:
        measurement = read_lock_waits(
            Db2Instance.from_home(args.instance),
            args.database,
            timeout=args.timeout,
            run=self._run,
        )
        return evaluate(measurement, args.levels, extra=args.extra)


def main(argv: Sequence[str] | None = None) -> int:
    return run_plugin(CheckLockWait(), sys.argv[1:] if argv is None else argv)


if __name__ == "__main__":
    sys.exit(main())
