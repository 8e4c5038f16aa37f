#!/usr/bin/env python3
# Copyright (C) 2024 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""check_os_config_diff - Monitor changes of the OS configuration of a DB2 host"""

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

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
from db2mon.datasources.gitstore import default_files, GitSnapshotStore


class Args(InstanceArgs, ThresholdArgs, CheckpointArgs):
    file: list[Path] = []


class CheckOsConfigDiff(ActiveCheck[Args]):
    name = "check_os_config_diff"
    description = "Check configuration files of the operating system for changes"
    args_model = Args

    def __init__(self, run: CommandRunner = run_command) -> None:
        self._run = run

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        add_instance_arguments(parser)
        add_threshold_arguments(parser, warning=1, critical=10)
        add_checkpoint_arguments(parser)
        parser.add_argument(
            "-f",
            "--file",
            action="append",
            default=[],
            metavar="PATH",
            help="Additional file to track, can be given multiple times",
        )

    def service_name(self, args: Args) -> str:
        return f"OS_Config_Diff_{args.instance.name}"

    def execute(self, args: Args) -> CheckReport:
        instance = Db2Instance.from_home(args.instance)
        snapshots = GitSnapshotStore(
            args.directory / f"db2mon_os_config.{instance.key}",
            [*default_files(instance), *(f.absolute() for f in args.file)],
            timeout=args.timeout,
            run=self._run,
        )
        return evaluate_delta(snapshots, args.levels, noreplace=args.noreplace, extra=args.extra)


def main(argv: Sequence[str] | None = None) -> int:
    return run_plugin(CheckOsConfigDiff(), sys.argv[1:] if argv is None else argv)


if __name__ == "__main__":
    sys.exit(main())
