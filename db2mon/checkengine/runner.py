#!/usr/bin/env python3
# Copyright (C) 2024 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""Execution of one plug-in invocation

    PARSE_ARGS -> VALIDATE -> ACQUIRE_LOCK -> CHECK -> RENDER -> RELEASE_LOCK -> EXIT

Every stage either hands over to the next one or ends up in a terminal report
(see CheckResultErrorHandler). The exit code always equals the state of the
rendered report.
"""

from __future__ import annotations

import abc
import argparse
import logging
import sys
import traceback
from collections.abc import Sequence
from pathlib import Path
from typing import Generic, TextIO, TypeVar

from db2mon.utils import log, paths
from db2mon.utils.exceptions import MKTerminate
from db2mon.utils.process import LivenessProbe, process_exists

from .checkresults import CheckReport, ServiceState
from .commandline import CommonArgs, create_parser, parse_arguments
from .error_handling import CheckResultErrorHandler
from .instance_lock import InstanceLock, lock_path
from .render import OutputFormat, render

logger = logging.getLogger("db2mon")

_ArgsT = TypeVar("_ArgsT", bound=CommonArgs)


class ActiveCheck(abc.ABC, Generic[_ArgsT]):
    name: str
    description: str
    args_model: type[_ArgsT]

    def create_parser(self) -> argparse.ArgumentParser:
        parser = create_parser(self.name, self.description)
        self.add_arguments(parser)
        return parser

    @abc.abstractmethod
    def add_arguments(self, parser: argparse.ArgumentParser) -> None: ...

    @abc.abstractmethod
    def service_name(self, args: _ArgsT) -> str: ...

    @abc.abstractmethod
    def execute(self, args: _ArgsT) -> CheckReport: ...


def run_check(
    check: ActiveCheck,
    argv: Sequence[str],
    *,
    lock_dir: Path | None = None,
    is_alive: LivenessProbe = process_exists,
    stdout: TextIO | None = None,
) -> int:
    stdout = sys.stdout if stdout is None else stdout
    # Needed before the arguments are parsed successfully, usage errors are
    # rendered in the requested format as well.
    output_format = OutputFormat.CHECK_MK if {"-K", "--mk"} & set(argv) else OutputFormat.STANDARD
    debug = "--debug" in argv
    check_name = check.name

    report: CheckReport | None = None
    try:
        with CheckResultErrorHandler(debug=debug) as handler:
            args = parse_arguments(check.create_parser(), check.args_model, argv)
            handler.debug = args.debug
            output_format = args.output_format
            check_name = check.service_name(args)
            _setup_logging(check.name, args)
            logger.info("Starting %s %s", check.name, " ".join(argv))

            with InstanceLock(
                lock_path(lock_dir or paths.lock_dir(), check.name, argv), is_alive=is_alive
            ):
                report = check.execute(args)
    except MKTerminate as e:
        return e.exit_code

    if handler.result is not None:
        report = handler.result
    if report is None:
        report = CheckReport.unknown("")

    logger.info("Finished %s with state %s: %s", check.name, report.state, report.safe_summary)
    stdout.write(render(report, output_format, check_name) + "\n")
    return int(report.state)


def _setup_logging(check_name: str, args: CommonArgs) -> None:
    log.clear_console_logging()
    log.setup_console_logging(args.verbose)
    if args.trace:
        log.open_log(paths.trace_file(check_name))


def run_plugin(check: ActiveCheck, argv: Sequence[str]) -> int:
    """Entry point of the console scripts

    With --debug unexpected exceptions leave run_check. They are printed with
    their traceback and still end with the UNKNOWN exit code.
    """
    try:
        return run_check(check, argv)
    except Exception:
        traceback.print_exc(file=sys.stderr)
        return int(ServiceState.UNKNOWN)
