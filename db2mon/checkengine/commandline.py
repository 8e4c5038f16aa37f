#!/usr/bin/env python3
# Copyright (C) 2024 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""Command line handling shared by all plug-ins

The options are parsed with argparse and then validated into a pydantic
model. Every problem ends up as MKUsageError, help and version output end the
program with the UNKNOWN exit code as the monitoring plug-in API demands.
"""

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import NoReturn, TypeVar

from pydantic import BaseModel, Field, field_validator, model_validator, ValidationError

from db2mon import __version__
from db2mon.utils import paths
from db2mon.utils.exceptions import MKTerminate, MKUsageError

from .checkresults import ServiceState
from .levels import Levels
from .render import OutputFormat

_ModelT = TypeVar("_ModelT", bound=BaseModel)


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        raise MKUsageError(message, usage=self.format_usage().strip())

    def exit(self, status: int = 0, message: str | None = None) -> NoReturn:
        if message:
            sys.stderr.write(message)
        raise MKTerminate(int(ServiceState.UNKNOWN))


class CommonArgs(BaseModel):
    verbose: int = 0
    trace: bool = False
    mk: bool = False
    debug: bool = False
    timeout: float = Field(default=60.0, gt=0)

    @property
    def output_format(self) -> OutputFormat:
        return OutputFormat.CHECK_MK if self.mk else OutputFormat.STANDARD


class InstanceArgs(CommonArgs):
    instance: Path
    extra: bool = False

    @field_validator("instance")
    @classmethod
    def _absolute_instance(cls, value: Path) -> Path:
        # "-i ." and "-i /home/db2inst1" name the same service
        return value.resolve()


class ThresholdArgs(BaseModel):
    warning: int
    critical: int

    @model_validator(mode="after")
    def _validate_levels(self) -> "ThresholdArgs":
        Levels.validated(self.warning, self.critical)
        return self

    @property
    def levels(self) -> Levels:
        return Levels(self.warning, self.critical)


class CheckpointArgs(BaseModel):
    noreplace: bool = False
    directory: Path

    @field_validator("directory", mode="before")
    @classmethod
    def _default_directory(cls, value: object) -> object:
        return paths.state_dir() if value is None else value


def create_parser(prog: str, description: str) -> argparse.ArgumentParser:
    parser = _ArgumentParser(prog=prog, description=description)
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Verbose output on stderr, repeat for more details",
    )
    parser.add_argument(
        "-T",
        "--trace",
        action="store_true",
        help=f"Write a trace log to {paths.trace_dir()}/{prog}.log",
    )
    parser.add_argument(
        "-K",
        "--mk",
        action="store_true",
        help="Write the result in the Check_MK local check format",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=60.0,
        help="Timeout in seconds for the commands querying the system (default: %(default)s)",
    )
    parser.add_argument("--debug", action="store_true", help="Raise python exceptions.")
    return parser


def add_instance_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-i",
        "--instance",
        required=True,
        metavar="HOME",
        help="Home directory of the DB2 instance",
    )
    parser.add_argument(
        "-x",
        "--extra",
        action="store_true",
        help="Include extra performance data",
    )


def add_threshold_arguments(
    parser: argparse.ArgumentParser, *, warning: int, critical: int
) -> None:
    parser.add_argument(
        "-w",
        "--warning",
        type=int,
        default=warning,
        help="Warning threshold (default: %(default)s)",
    )
    parser.add_argument(
        "-c",
        "--critical",
        type=int,
        default=critical,
        help="Critical threshold (default: %(default)s)",
    )


def add_checkpoint_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-R",
        "--noreplace",
        action="store_true",
        help="Do not update the checkpoint after the check",
    )
    parser.add_argument(
        "-D",
        "--directory",
        default=None,
        metavar="DIRECTORY",
        help=f"Where the checkpoints are kept (default: {paths.state_dir()})",
    )


def parse_arguments(
    parser: argparse.ArgumentParser, model: type[_ModelT], argv: Sequence[str]
) -> _ModelT:
    namespace = parser.parse_args(argv)
    try:
        return model.model_validate(vars(namespace))
    except ValidationError as e:
        raise MKUsageError(_format_errors(e), usage=parser.format_usage().strip())


def _format_errors(error: ValidationError) -> str:
    messages = []
    for err in error.errors():
        location = ".".join(str(l) for l in err["loc"])
        message = str(err["msg"]).removeprefix("Value error, ")
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)
