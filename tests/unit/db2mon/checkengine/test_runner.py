#!/usr/bin/env python3
# Copyright (C) 2024 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

# pylint: disable=redefined-outer-name

import argparse
import io
import os
from pathlib import Path

import pytest

from db2mon.checkengine import ActiveCheck, CheckReport, Metric, run_check, run_plugin, ServiceState
from db2mon.checkengine.commandline import add_threshold_arguments, CommonArgs, ThresholdArgs
from db2mon.checkengine.instance_lock import lock_path
from db2mon.utils.exceptions import MKCommandError
from db2mon.utils.process import ProcessId


class Args(CommonArgs, ThresholdArgs):
    value: int


class ValueCheck(ActiveCheck[Args]):
    """Reports the value given on the command line"""

    name = "check_value"
    description = "Report a value"
    args_model = Args

    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.executed = 0

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument("--value", type=int, required=True)
        add_threshold_arguments(parser, warning=1, critical=5)

    def service_name(self, args: Args) -> str:
        return "Value"

    def execute(self, args: Args) -> CheckReport:
        self.executed += 1
        if self.error is not None:
            raise self.error
        state = ServiceState.OK
        if args.value >= args.critical:
            state = ServiceState.CRITICAL
        elif args.value >= args.warning:
            state = ServiceState.WARNING
        return CheckReport(
            state=state,
            summary=str(state),
            metrics=(Metric("Value", args.value),),
        )


def _run(check: ActiveCheck, argv: list[str], lock_dir: Path) -> tuple[int, str]:
    stdout = io.StringIO()
    exit_code = run_check(check, argv, lock_dir=lock_dir, stdout=stdout)
    return exit_code, stdout.getvalue()


@pytest.mark.parametrize(
    "value, exit_code, word",
    [
        ("0", 0, "OK"),
        ("1", 1, "WARNING"),
        ("5", 2, "CRITICAL"),
    ],
)
def test_exit_code_matches_state(tmp_path: Path, value: str, exit_code: int, word: str) -> None:
    assert _run(ValueCheck(), ["--value", value], tmp_path) == (
        exit_code,
        f"{word}|'Value'={value}\n\n",
    )


def test_check_mk_output(tmp_path: Path) -> None:
    assert _run(ValueCheck(), ["--value", "0", "-K"], tmp_path) == (0, "0 Value 'Value'=0 OK\n")


def test_usage_error_is_unknown(tmp_path: Path) -> None:
    check = ValueCheck()
    exit_code, output = _run(check, ["--value", "1", "-w", "5", "-c", "2"], tmp_path)
    assert exit_code == 3
    assert output.startswith("Invalid arguments: Warning threshold (5) must be lower")
    assert "usage: check_value" in output
    assert not check.executed


def test_usage_error_in_check_mk_format(tmp_path: Path) -> None:
    exit_code, output = _run(ValueCheck(), ["-K"], tmp_path)
    assert exit_code == 3
    assert output.startswith("3 check_value - Invalid arguments:")


@pytest.mark.parametrize("option", ["--help", "--version"])
def test_help_and_version(
    tmp_path: Path, option: str, capsys: pytest.CaptureFixture[str]
) -> None:
    assert _run(ValueCheck(), [option], tmp_path) == (3, "")
    assert "check_value" in capsys.readouterr().out


def test_concurrent_invocation_is_rejected(tmp_path: Path) -> None:
    argv = ["--value", "0"]
    lock_file = lock_path(tmp_path, "check_value", argv)
    lock_file.write_text("1\n")

    stdout = io.StringIO()
    check = ValueCheck()
    exit_code = run_check(
        check, argv, lock_dir=tmp_path, is_alive=lambda pid: pid == ProcessId(1), stdout=stdout
    )
    assert exit_code == 3
    assert stdout.getvalue().startswith("Check is already running")
    assert not check.executed
    assert lock_file.read_text() == "1\n"


def test_other_arguments_are_not_locked(tmp_path: Path) -> None:
    lock_path(tmp_path, "check_value", ["--value", "0"]).write_text("1\n")
    assert _run(ValueCheck(), ["--value", "1"], tmp_path)[0] == 1


def test_lock_is_released(tmp_path: Path) -> None:
    check = ValueCheck()
    _run(check, ["--value", "0"], tmp_path)
    _run(check, ["--value", "0"], tmp_path)
    assert check.executed == 2
    assert not list(tmp_path.iterdir())


def test_lock_is_released_after_error(tmp_path: Path) -> None:
    check = ValueCheck(error=MKCommandError("db2 failed"))
    assert _run(check, ["--value", "0"], tmp_path) == (3, "db2 failed\n\n")
    assert not list(tmp_path.iterdir())


def test_internal_error(tmp_path: Path) -> None:
    exit_code, output = _run(ValueCheck(error=ZeroDivisionError("boom")), ["--value", "0"], tmp_path)
    assert exit_code == 3
    assert output.startswith("Internal error: ZeroDivisionError: boom")


@pytest.mark.parametrize("option", ["--debug", "--deb"])
def test_debug_raises(tmp_path: Path, option: str) -> None:
    with pytest.raises(ZeroDivisionError):
        _run(ValueCheck(error=ZeroDivisionError("boom")), ["--value", "0", option], tmp_path)
    assert not list(tmp_path.iterdir())


def test_debug_without_debug_option(tmp_path: Path) -> None:
    check = ValueCheck(error=ZeroDivisionError("boom"))
    assert _run(check, ["--value", "0"], tmp_path)[0] == 3
    # the debug mode of one invocation does not leak into the next one
    with pytest.raises(ZeroDivisionError):
        _run(check, ["--value", "0", "--debug"], tmp_path)
    assert _run(check, ["--value", "0"], tmp_path)[0] == 3


def test_run_plugin_debug_exit_code(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("DB2MON_LOCK_DIR", str(tmp_path))
    exit_code = run_plugin(ValueCheck(error=ZeroDivisionError("boom")), ["--value", "0", "--debug"])
    assert exit_code == 3
    captured = capsys.readouterr()
    assert "Traceback" in captured.err
    assert "ZeroDivisionError: boom" in captured.err
    assert not list(tmp_path.iterdir())


def test_run_plugin(capsys: pytest.CaptureFixture[str]) -> None:
    assert run_plugin(ValueCheck(), ["--value", "5"]) == 2
    assert capsys.readouterr().out == "CRITICAL|'Value'=5\n\n"


def test_verbose_logs_to_stderr(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code, output = _run(ValueCheck(), ["--value", "0", "-v"], tmp_path)
    assert exit_code == 0
    assert output == "OK|'Value'=0\n\n"
    assert "INFO: Starting check_value" in capsys.readouterr().err


def test_trace_file(tmp_path: Path) -> None:
    trace_dir = Path(os.environ["DB2MON_TRACE_DIR"])
    trace_dir.mkdir(parents=True)
    _run(ValueCheck(), ["--value", "0", "-T"], tmp_path)
    trace = (trace_dir / "check_value.log").read_text()
    assert "Starting check_value --value 0 -T" in trace
    assert "Finished check_value with state OK" in trace
