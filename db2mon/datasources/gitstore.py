#!/usr/bin/env python3
# Copyright (C) 2024 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""Snapshots of configuration files kept in a git repository

Each tracked file is stored under its absolute path without the leading
slash, /etc/hosts ends up as etc/hosts in the work tree. Measuring compares
the current files with HEAD and never touches the repository, committing
copies the current files into the work tree and records a new commit.
"""

from __future__ import annotations

import dataclasses
import datetime
import logging
from collections.abc import Callable, Sequence
from pathlib import Path, PurePosixPath

from db2mon.checkengine.checkresults import Metric
from db2mon.checkengine.measurement import Measurement
from db2mon.utils import store
from db2mon.utils.exceptions import MKCheckpointError, MKCommandError, MKEnvironmentError

from .commands import CommandResult, CommandRunner, run_command
from .db2 import Db2Instance

logger = logging.getLogger("db2mon.gitstore")

_GIT_IDENTITY = (
    "-c",
    "user.name=db2mon",
    "-c",
    "user.email=db2mon@localhost",
    "-c",
    "commit.gpgsign=false",
)


def default_files(instance: Db2Instance) -> Sequence[Path]:
    return [
        Path("/etc/hosts"),
        Path("/etc/services"),
        Path("/etc/sysctl.conf"),
        Path("/etc/security/limits.conf"),
        instance.sqllib / "db2nodes.cfg",
        instance.sqllib / "userprofile",
    ]


@dataclasses.dataclass(frozen=True)
class FileChange:
    kind: str
    path: Path

    def __str__(self) -> str:
        return f"{self.kind}: {self.path}"


class GitSnapshotStore:
    def __init__(
        self,
        repository: Path,
        files: Sequence[Path],
        *,
        timeout: float,
        run: CommandRunner = run_command,
        now: Callable[[], datetime.datetime] = datetime.datetime.now,
    ) -> None:
        self.repository = repository
        # keep the order, drop duplicates
        self.files = list(dict.fromkeys(files))
        self._timeout = timeout
        self._run = run
        self._now = now

    @staticmethod
    def relative_path(path: Path) -> str:
        """Location of a tracked file inside the work tree

        >>> GitSnapshotStore.relative_path(Path("/etc/security/limits.conf"))
        'etc/security/limits.conf'
        """
        return str(PurePosixPath(path.as_posix()).relative_to("/"))

    def describe(self) -> str:
        return str(self.repository)

    def exists(self) -> bool:
        if not (self.repository / ".git").is_dir():
            return False
        return self._git("rev-parse", "--verify", "--quiet", "HEAD").returncode == 0

    def create(self) -> None:
        try:
            store.makedirs(self.repository)
        except OSError as e:
            raise MKEnvironmentError(f"Cannot create directory {self.repository}: {e}")
        self._git_checked("init", "--quiet")
        self._copy_files()
        self._git_checked("add", "--all")
        self._git_checked(
            "commit",
            "--quiet",
            "--allow-empty",
            "-m",
            self._message("Initial snapshot"),
            identity=True,
        )
        logger.info("Created snapshot repository %s", self.repository)

    def measure(self) -> Measurement:
        tracked = set(
            self._git_checked("ls-tree", "-r", "-z", "--name-only", "HEAD").stdout.split("\0")
        )
        changes = []
        for path in self.files:
            relative = self.relative_path(path)
            current = self._read(path)
            if relative not in tracked:
                if current is not None:
                    changes.append(FileChange("added", path))
                continue
            if current is None:
                changes.append(FileChange("removed", path))
            elif current != self._git_checked("show", f"HEAD:{relative}").stdout:
                changes.append(FileChange("changed", path))

        if changes:
            summary = f"{len(changes)} configuration files changed"
        else:
            summary = "No configuration changes"
        return Measurement(
            metric_name="Changes",
            value=len(changes),
            summary=summary,
            details=tuple(str(c) for c in changes),
            extra_metrics=(Metric("Files", len(self.files)),),
        )

    def commit(self, measurement: Measurement) -> None:
        try:
            self._copy_files()
            self._git_checked("add", "--all")
            if not self._git_checked("status", "--porcelain").stdout.strip():
                logger.debug("Nothing to commit in %s", self.repository)
                return
            self._git_checked("commit", "--quiet", "-m", self._message("Snapshot"), identity=True)
        except (MKCommandError, MKEnvironmentError) as e:
            raise MKCheckpointError(str(e))
        logger.info("Recorded %d changes in %s", measurement.value, self.repository)

    def _message(self, what: str) -> str:
        return f"{what} {self._now().isoformat(timespec='seconds')}"

    def _copy_files(self) -> None:
        for path in self.files:
            target = self.repository / self.relative_path(path)
            content = self._read(path)
            try:
                if content is None:
                    target.unlink(missing_ok=True)
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text(content, encoding="utf-8", errors="surrogateescape")
            except OSError as e:
                raise MKEnvironmentError(f"Cannot update snapshot of {path}: {e}")

    @staticmethod
    def _read(path: Path) -> str | None:
        try:
            return path.read_text(encoding="utf-8", errors="surrogateescape")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise MKEnvironmentError(f"Cannot read {path}: {e}")

    def _git(self, command: str, *args: str, identity: bool = False) -> CommandResult:
        options = _GIT_IDENTITY if identity else ()
        return self._run(
            ["git", "-C", str(self.repository), *options, command, *args], timeout=self._timeout
        )

    def _git_checked(self, command: str, *args: str, identity: bool = False) -> CommandResult:
        result = self._git(command, *args, identity=identity)
        if result.returncode != 0:
            raise MKCommandError(
                f"git {command} failed in {self.repository}: "
                f"{(result.stderr or result.stdout).strip()}"
            )
        return result
