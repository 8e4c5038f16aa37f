#!/usr/bin/env python3
# Copyright (C) 2024 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""Single instance guard for the plug-ins

Only one invocation of a plug-in with the same arguments may run at a time.
The lock artifact is created exclusively (O_CREAT | O_EXCL) and holds the
process id of its owner. An artifact whose owner is gone is reclaimed. The
reclaim itself runs under a flock on "<artifact>.reclaim", the owner is checked
again once that lock is held.
"""

from __future__ import annotations

import hashlib
import logging
import os
import re
import time
from collections.abc import Sequence
from pathlib import Path
from types import TracebackType

from db2mon.utils import store
from db2mon.utils.exceptions import MKAlreadyRunning, MKEnvironmentError
from db2mon.utils.process import (
    current_pid,
    LivenessProbe,
    pid_from_file,
    process_exists,
    ProcessId,
)

logger = logging.getLogger("db2mon.lock")

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

_MAX_KEY_LENGTH = 150

# An artifact without a readable pid may just have been created by a
# concurrent invocation which did not write its pid yet.
_UNREADABLE_GRACE_PERIOD = 10.0


def lock_key(argv: Sequence[str]) -> str:
    """Derive the file name component from the argument vector

    >>> lock_key(["-i", "/home/db2inst1", "-w", "5"])
    '_-i__home_db2inst1_-w_5'
    """
    key = _UNSAFE_CHARS.sub("_", "_" + "_".join(argv))
    if len(key) <= _MAX_KEY_LENGTH:
        return key
    digest = hashlib.sha1(key.encode("utf-8")).hexdigest()
    return f"{key[:_MAX_KEY_LENGTH - len(digest) - 1]}_{digest}"


def lock_path(lock_dir: Path, check_name: str, argv: Sequence[str]) -> Path:
    return lock_dir / f"{check_name}{lock_key(argv)}.lock"


class InstanceLock:
    def __init__(
        self,
        path: Path,
        *,
        is_alive: LivenessProbe = process_exists,
        pid: ProcessId | None = None,
    ) -> None:
        self.path = path
        self._is_alive = is_alive
        self._pid = current_pid() if pid is None else pid
        self._acquired = False

    @property
    def acquired(self) -> bool:
        return self._acquired

    @property
    def reclaim_path(self) -> Path:
        return self.path.with_name(f"{self.path.name}.reclaim")

    def __enter__(self) -> InstanceLock:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.release()

    def acquire(self) -> None:
        logger.debug("Try to acquire lock %s", self.path)
        try:
            store.makedirs(self.path.parent)
        except OSError as e:
            raise MKEnvironmentError(f"Cannot create lock directory {self.path.parent}: {e}")

        if self._try_create():
            return

        if not self._owner_is_gone():
            raise MKAlreadyRunning(f"Check is already running (lock file {self.path})")

        # Only one invocation at a time may replace a stale artifact. Do not wait for it.
        with store.try_locked(self.reclaim_path) as reclaiming:
            if not reclaiming:
                raise MKAlreadyRunning(f"Check is already running (lock file {self.path})")

            # The owner we saw may have been replaced by a reclaimer before us
            if not self._owner_is_gone():
                raise MKAlreadyRunning(f"Check is already running (lock file {self.path})")

            logger.info("Reclaiming stale lock file %s", self.path)
            self.path.unlink(missing_ok=True)

            if not self._try_create():
                raise MKAlreadyRunning(f"Check is already running (lock file {self.path})")

    def release(self) -> None:
        if not self._acquired:
            return
        self._acquired = False
        if pid_from_file(self.path) != self._pid:
            logger.warning("Lock file %s is not owned by us anymore", self.path)
            return
        try:
            self.path.unlink()
        except FileNotFoundError:
            return
        logger.debug("Released lock %s", self.path)

    def _try_create(self) -> bool:
        try:
            fd = os.open(str(self.path), os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o660)
        except FileExistsError:
            return False
        except OSError as e:
            raise MKEnvironmentError(f"Cannot create lock file {self.path}: {e}")

        try:
            os.write(fd, f"{self._pid}\n".encode("ascii"))
        finally:
            os.close(fd)

        self._acquired = True
        logger.debug("Got lock %s", self.path)
        return True

    def _owner_is_gone(self) -> bool:
        owner = pid_from_file(self.path)
        if owner is None:
            try:
                age = time.time() - self.path.stat().st_mtime
            except FileNotFoundError:
                return True
            return age > _UNREADABLE_GRACE_PERIOD

        if owner == self._pid:
            return False

        alive = self._is_alive(owner)
        logger.debug("Lock %s is held by process %d (alive: %s)", self.path, owner, alive)
        return not alive
