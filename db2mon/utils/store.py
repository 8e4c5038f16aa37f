#!/usr/bin/env python3
# Copyright (C) 2024 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.
"""This module cares about the file storage of the plug-ins. Most important
functionality is the atomic replacement of files: the new content is written
to a temporary file which is then moved to the target path."""

import errno
import fcntl
import logging
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from db2mon.utils.exceptions import MKEnvironmentError, MKTerminate, MKTimeout

logger = logging.getLogger("db2mon.store")


def makedirs(path: Path | str, mode: int = 0o770) -> None:
    Path(path).mkdir(mode=mode, exist_ok=True, parents=True)


def load_text_from_file(path: Path | str, default: str = "") -> str:
    path = Path(path)
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return default
    except (MKTerminate, MKTimeout):
        raise
    except Exception as e:
        raise MKEnvironmentError(f'Cannot read file "{path}": {e}')
    return content or default


def save_text_to_file(path: Path | str, content: str, mode: int = 0o660) -> None:
    if not isinstance(content, str):
        raise TypeError("content argument must be Text, not bytes")
    _save_data_to_file(Path(path), content.encode("utf-8"), mode)


def _save_data_to_file(path: Path, content: bytes, mode: int = 0o660) -> None:
    tmp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            "wb", dir=str(path.parent), prefix=".%s.new" % path.name, delete=False
        ) as tmp:
            tmp_path = tmp.name
            os.chmod(tmp_path, mode)
            tmp.write(content)

        os.rename(tmp_path, str(path))
        logger.debug("Saved %s", path)

    except (MKTerminate, MKTimeout):
        raise
    except Exception as e:
        # In case an exception happens during saving cleanup the tempfile created for writing
        try:
            if tmp_path:
                os.unlink(tmp_path)
        except OSError as e2:
            if e2.errno != errno.ENOENT:  # No such file or directory
                raise

        raise MKEnvironmentError(f'Cannot write file "{path}": {e}')


@contextmanager
def try_locked(path: Path) -> Iterator[bool]:
    """Hold a non-blocking exclusive flock on path, yields whether it was obtained

    The lock file is never removed. The lock is dropped when the context is left
    or the process dies.
    """
    try:
        fd = os.open(str(path), os.O_RDONLY | os.O_CREAT, 0o660)
    except OSError as e:
        raise MKEnvironmentError(f'Cannot open lock file "{path}": {e}')

    try:
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            logger.debug("%s is locked by another process", path)
            yield False
            return
        logger.debug("Got lock on %s", path)
        yield True
    finally:
        os.close(fd)
