#!/usr/bin/env python3
# Copyright (C) 2024 Checkmk GmbH - License: GNU General Public License v2
# This file is part of Checkmk (https://checkmk.com). It is subject to the terms and
# conditions defined in the file COPYING, which is part of this source code package.

from __future__ import annotations

import dataclasses
import re
import shlex
from pathlib import Path

from db2mon.utils.exceptions import MKEnvironmentError

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclasses.dataclass(frozen=True)
class Db2Instance:
    """A DB2 instance identified by the home directory of its owner"""

    home: Path

    @classmethod
    def from_home(cls, home: Path) -> Db2Instance:
        home = home.resolve()
        instance = cls(home)
        if not home.is_dir():
            raise MKEnvironmentError(f"Instance home {home} is not a directory")
        if not instance.name:
            raise MKEnvironmentError(f"Instance home {home} can not be the root directory")
        if not instance.profile.is_file():
            raise MKEnvironmentError(
                f"Instance home {home} does not contain a DB2 instance ({instance.profile} is missing)"
            )
        return instance

    @property
    def name(self) -> str:
        return self.home.name

    @property
    def key(self) -> str:
        """Identifies the instance in file names, homes with the same base name differ

        >>> Db2Instance(Path("/opt/ibm/db2 inst1")).key
        'opt_ibm_db2_inst1'
        """
        return _UNSAFE_CHARS.sub("_", self.home.as_posix().strip("/"))

    @property
    def sqllib(self) -> Path:
        return self.home / "sqllib"

    @property
    def profile(self) -> Path:
        return self.sqllib / "db2profile"

    def command(self, *args: str) -> list[str]:
        """Wrap the command to be run within the environment of the instance

        >>> Db2Instance(Path("/home/db2inst1")).command("db2diag", "-level", "Severe")
        ['/bin/sh', '-c', '. /home/db2inst1/sqllib/db2profile && db2diag -level Severe']
        """
        return ["/bin/sh", "-c", f". {shlex.quote(str(self.profile))} && {shlex.join(args)}"]
