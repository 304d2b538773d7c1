# context.py
from __future__ import annotations

import getpass
import os
import platform
import socket
import sys
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

from . import shellwords
from .config import ENV_PREFIX, PROG, VERSION
from .ui.console import Console


@dataclass
class HostContext:
    """Information about this invocation, shown at -v and exported to recipes."""
    base: str
    cmd: str
    directory: str
    hostname: str
    user: str
    pid: int
    uid: int
    gid: int
    numcpus: int
    os: str
    osver: str
    recipe_dir: str
    script_dir: str
    time: str
    timestamp: str
    version: str
    tee: Optional[str] = None

    @classmethod
    def collect(cls, recipe_dir: str, script_dir: str, tee: Optional[str] = None) -> HostContext:
        now = datetime.now()
        uname = platform.uname()
        return cls(
            base=PROG,
            cmd=shellwords.join(sys.argv),
            directory=os.getcwd(),
            hostname=socket.gethostname(),
            user=_username(),
            pid=os.getpid(),
            uid=os.getuid() if hasattr(os, "getuid") else -1,
            gid=os.getgid() if hasattr(os, "getgid") else -1,
            numcpus=os.cpu_count() or 1,
            os=sys.platform,
            osver=f"{uname.system} {uname.release} {uname.version} {uname.machine}",
            recipe_dir=recipe_dir,
            script_dir=script_dir,
            time=now.strftime("%Y-%m-%d %H:%M:%S"),
            timestamp=now.strftime("%Y%m%d-%H%M%S"),
            version=VERSION,
            tee=tee,
        )

    def builtin_env(self) -> Dict[str, str]:
        """Built-in environment variables, e.g. COOKBOOK_USERNAME."""
        values = {
            "base": self.base,
            "pid": str(self.pid),
            "pwd": self.directory,
            "recipes": self.recipe_dir,
            "scripts": self.script_dir,
            "timestamp": self.timestamp,
            "username": self.user,
            "version": self.version,
        }
        return {f"{ENV_PREFIX}_{k}".upper(): v for k, v in values.items()}

    def print_context(self, console: Console) -> None:
        console.print_info("context")
        console.print_info(f"   base     : {self.base}")
        console.print_info(f"   cmd      : {self.cmd}")
        console.print_info(f"   directory: {self.directory}")
        console.print_info(f"   gid      : {self.gid}")
        console.print_info(f"   host     : {self.hostname}")
        console.print_info(f"   numcpus  : {self.numcpus}")
        console.print_info(f"   os       : {self.os}")
        console.print_info(f"   osver    : {self.osver}")
        console.print_info(f"   pid      : {self.pid}")
        console.print_info(f"   recipes  : {self.recipe_dir}")
        console.print_info(f"   scripts  : {self.script_dir}")
        if self.tee:
            console.print_info(f"   tee      : {self.tee}")
        console.print_info(f"   time     : {self.time}")
        console.print_info(f"   timestamp: {self.timestamp}")
        console.print_info(f"   uid      : {self.uid}")
        console.print_info(f"   user     : {self.user}")
        console.print_info(f"   version  : {self.version}")


def _username() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        # no passwd entry and no LOGNAME/USER (e.g. bare containers)
        return str(os.getuid()) if hasattr(os, "getuid") else "unknown"
