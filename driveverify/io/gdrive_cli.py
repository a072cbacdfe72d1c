"""Wrapper around the gdrive command-line tool.

Runs gdrive as a subprocess and reads stdout and stderr together through a
selector, so a chatty stderr can never stall a blocked stdout pipe (or vice
versa). Download progress is parsed from stdout lines of the form
"Downloading <name> -> <path>".
"""

import logging
import os
import re
import selectors
import subprocess
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

DOWNLOADING_PATTERN = re.compile(r"^Downloading (.*) ->")

_READ_SIZE = 65536


@dataclass
class CommandResult:
    """Outcome of one gdrive invocation."""
    args: List[str]
    returncode: Optional[int] = None
    spawn_error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def spawned(self) -> bool:
        return self.spawn_error is None

    def describe(self) -> str:
        if not self.spawned:
            return f"could not start gdrive ({self.spawn_error})"
        return f"gdrive exited with status {self.returncode}"


class GdriveCli:
    """Invokes the gdrive binary with the service's global options."""

    def __init__(self, binary: str, config_dir: Optional[str] = None):
        self.binary = binary
        self.config_dir = config_dir

    def global_options(self) -> List[str]:
        if not self.config_dir:
            return []
        return ["-c", self.config_dir]

    def command_line(self, *args: str) -> List[str]:
        return [self.binary, *self.global_options(), *args]

    def run(
        self,
        *args: str,
        on_line: Optional[Callable[[str], None]] = None,
    ) -> CommandResult:
        """Run gdrive with the given subcommand arguments.

        on_line is called with each stdout line (without the trailing
        newline) in output order. stderr lines are only logged.
        """
        cmd = self.command_line(*args)
        result = CommandResult(args=cmd)
        logger.info(" ".join(cmd))

        try:
            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            result.spawn_error = f"{type(e).__name__}: {e}"
            logger.error(f"Failed to start gdrive: {result.spawn_error}")
            return result

        with proc:
            self._pump(proc, on_line)
            result.returncode = proc.wait()

        if result.success:
            logger.info("gdrive finished successfully")
        else:
            logger.info(f"gdrive failed: {result.describe()}")
        return result

    def _pump(self, proc: subprocess.Popen, on_line: Optional[Callable[[str], None]]) -> None:
        """Read both pipes until each reaches end-of-stream."""
        buffers = {proc.stdout.fileno(): b"", proc.stderr.fileno(): b""}
        stdout_fd = proc.stdout.fileno()

        def emit(fd: int, raw: bytes) -> None:
            line = raw.decode("utf-8", errors="replace").rstrip("\r")
            if fd == stdout_fd:
                logger.info(line)
                if on_line is not None:
                    on_line(line)
            else:
                logger.warning(line)

        with selectors.DefaultSelector() as sel:
            sel.register(proc.stdout, selectors.EVENT_READ)
            sel.register(proc.stderr, selectors.EVENT_READ)
            while sel.get_map():
                for key, _ in sel.select():
                    fd = key.fd
                    chunk = os.read(fd, _READ_SIZE)
                    if not chunk:
                        sel.unregister(key.fileobj)
                        if buffers[fd]:
                            emit(fd, buffers[fd])
                            buffers[fd] = b""
                        continue
                    data = buffers[fd] + chunk
                    *lines, buffers[fd] = data.split(b"\n")
                    for raw in lines:
                        emit(fd, raw)

    def download(
        self,
        folder_id: str,
        target_dir: str,
        on_progress: Optional[Callable[[str], None]] = None,
    ) -> CommandResult:
        """Recursively download a folder into target_dir, skipping existing files."""

        def on_line(line: str) -> None:
            match = DOWNLOADING_PATTERN.match(line)
            if match and on_progress is not None:
                on_progress(match.group(1))

        return self.run(
            "download", "--recursive", "--skip", "--path", target_dir, folder_id,
            on_line=on_line,
        )

    def is_ready(self) -> bool:
        """True if gdrive answers a no-op listing command."""
        return self.run("list").success
