from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Sequence, Union

from ideapad_controls.core.types import OptionState, WriteOutcome

log = logging.getLogger(__name__)


def escape_single_quotes(path: str) -> str:
    """Make `path` safe to place between single quotes in a POSIX shell."""
    return path.replace("'", "'\\''")


def build_shell_command(path: str, value: bool) -> str:
    return f"echo {OptionState.encode(value)} > '{escape_single_quotes(path)}'"


class PrivilegedWriter:
    """
    Writes one encoded value to one driver file.

    Direct writes use the caller's own permissions. Escalated writes run
    `<helper> <shell> -c "echo 1 > '<path>'"` as a child process and wait
    for it on the event loop. Every failure is logged and reported as
    WRITE_FAILED; nothing escapes this class.
    """

    def __init__(self, helper: Sequence[str] = ("pkexec",), shell: str = "bash") -> None:
        self.helper = tuple(helper)
        self.shell = shell

    async def write(self, path: Union[str, Path], value: bool, escalate: bool) -> WriteOutcome:
        path = str(path)
        if escalate:
            ok = await self._write_escalated(path, value)
        else:
            ok = await self._write_direct(path, value)
        return WriteOutcome.SUCCESS if ok else WriteOutcome.WRITE_FAILED

    async def _write_direct(self, path: str, value: bool) -> bool:
        encoded = OptionState.encode(value)
        log.info("Writing %s to %s", encoded, path)
        try:
            await asyncio.to_thread(Path(path).write_text, encoded, encoding="utf-8")
        except OSError as e:
            log.error("Could not write to file %s: %s", path, e)
            return False
        return True

    async def _write_escalated(self, path: str, value: bool) -> bool:
        argv = [*self.helper, self.shell, "-c", build_shell_command(path, value)]
        log.debug("Running %s", argv)
        try:
            proc = await asyncio.create_subprocess_exec(*argv)
            code = await proc.wait()
        except OSError as e:
            log.error("Could not write to file %s: %s", path, e)
            return False

        if code != 0:
            log.error("Could not write to file %s: %s exited with status %d", path, self.helper[0] if self.helper else self.shell, code)
            return False
        return True
