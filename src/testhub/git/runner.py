"""Bounded external process execution."""

import asyncio
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from testhub.lib.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Exit status and decoded output of a finished (or killed) process."""

    returncode: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    @property
    def output(self) -> str:
        return "\n".join(part for part in (self.stdout.strip(), self.stderr.strip()) if part)


async def run_command(
    args: Sequence[str],
    cwd: Path | str | None = None,
    env: Mapping[str, str] | None = None,
    timeout: float = 300,
) -> CommandResult:
    """
    Run a process and wait for it, killing it when the timeout expires.

    Args:
        args: Program and arguments
        cwd: Working directory
        env: Full environment for the process (inherits ours when None)
        timeout: Seconds before the process is force-killed

    Returns:
        CommandResult; ``timed_out`` is set when the process had to be killed

    Raises:
        OSError: If the program cannot be started
    """
    process = await asyncio.create_subprocess_exec(
        *args,
        cwd=str(cwd) if cwd is not None else None,
        env=dict(env) if env is not None else None,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except (TimeoutError, asyncio.TimeoutError):
        try:
            process.kill()
        except ProcessLookupError:
            pass
        await process.wait()
        logger.warning("process_killed_on_timeout", program=args[0], timeout_seconds=timeout)
        return CommandResult(returncode=-1, timed_out=True)

    return CommandResult(
        returncode=process.returncode if process.returncode is not None else -1,
        stdout=stdout.decode("utf-8", errors="replace") if stdout else "",
        stderr=stderr.decode("utf-8", errors="replace") if stderr else "",
    )
