"""Run a shell command with text piped to its stdin under a hard timeout."""

import asyncio
import logging
import time
from typing import Optional

import psutil
from pydantic import BaseModel

from flowkit.utils import log_with_context, truncate

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
# Upper bound for any external command, whatever the configuration says
MAX_TIMEOUT = DEFAULT_TIMEOUT


class CommandResult(BaseModel):
    """Result of a command execution"""

    success: bool
    return_code: Optional[int] = None
    timed_out: bool = False
    error: str = ""
    duration: float = 0.0


def _terminate_process_tree(pid: int) -> None:
    """Kill a process and every descendant it spawned

    Blocks while waiting for the children; run it off the event loop.
    """
    try:
        parent = psutil.Process(pid)
    except psutil.NoSuchProcess:
        return

    children = parent.children(recursive=True)
    for proc in children + [parent]:
        try:
            proc.kill()
        except psutil.NoSuchProcess:
            pass
    psutil.wait_procs(children, timeout=5)


def effective_timeout(timeout: Optional[float]) -> float:
    """Clamp a requested timeout into (0, MAX_TIMEOUT]; anything else gets the default"""
    if timeout is None or not 0 < timeout <= MAX_TIMEOUT:
        if timeout is not None:
            logger.warning(
                f"Command timeout {timeout} is outside (0, {MAX_TIMEOUT}], using {DEFAULT_TIMEOUT}"
            )
        return DEFAULT_TIMEOUT
    return float(timeout)


async def run_command_with_input(
    command: str, stdin_text: str, timeout: Optional[float] = DEFAULT_TIMEOUT
) -> CommandResult:
    """Execute a shell command, feeding stdin_text to it as UTF-8

    Only the exit status matters: output is drained and discarded. The child is
    always reaped before returning, including on timeout and cancellation.

    Args:
        command: Shell command line
        stdin_text: Text written to the command's standard input
        timeout: Seconds to wait before the process tree is killed, clamped by
            effective_timeout

    Returns:
        CommandResult describing how the command finished
    """
    start_time = time.monotonic()
    timeout = effective_timeout(timeout)
    context = {"command": truncate(command), "timeout": timeout}

    try:
        process = await asyncio.create_subprocess_shell(
            command,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except (OSError, ValueError) as e:
        log_with_context(
            logger, logging.WARNING, "Failed to start command", {**context, "error": str(e)}
        )
        return CommandResult(
            success=False,
            error=f"Error executing command: {e}",
            duration=time.monotonic() - start_time,
        )

    try:
        _, stderr = await asyncio.wait_for(
            process.communicate(stdin_text.encode("utf-8")), timeout
        )
    except asyncio.TimeoutError:
        log_with_context(
            logger,
            logging.WARNING,
            f"Command timed out after {timeout} seconds",
            {**context, "pid": process.pid},
        )
        return CommandResult(
            success=False,
            timed_out=True,
            error=f"Command timed out after {timeout} seconds",
            duration=time.monotonic() - start_time,
        )
    finally:
        if process.returncode is None:
            await asyncio.to_thread(_terminate_process_tree, process.pid)
            await process.wait()

    return_code = process.returncode
    stderr_text = stderr.decode("utf-8", errors="replace").strip() if stderr else ""
    log_with_context(
        logger,
        logging.INFO,
        "Command completed",
        {**context, "return_code": return_code},
    )

    if return_code != 0:
        message = f"Command failed with exit code {return_code}"
        if stderr_text:
            message = f"{message}: {truncate(stderr_text, 500)}"
        return CommandResult(
            success=False,
            return_code=return_code,
            error=message,
            duration=time.monotonic() - start_time,
        )

    return CommandResult(
        success=True, return_code=0, duration=time.monotonic() - start_time
    )
