"""Runs the external camera script and captures its output.

The script is started with no arguments. Its stdout and stderr are
captured together as one byte string; a non-zero exit or a launch
failure is reported in ``ScriptResult.error`` rather than raised.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from pathlib import Path

from camerabot.domain.models import ScriptResult

logger = logging.getLogger(__name__)


class ScriptRunner:
    """Invokes one configured executable.

    There is no deadline by default: a hanging script blocks the caller
    until it exits. The run is an awaitable, so callers may cancel it
    or set ``timeout`` to bound it.
    """

    def __init__(self, script_path: str | Path, timeout: float | None = None) -> None:
        self._script_path = Path(script_path)
        self._timeout = timeout

    @property
    def script_path(self) -> Path:
        return self._script_path

    async def run(self) -> ScriptResult:
        """Run the script and wait for it to exit."""
        logger.debug("Running script %s", self._script_path)
        try:
            process = await asyncio.create_subprocess_exec(
                str(self._script_path),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            logger.debug("Failed to start script %s: %s", self._script_path, e)
            return ScriptResult(output=b"", error=str(e))

        try:
            output, _ = await asyncio.wait_for(process.communicate(), timeout=self._timeout)
        except asyncio.TimeoutError:
            await _kill(process)
            return ScriptResult(output=b"", error=f"timed out after {self._timeout:g}s")
        except asyncio.CancelledError:
            await _kill(process)
            raise

        returncode = process.returncode
        if returncode is None or returncode == 0:
            logger.debug("Script exited 0 (%d bytes of output)", len(output))
            return ScriptResult(output=output)
        if returncode < 0:
            return ScriptResult(output=output, error=f"signal: {_signal_name(-returncode)}")
        return ScriptResult(output=output, error=f"exit status {returncode}")


def _signal_name(signum: int) -> str:
    """Lower-case signal description, e.g. 'killed' for SIGKILL."""
    try:
        description = signal.strsignal(signum)
    except ValueError:
        description = None
    if not description:
        return str(signum)
    return description[0].lower() + description[1:]


async def _kill(process: asyncio.subprocess.Process) -> None:
    """Kill a still-running child and reap it."""
    if process.returncode is not None:
        return
    try:
        process.kill()
    except ProcessLookupError:
        return
    await process.wait()
