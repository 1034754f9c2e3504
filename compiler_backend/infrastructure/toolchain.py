"""Subprocess wrapper around the ``arduino-cli`` binary.

The binary is always started with an explicit argument vector; sketch text is
never interpolated into a shell command.  Each invocation is bounded by a
wall-clock timeout and by a ceiling on captured output, and an optional
semaphore caps how many toolchain processes run at once.
"""
from __future__ import annotations

import asyncio
import logging
import os
import signal
import time
from asyncio.subprocess import DEVNULL, PIPE
from pathlib import Path
from typing import Protocol, Sequence

from compiler_backend.core.errors import (
    ToolchainError,
    ToolchainExecutionError,
    ToolchainNotFoundError,
    ToolchainOutputLimitError,
    ToolchainTimeoutError,
)
from compiler_backend.core.settings import (
    DEFAULT_MAX_CONCURRENT_COMPILES,
    DEFAULT_MAX_OUTPUT_BYTES,
    DEFAULT_TIMEOUT_SECONDS,
    Settings,
)
from compiler_backend.domain import ToolchainOutcome

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


class Toolchain(Protocol):
    """Contract for toolchain integrations."""

    async def invoke(self, args: Sequence[str], timeout: float | None = None) -> ToolchainOutcome:
        """Run the toolchain with ``args`` and return its combined output."""


class _OutputLimitExceeded(Exception):
    pass


class _OutputCapture:
    """Accumulates stdout and stderr against one shared byte budget."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        self.stdout = bytearray()
        self.stderr = bytearray()

    @property
    def size(self) -> int:
        return len(self.stdout) + len(self.stderr)

    async def drain(self, stream: asyncio.StreamReader | None, sink: bytearray) -> None:
        if stream is None:
            return
        while True:
            chunk = await stream.read(_CHUNK_SIZE)
            if not chunk:
                return
            sink.extend(chunk)
            if self.size > self.limit:
                raise _OutputLimitExceeded

    def combined(self) -> str:
        stdout = self.stdout.decode("utf-8", errors="replace")
        stderr = self.stderr.decode("utf-8", errors="replace")
        return f"{stdout}\n{stderr}".strip()


class ArduinoCliToolchain:
    """Runs ``arduino-cli`` from a fixed install path."""

    def __init__(
        self,
        cli_path: Path,
        *,
        config_file: Path | None = None,
        working_dir: Path | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES,
        max_concurrent: int = DEFAULT_MAX_CONCURRENT_COMPILES,
    ) -> None:
        self._cli_path = cli_path
        self._config_file = config_file
        self._working_dir = working_dir
        self._timeout = timeout
        self._max_output_bytes = max_output_bytes
        self._semaphore = asyncio.Semaphore(max_concurrent) if max_concurrent > 0 else None

    @classmethod
    def from_settings(cls, settings: Settings) -> "ArduinoCliToolchain":
        return cls(
            settings.cli_path,
            config_file=settings.config_file,
            working_dir=settings.working_dir,
            timeout=settings.timeout_seconds,
            max_output_bytes=settings.max_output_bytes,
            max_concurrent=settings.max_concurrent_compiles,
        )

    @property
    def cli_path(self) -> Path:
        return self._cli_path

    @property
    def config_file(self) -> Path | None:
        return self._config_file

    def build_command(self, args: Sequence[str]) -> list[str]:
        """Return the full argv, with ``--config-file`` first when the file exists."""

        command = [str(self._cli_path)]
        if self._config_file is not None and self._config_file.is_file():
            command.extend(["--config-file", str(self._config_file)])
        command.extend(str(arg) for arg in args)
        return command

    async def invoke(self, args: Sequence[str], timeout: float | None = None) -> ToolchainOutcome:
        if not self._cli_path.is_file():
            raise ToolchainNotFoundError(f"arduino-cli not found at {self._cli_path}")

        command = self.build_command(args)
        budget = self._timeout if timeout is None else timeout
        if self._semaphore is None:
            return await self._run(command, budget)
        async with self._semaphore:
            return await self._run(command, budget)

    async def _run(self, command: list[str], timeout: float) -> ToolchainOutcome:
        logger.debug("Running %s", command)
        started = time.monotonic()
        cwd = str(self._working_dir) if self._working_dir and self._working_dir.is_dir() else None
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=DEVNULL,
                stdout=PIPE,
                stderr=PIPE,
                cwd=cwd,
                # own process group so compiler children die with the CLI
                start_new_session=os.name == "posix",
            )
        except FileNotFoundError as exc:
            raise ToolchainNotFoundError(f"arduino-cli not found at {self._cli_path}") from exc
        except OSError as exc:
            raise ToolchainError(f"cannot start {self._cli_path}: {exc}") from exc

        capture = _OutputCapture(self._max_output_bytes)
        try:
            await asyncio.wait_for(
                asyncio.gather(
                    capture.drain(process.stdout, capture.stdout),
                    capture.drain(process.stderr, capture.stderr),
                    process.wait(),
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            await self._kill(process)
            logger.warning("arduino-cli killed after %.1fs timeout", timeout)
            raise ToolchainTimeoutError(timeout, combined_output=capture.combined()) from None
        except _OutputLimitExceeded:
            await self._kill(process)
            logger.warning("arduino-cli killed after exceeding %d bytes of output", self._max_output_bytes)
            raise ToolchainOutputLimitError(
                f"toolchain output exceeded {self._max_output_bytes} bytes",
                combined_output=capture.combined(),
            ) from None
        except BaseException:
            # cancelled while running: the workspace is about to be removed
            await self._kill(process)
            raise

        elapsed = time.monotonic() - started
        combined = capture.combined()
        returncode = process.returncode
        if returncode != 0:
            logger.info("arduino-cli exited with status %s after %.2fs", returncode, elapsed)
            raise ToolchainExecutionError(
                f"arduino-cli exited with status {returncode}",
                combined_output=combined,
                returncode=returncode,
            )

        logger.debug("arduino-cli finished in %.2fs", elapsed)
        return ToolchainOutcome(combined_output=combined, exit_succeeded=True)

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        try:
            if os.name == "posix":
                os.killpg(process.pid, signal.SIGKILL)
            else:
                process.kill()
        except ProcessLookupError:
            pass
        await process.wait()
