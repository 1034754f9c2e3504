"""Application service coordinating one compile job end to end."""
from __future__ import annotations

import logging
import time
from typing import Any

from fastapi import Request

from compiler_backend.core.diagnostics import extract_error_summary, extract_size_metrics
from compiler_backend.core.errors import (
    ToolchainExecutionError,
    ToolchainTimeoutError,
    WorkspaceError,
)
from compiler_backend.core.validation import parse_compile_request, validate_board
from compiler_backend.core.workspaces import HEX_ARTIFACT_NAME, WorkspaceManager
from compiler_backend.domain import CompileResult, Job, JobState
from compiler_backend.infrastructure import BoardRegistry, Toolchain

logger = logging.getLogger(__name__)

ARTIFACT_MISSING_MESSAGE = "Compilation succeeded but HEX file not found"


class CompileService:
    """Runs the compile job lifecycle.

    Validation happens before any filesystem work.  Once a workspace exists it
    is removed on every exit path, whatever terminal state the job reaches.
    Toolchain failures and timeouts become unsuccessful :class:`CompileResult`
    values; workspace and environment failures propagate to the caller.
    """

    def __init__(
        self,
        registry: BoardRegistry,
        workspaces: WorkspaceManager,
        toolchain: Toolchain,
        *,
        artifact_name: str = HEX_ARTIFACT_NAME,
    ) -> None:
        self._registry = registry
        self._workspaces = workspaces
        self._toolchain = toolchain
        self._artifact_name = artifact_name

    @property
    def registry(self) -> BoardRegistry:
        return self._registry

    async def compile(self, payload: Any) -> CompileResult:
        request = parse_compile_request(payload)
        board = validate_board(request.fqbn, self._registry)

        started = time.monotonic()
        with self._workspaces.workspace() as job:
            logger.info("Job %s: compiling for %s", job.job_id, board.fqbn)
            self._workspaces.write_source(job, request.code)
            result = await self._run_toolchain(job, board.fqbn)
            logger.info(
                "Job %s: %s in %.2fs",
                job.job_id,
                result.state.value,
                time.monotonic() - started,
            )
            return result

    async def _run_toolchain(self, job: Job, fqbn: str) -> CompileResult:
        args = [
            "compile",
            "--fqbn",
            fqbn,
            "--output-dir",
            str(job.output_dir),
            str(job.sketch_dir),
        ]
        try:
            outcome = await self._toolchain.invoke(args)
        except ToolchainTimeoutError as exc:
            return CompileResult(
                success=False,
                state=JobState.TIMED_OUT,
                error_message=str(exc),
                diagnostic_text=exc.combined_output,
            )
        except ToolchainExecutionError as exc:
            output = exc.combined_output or str(exc)
            return CompileResult(
                success=False,
                state=JobState.COMPILE_FAILED,
                error_message=extract_error_summary(output),
                diagnostic_text=output,
            )

        artifact = self._workspaces.locate_artifact(job, self._artifact_name)
        if artifact is None:
            logger.warning("Job %s: toolchain reported success but %s is missing", job.job_id, self._artifact_name)
            return CompileResult(
                success=False,
                state=JobState.ARTIFACT_MISSING,
                error_message=ARTIFACT_MISSING_MESSAGE,
                diagnostic_text=outcome.combined_output,
            )

        try:
            hex_content = artifact.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise WorkspaceError(f"cannot read artifact {artifact}: {exc}") from exc

        return CompileResult(
            success=True,
            state=JobState.SUCCEEDED,
            hex_artifact=hex_content,
            diagnostic_text=outcome.combined_output,
            size_metrics=extract_size_metrics(outcome.combined_output),
        )


def get_compile_service(request: Request) -> CompileService:
    """Return the service installed on the application handling ``request``."""

    return request.app.state.compile_service
