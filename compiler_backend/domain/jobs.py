"""Domain entities for compile job orchestration."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class JobState(str, Enum):
    """Terminal states a compile job can reach before cleanup."""

    SUCCEEDED = "succeeded"
    COMPILE_FAILED = "compile_failed"
    TIMED_OUT = "timed_out"
    ARTIFACT_MISSING = "artifact_missing"


@dataclass(frozen=True, slots=True)
class Job:
    """One compile attempt and the directory tree it owns."""

    job_id: str
    workspace_root: Path
    sketch_dir: Path
    sketch_path: Path
    output_dir: Path


@dataclass(frozen=True, slots=True)
class ToolchainOutcome:
    combined_output: str
    exit_succeeded: bool = True


@dataclass(frozen=True, slots=True)
class SizeMetrics:
    """Flash and RAM byte counts reported by the toolchain, when present."""

    flash_bytes: int | None = None
    ram_bytes: int | None = None

    def to_payload(self) -> dict[str, int | None]:
        return {"flash": self.flash_bytes, "ram": self.ram_bytes}


@dataclass(frozen=True, slots=True)
class CompileResult:
    """Outcome of a compile job as returned to the HTTP layer."""

    success: bool
    state: JobState
    diagnostic_text: str = ""
    hex_artifact: str | None = None
    size_metrics: SizeMetrics | None = None
    error_message: str | None = None

    def to_payload(self) -> dict[str, object]:
        if self.success:
            size = self.size_metrics or SizeMetrics()
            return {
                "success": True,
                "hex": self.hex_artifact,
                "output": self.diagnostic_text,
                "size": size.to_payload(),
            }
        return {
            "success": False,
            "error": self.error_message,
            "output": self.diagnostic_text,
        }
