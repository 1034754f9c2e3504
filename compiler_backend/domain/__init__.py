"""Domain layer definitions."""

from .boards import BoardDescriptor
from .jobs import CompileResult, Job, JobState, SizeMetrics, ToolchainOutcome

__all__ = [
    "BoardDescriptor",
    "CompileResult",
    "Job",
    "JobState",
    "SizeMetrics",
    "ToolchainOutcome",
]
