"""Application services."""

from .compile import CompileService, get_compile_service

__all__ = [
    "CompileService",
    "get_compile_service",
]
