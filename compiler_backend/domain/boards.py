"""Domain entity describing a supported target board."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class BoardDescriptor:
    """A board identifier (FQBN) together with its display metadata."""

    fqbn: str
    name: str
    core: str | None = None
