"""Pull human-relevant facts out of raw ``arduino-cli`` output."""
from __future__ import annotations

import re

from compiler_backend.domain import SizeMetrics

ERROR_MARKERS = ("error:", "Error:", "undefined reference", "fatal error")
MAX_ERROR_LINES = 8
FALLBACK_CHARS = 800
UNKNOWN_ERROR = "Unknown compilation error"

_FLASH_PATTERN = re.compile(r"Sketch uses (\d+) bytes")
_RAM_PATTERN = re.compile(r"Global variables use (\d+) bytes")


def extract_error_summary(text: str | None) -> str:
    """Return up to eight error lines, or the head of ``text`` when none match."""

    if not text:
        return UNKNOWN_ERROR

    matches = [line for line in text.split("\n") if any(marker in line for marker in ERROR_MARKERS)]
    if matches:
        return "\n".join(matches[:MAX_ERROR_LINES])
    return text[:FALLBACK_CHARS]


def extract_size_metrics(text: str | None) -> SizeMetrics:
    if not text:
        return SizeMetrics()

    flash = _FLASH_PATTERN.search(text)
    ram = _RAM_PATTERN.search(text)
    return SizeMetrics(
        flash_bytes=int(flash.group(1)) if flash else None,
        ram_bytes=int(ram.group(1)) if ram else None,
    )
