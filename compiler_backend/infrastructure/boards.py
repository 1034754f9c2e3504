"""Read-only registry of supported boards."""
from __future__ import annotations

from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping

import yaml

from compiler_backend.core.errors import BoardRegistryError
from compiler_backend.domain import BoardDescriptor

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"
DEFAULT_BOARDS_FILE = CONFIG_DIR / "boards.yaml"


class BoardRegistry:
    """Immutable mapping from FQBN to :class:`BoardDescriptor`.

    Lookups are exact; no prefix or fuzzy matching is performed, so
    ``arduino:avr:nano`` and ``arduino:avr:nano:cpu=atmega328`` are two
    independent keys.  Iteration follows insertion order.
    """

    def __init__(self, boards: Iterable[BoardDescriptor]) -> None:
        table: dict[str, BoardDescriptor] = {}
        for board in boards:
            if board.fqbn in table:
                raise BoardRegistryError(f"duplicate board identifier: {board.fqbn}")
            table[board.fqbn] = board
        self._boards: Mapping[str, BoardDescriptor] = MappingProxyType(table)

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "BoardRegistry":
        path = path or DEFAULT_BOARDS_FILE
        try:
            with path.open("r", encoding="utf-8") as fp:
                data = yaml.safe_load(fp) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise BoardRegistryError(f"cannot load board table {path}: {exc}") from exc

        entries = data.get("boards") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            raise BoardRegistryError(f"{path}: expected a 'boards' list")

        boards: list[BoardDescriptor] = []
        for index, entry in enumerate(entries):
            if not isinstance(entry, dict) or not entry.get("fqbn") or not entry.get("name"):
                raise BoardRegistryError(f"{path}: board #{index} needs 'fqbn' and 'name'")
            core = entry.get("core")
            boards.append(
                BoardDescriptor(
                    fqbn=str(entry["fqbn"]),
                    name=str(entry["name"]),
                    core=str(core) if core else None,
                )
            )
        return cls(boards)

    def lookup(self, fqbn: str) -> BoardDescriptor | None:
        return self._boards.get(fqbn)

    def list_all(self) -> list[BoardDescriptor]:
        return list(self._boards.values())

    def fqbns(self) -> list[str]:
        return list(self._boards)

    def __contains__(self, fqbn: object) -> bool:
        return fqbn in self._boards

    def __iter__(self) -> Iterator[BoardDescriptor]:
        return iter(self._boards.values())

    def __len__(self) -> int:
        return len(self._boards)
