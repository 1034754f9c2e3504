"""Infrastructure layer exports."""

from .boards import BoardRegistry
from .toolchain import ArduinoCliToolchain, Toolchain

__all__ = [
    "ArduinoCliToolchain",
    "BoardRegistry",
    "Toolchain",
]
