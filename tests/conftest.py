from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from compiler_backend.core.settings import Settings
from compiler_backend.domain import ToolchainOutcome

SUCCESS_SCRIPT = """#!/bin/sh
out=""
while [ "$#" -gt 0 ]; do
  case "$1" in
    --output-dir) out="$2"; shift 2 ;;
    *) shift ;;
  esac
done
printf ':100000000C945C000C946E000C946E000C946E00CA\\n:00000001FF\\n' > "$out/sketch.ino.hex"
echo "Sketch uses 444 bytes (1%) of program storage space. Maximum is 32256 bytes."
echo "Global variables use 9 bytes (0%) of dynamic memory, leaving 2039 bytes for local variables. Maximum is 2048 bytes."
"""

FAILURE_SCRIPT = """#!/bin/sh
echo "Compiling sketch..."
echo "sketch.ino: In function 'void loop()':" >&2
echo "sketch.ino:1:40: error: 'undefinedThing' was not declared in this scope" >&2
echo "Error during build: exit status 1" >&2
exit 1
"""

NO_ARTIFACT_SCRIPT = """#!/bin/sh
echo "Sketch uses 444 bytes (1%) of program storage space. Maximum is 32256 bytes."
"""

SLOW_SCRIPT = """#!/bin/sh
echo "starting"
exec sleep 30
"""

ECHO_ARGS_SCRIPT = """#!/bin/sh
for arg in "$@"; do
  echo "$arg"
done
"""

CAT_SKETCH_SCRIPT = """#!/bin/sh
for last; do :; done
cat "$last/sketch.ino"
"""

FLOOD_SCRIPT = """#!/bin/sh
while :; do
  echo "xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx"
done
"""

NAP_SCRIPT = """#!/bin/sh
sleep 0.3
echo "$1"
"""

PID_SCRIPT = """#!/bin/sh
echo $$ > "$1"
exec sleep 30
"""

posix_only = pytest.mark.skipif(os.name != "posix", reason="fake toolchain is a POSIX shell script")


@pytest.fixture()
def fake_cli(tmp_path):
    """Factory writing an executable stand-in for arduino-cli."""

    def _write(body: str, name: str = "arduino-cli") -> Path:
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir(exist_ok=True)
        path = bin_dir / name
        path.write_text(body, encoding="utf-8")
        path.chmod(0o755)
        return path

    return _write


@pytest.fixture()
def builds_root(tmp_path) -> Path:
    return tmp_path / "builds"


@pytest.fixture()
def make_settings(tmp_path, builds_root):
    def _make(cli_path: Path, **overrides) -> Settings:
        values = {
            "cli_path": cli_path,
            "config_file": tmp_path / ".arduino-cli.yaml",
            "working_dir": tmp_path,
            "builds_root": builds_root,
        }
        values.update(overrides)
        return Settings(**values)

    return _make


class StubToolchain:
    """In-process toolchain double that records calls and fakes an artifact."""

    def __init__(self, *, output: str = "", error: Exception | None = None, artifact: str | bytes | None = None) -> None:
        self.output = output
        self.error = error
        self.artifact = artifact
        self.calls: list[list[str]] = []
        self.workspaces: list[Path] = []

    async def invoke(self, args, timeout=None) -> ToolchainOutcome:
        args = list(args)
        self.calls.append(args)
        output_dir = Path(args[args.index("--output-dir") + 1])
        assert output_dir.is_dir()
        self.workspaces.append(output_dir.parent)
        if self.error is not None:
            raise self.error
        if isinstance(self.artifact, bytes):
            (output_dir / "sketch.ino.hex").write_bytes(self.artifact)
        elif self.artifact is not None:
            (output_dir / "sketch.ino.hex").write_text(self.artifact, encoding="utf-8")
        return ToolchainOutcome(combined_output=self.output)
