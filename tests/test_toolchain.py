from __future__ import annotations

import asyncio
import os
import time

import pytest

from conftest import (
    ECHO_ARGS_SCRIPT,
    FAILURE_SCRIPT,
    FLOOD_SCRIPT,
    NAP_SCRIPT,
    PID_SCRIPT,
    SLOW_SCRIPT,
    posix_only,
)
from compiler_backend.core.errors import (
    ToolchainExecutionError,
    ToolchainNotFoundError,
    ToolchainOutputLimitError,
    ToolchainTimeoutError,
)
from compiler_backend.infrastructure import ArduinoCliToolchain

pytestmark = posix_only


def test_missing_binary(tmp_path):
    toolchain = ArduinoCliToolchain(tmp_path / "bin" / "arduino-cli")

    with pytest.raises(ToolchainNotFoundError):
        asyncio.run(toolchain.invoke(["version"]))


def test_arguments_pass_through_without_config(fake_cli, tmp_path):
    cli = fake_cli(ECHO_ARGS_SCRIPT)
    toolchain = ArduinoCliToolchain(cli, config_file=tmp_path / "absent.yaml")

    outcome = asyncio.run(toolchain.invoke(["compile", "--fqbn", "arduino:avr:uno", "a b; rm -rf /"]))

    assert outcome.exit_succeeded is True
    assert outcome.combined_output.split("\n") == ["compile", "--fqbn", "arduino:avr:uno", "a b; rm -rf /"]


def test_config_file_is_prepended_when_present(fake_cli, tmp_path):
    cli = fake_cli(ECHO_ARGS_SCRIPT)
    config = tmp_path / ".arduino-cli.yaml"
    config.write_text("directories:\n  data: /opt/arduino\n", encoding="utf-8")
    toolchain = ArduinoCliToolchain(cli, config_file=config)

    assert toolchain.build_command(["version"]) == [str(cli), "--config-file", str(config), "version"]
    outcome = asyncio.run(toolchain.invoke(["version"]))

    assert outcome.combined_output.split("\n") == ["--config-file", str(config), "version"]


def test_non_zero_exit_carries_combined_output(fake_cli):
    toolchain = ArduinoCliToolchain(fake_cli(FAILURE_SCRIPT))

    with pytest.raises(ToolchainExecutionError) as excinfo:
        asyncio.run(toolchain.invoke(["compile"]))

    error = excinfo.value
    assert error.returncode == 1
    lines = error.combined_output.split("\n")
    # stdout comes before stderr
    assert lines[0] == "Compiling sketch..."
    assert "error: 'undefinedThing' was not declared in this scope" in error.combined_output


def test_timeout_kills_the_process(fake_cli):
    toolchain = ArduinoCliToolchain(fake_cli(SLOW_SCRIPT), timeout=30)

    started = time.monotonic()
    with pytest.raises(ToolchainTimeoutError) as excinfo:
        asyncio.run(toolchain.invoke(["compile"], timeout=0.5))
    elapsed = time.monotonic() - started

    assert elapsed < 5
    assert excinfo.value.timeout == 0.5
    assert "timed out after 0.5 seconds" in str(excinfo.value)


def test_output_ceiling(fake_cli):
    toolchain = ArduinoCliToolchain(fake_cli(FLOOD_SCRIPT), max_output_bytes=4096, timeout=10)

    with pytest.raises(ToolchainOutputLimitError) as excinfo:
        asyncio.run(toolchain.invoke(["compile"]))

    assert isinstance(excinfo.value, ToolchainExecutionError)
    assert len(excinfo.value.combined_output) <= 4096 + 2 * 64 * 1024


def test_concurrent_invocations_respect_ceiling(fake_cli):
    toolchain = ArduinoCliToolchain(fake_cli(NAP_SCRIPT), max_concurrent=2)

    async def _run_many():
        return await asyncio.gather(*(toolchain.invoke([f"job-{n}"]) for n in range(5)))

    started = time.monotonic()
    outcomes = asyncio.run(_run_many())
    elapsed = time.monotonic() - started

    # five 0.3s naps, two at a time, need at least three rounds
    assert elapsed >= 0.85
    assert [outcome.combined_output for outcome in outcomes] == [f"job-{n}" for n in range(5)]


def test_cancellation_kills_the_process(fake_cli, tmp_path):
    toolchain = ArduinoCliToolchain(fake_cli(PID_SCRIPT), timeout=30)
    pid_file = tmp_path / "cli.pid"

    async def _start_then_cancel():
        task = asyncio.create_task(toolchain.invoke([str(pid_file)]))
        for _ in range(50):
            if pid_file.is_file() and pid_file.read_text().strip():
                break
            await asyncio.sleep(0.1)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(_start_then_cancel())

    pid = int(pid_file.read_text().strip())
    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)
