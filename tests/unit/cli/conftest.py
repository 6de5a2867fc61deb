"""Fixtures for CLI tests."""

from pathlib import Path

import pytest
from click.testing import CliRunner


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_cli_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep CLI invocations away from user config, TCB_* variables and
    the process-wide logging setup."""
    for var in (
        "TCB_RES_DIR",
        "TCB_STATS_FILE",
        "TCB_DECODE_OUTPUT",
        "TCB_ENCODED_OUTPUT",
        "TCB_INPUT_BUFFER_SIZE",
        "TCB_ASYNC_QUEUE_DEPTH",
        "TCB_LOG_LEVEL",
        "TCB_LOG_FILE",
        "TCB_LOG_FORMAT",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("TCB_CONFIG_PATH", str(tmp_path / "no-config.toml"))
    monkeypatch.setattr("tcbench.cli._logging_configured", True)
