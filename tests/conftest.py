"""
Pytest configuration and shared fixtures for advinstkit tests.

This module provides reusable fixtures and test doubles used across
the test suite: a scripted process runner, a fake monotonic clock and a
pre-populated tool cache.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import yaml

from advinstkit.layout import com_path
from advinstkit.logging import SilentLogger, set_global_logger
from advinstkit.process import CommandResult
from advinstkit.toolcache import CacheKey, ToolCache

NO_SEAT = 0xE001006D


class FakeRunner:
    """Process runner double that records commands and replays exit codes.

    Each response is either an int exit code, a CommandResult, or a
    callable taking the command and returning one of those. Once the
    scripted responses run out, the last one is repeated.
    """

    def __init__(self, responses: list[Any] | None = None):
        self.responses = list(responses or [0])
        self.commands: list[str] = []
        self.secrets: list[str] = []
        self.on_run: Callable[[str], None] | None = None

    def run(self, command, *, check=False, timeout=None, cwd=None, env=None, secrets=()):
        self.commands.append(command)
        self.secrets.extend(secrets)
        if self.on_run is not None:
            self.on_run(command)
        index = min(len(self.commands) - 1, len(self.responses) - 1)
        response = self.responses[index]
        if callable(response):
            response = response(command)
        if isinstance(response, CommandResult):
            return response
        return CommandResult(exit_code=response, stdout=f"exit {response}", stderr="")

    def commands_containing(self, text: str) -> list[str]:
        return [c for c in self.commands if text in c]


class FakeClock:
    """Monotonic clock double; only moves when sleep() or advance() is called."""

    def __init__(self, start: float = 1000.0):
        self.start = start
        self.now = start
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds

    @property
    def elapsed(self) -> float:
        return self.now - self.start


class RecordingLogger:
    """Logger that keeps every message for assertions."""

    def __init__(self):
        self.records: list[tuple[str, str, str]] = []

    def step(self, step: int, total: int, message: str) -> None:
        self.records.append(("step", "", message))

    def verbose(self, prefix: str, message: str) -> None:
        self.records.append(("verbose", prefix, message))

    def debug(self, prefix: str, message: str) -> None:
        self.records.append(("debug", prefix, message))

    def warning(self, prefix: str, message: str) -> None:
        self.records.append(("warning", prefix, message))

    def messages(self, kind: str) -> list[str]:
        return [m for k, _, m in self.records if k == kind]


@pytest.fixture(autouse=True)
def reset_global_logger():
    """Keep the global logger silent between tests."""
    set_global_logger(SilentLogger())
    yield
    set_global_logger(SilentLogger())


@pytest.fixture
def tmp_test_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary directory for test artifacts.

    Automatically cleaned up after test completion.
    """
    return tmp_path


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recording_logger() -> RecordingLogger:
    logger = RecordingLogger()
    set_global_logger(logger)
    return logger


@pytest.fixture
def make_install(tmp_test_dir: Path):
    """
    Factory fixture for creating a fake extracted Advanced Installer tree.

    Usage:
        root = make_install(tmp_path / "extract")
        root = make_install(tmp_path / "broken", with_binary=False)
    """

    def _create(root: Path, with_binary: bool = True) -> Path:
        root.mkdir(parents=True, exist_ok=True)
        (root / "ProgramFilesFolder").mkdir(exist_ok=True)
        if with_binary:
            binary = com_path(root)
            binary.parent.mkdir(parents=True, exist_ok=True)
            binary.write_bytes(b"MZ")
        return root

    return _create


@pytest.fixture
def tool_cache(tmp_test_dir: Path) -> ToolCache:
    return ToolCache(tmp_test_dir / "toolcache")


@pytest.fixture
def cached_install(tool_cache: ToolCache, make_install, tmp_test_dir: Path):
    """
    Factory fixture that puts a version of Advanced Installer in the tool cache.

    Usage:
        root = cached_install("22.0")
    """

    def _cache(version: str, with_binary: bool = True) -> Path:
        source = make_install(tmp_test_dir / f"src-{version}", with_binary=with_binary)
        return tool_cache.cache_dir(source, CacheKey("advinst", version, "x86"))

    return _cache


@pytest.fixture
def create_yaml_file(tmp_test_dir: Path):
    """
    Factory fixture for creating temporary YAML files.

    Usage:
        yaml_path = create_yaml_file("advinst.yaml", {"advinst": {"version": "22.0"}})
    """

    def _create(filename: str, data: dict[str, Any]) -> Path:
        path = tmp_test_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f)
        return path

    return _create


@pytest.fixture
def releases_ini() -> str:
    """Release feed in the vendor's INI format, deliberately out of order."""
    return (
        "[Update1]\n"
        "ProductVersion = 22.0\n"
        "ReleaseDate = 01/07/2024\n"
        "\n"
        "[Update2]\n"
        "ProductVersion = 22.1\n"
        "ReleaseDate = 15/09/2024\n"
        "\n"
        "[Update3]\n"
        "ProductVersion = 20.0\n"
        "ReleaseDate = 10/10/2022\n"
        "\n"
        "[Update4]\n"
        "ProductVersion = 18.0\n"
        "ReleaseDate = 01/03/2021\n"
        "\n"
        "[General]\n"
        "URL = https://www.advancedinstaller.com\n"
    )
