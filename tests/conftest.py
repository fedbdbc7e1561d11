"""Shared test fixtures for smartai.

Provides reusable fixtures for isolated config environments, in-memory blob
stores, fake clocks and providers, output state, and running CLI commands.
These fixtures are automatically discovered by pytest and available to all
test modules without explicit imports.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import pytest

from smartai.exceptions import PersistenceError
from smartai.output import OutputFormat, OutputManager, reset_output, set_output
from smartai.providers.base import SearchClient, TextGenerator
from smartai.storage import BlobStore


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _restore_smartai_logger() -> None:
    """Undo the CLI's logging setup so caplog keeps seeing smartai records."""
    logger = logging.getLogger("smartai")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class MemoryBlobStore(BlobStore):
    """Dict-backed blob store that records every write."""

    def __init__(self) -> None:
        self.blobs: dict[str, bytes] = {}
        self.writes: list[str] = []
        self.fail_writes = False

    def read_blob(self, key: str) -> Optional[bytes]:
        return self.blobs.get(key)

    def write_blob(self, key: str, data: bytes) -> None:
        if self.fail_writes:
            raise PersistenceError(f"cannot write {key}")
        self.writes.append(key)
        self.blobs[key] = data


class FakeClock:
    """Controllable UTC clock for TTL and age tests."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakeSearch(SearchClient):
    """Search client returning canned text, or raising *error*."""

    def __init__(self, text: str = "1. Result\nsnippet", error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.calls: list[str] = []

    async def search(self, query: str) -> str:
        self.calls.append(query)
        if self.error is not None:
            raise self.error
        return self.text


class FakeProvider(TextGenerator):
    """Text generator returning *reply*, or raising *error*.

    Every generate() call is appended to the shared *log* (when given) so
    tests can assert the order providers were tried in.
    """

    def __init__(
        self,
        name: str,
        reply: Optional[str] = None,
        error: Optional[Exception] = None,
        log: Optional[list[str]] = None,
        delay: float = 0.0,
        timeout: Optional[float] = None,
    ) -> None:
        self._name = name
        self.reply = reply
        self.error = error
        self.log = log if log is not None else []
        self.delay = delay
        self.timeout = timeout
        self.prompts: list[str] = []

    @property
    def name(self) -> str:
        return self._name

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        self.log.append(self._name)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply or ""


@pytest.fixture
def memory_store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user
    config. Forces the XDG code path, clears SMARTAI_* and provider key
    environment variables, and changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("smartai.config._is_xdg_platform", lambda: True)

    for var in [
        "SMARTAI_PROVIDER_PRIORITY",
        "SMARTAI_STORAGE_BACKEND",
        "SMARTAI_CACHE_TTL",
        "OPENAI_API_KEY",
        "CLAUDE_API_KEY",
        "BARD_API_KEY",
        "LLAMA_API_KEY",
        "SERPER_API_KEY",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
