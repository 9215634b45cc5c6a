"""
Shared test fixtures for handlr tests.
"""

import subprocess

import pytest
import structlog

from handlr.core import entry
from handlr.core.config import Config
from handlr.core.entry import LaunchEntry
from handlr.core.registry import StaticRegistry


@pytest.fixture
def config():
    """Default config: xterm -e for terminal entries, no pattern handlers."""
    return Config()


@pytest.fixture
def registry():
    """In-memory registry with a couple of known applications."""
    return StaticRegistry(
        {
            "firefox.desktop": LaunchEntry("firefox %u", name="Firefox"),
            "vim.desktop": LaunchEntry("vim %F", terminal=True, name="Vim"),
        }
    )


@pytest.fixture
def spawned(monkeypatch):
    """Record processes instead of starting them.

    Each call is stored as (how, argv) where how is 'attached' or 'detached'.
    """
    calls: list[tuple[str, list[str]]] = []

    def fake_popen(cmd, **kwargs):
        calls.append(("detached", list(cmd)))

    def fake_run(cmd, **kwargs):
        calls.append(("attached", list(cmd)))

    monkeypatch.setattr(subprocess, "Popen", fake_popen)
    monkeypatch.setattr(subprocess, "run", fake_run)
    monkeypatch.setattr(entry, "_stdout_is_tty", lambda: False)
    return calls


@pytest.fixture
def tty(monkeypatch):
    """Pretend stdout is a terminal."""
    monkeypatch.setattr(entry, "_stdout_is_tty", lambda: True)


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


def argvs(calls: list[tuple[str, list[str]]]) -> list[list[str]]:
    """Just the argv of each recorded spawn."""
    return [argv for _, argv in calls]
