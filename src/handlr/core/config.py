"""handlr configuration."""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path

import structlog

from handlr.core.entry import split_exec
from handlr.core.errors import ConfigError, InvalidPattern
from handlr.core.handler import PatternHandlerTable

ENV_CONFIG = "HANDLR_CONFIG"
CONFIG_NAME = Path("handlr") / "handlr.toml"

DEFAULT_TERMINAL = "xterm"
DEFAULT_TERM_EXEC_ARGS = "-e"

KNOWN_KEYS = frozenset({"terminal", "term_exec_args", "log", "handlers"})


@dataclass(frozen=True)
class Config:
    """Parsed configuration."""

    terminal: str = DEFAULT_TERMINAL
    """Terminal emulator used for terminal entries when stdout is not a tty."""

    term_exec_args: str | None = DEFAULT_TERM_EXEC_ARGS
    """Arguments placed between the terminal and the command, e.g. '-e'."""

    handlers: PatternHandlerTable = field(default_factory=PatternHandlerTable)
    """Pattern handlers in declaration order."""

    log: Path | None = None  # None = no logging

    def terminal_command(self) -> list[str]:
        """argv prefix that runs a command inside the terminal."""
        cmd = [self.terminal]
        if self.term_exec_args:
            cmd.extend(split_exec(self.term_exec_args))
        return cmd


# === Config Loading ===


def default_config_path() -> Path:
    """$XDG_CONFIG_HOME/handlr/handlr.toml, falling back to ~/.config."""
    base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / CONFIG_NAME


def load_config(path: Path | None = None) -> Config:
    """Load config from path, $HANDLR_CONFIG, or the XDG config dir.

    A missing file yields the default config.
    """
    if path is None:
        env_path = os.environ.get(ENV_CONFIG)
        path = Path(env_path).expanduser() if env_path else default_config_path()

    if not path.is_file():
        return Config()

    try:
        text = path.read_text()
    except OSError as e:
        raise ConfigError(f"{path}: {e}") from e
    try:
        return parse_config(text)
    except ConfigError as e:
        raise ConfigError(f"{path}: {e}") from None
    except InvalidPattern as e:
        raise e.at(str(path)) from None


def parse_config(text: str) -> Config:
    """Parse TOML config text into a Config. Raises ConfigError on bad input."""
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(str(e)) from None

    unknown = set(data) - KNOWN_KEYS
    if unknown:
        raise ConfigError(f"unknown setting '{sorted(unknown)[0]}'")

    config = Config()

    terminal = data.get("terminal", DEFAULT_TERMINAL)
    if not isinstance(terminal, str) or not terminal:
        raise ConfigError(f"'terminal' must be a command name, got {terminal!r}")

    term_exec_args = data.get("term_exec_args", DEFAULT_TERM_EXEC_ARGS)
    if not isinstance(term_exec_args, str):
        raise ConfigError(f"'term_exec_args' must be a string, got {term_exec_args!r}")

    log = data.get("log")
    if log is not None:
        if not isinstance(log, str):
            raise ConfigError(f"'log' requires a path, got {log!r}")
        log = Path(log).expanduser()

    records = data.get("handlers", [])
    if not isinstance(records, list):
        raise ConfigError("'handlers' must be an array of tables")

    return replace(
        config,
        terminal=terminal,
        term_exec_args=term_exec_args or None,
        handlers=PatternHandlerTable.from_records(records),
        log=log,
    )


# === Logging ===


def configure_logging(config: Config) -> None:
    """Configure structlog to write JSON lines to config.log. Call once at startup.

    Without a log path only critical events pass, so resolution stays off stdout.
    """
    if config.log is None:
        structlog.configure(
            wrapper_class=structlog.make_filtering_bound_logger(logging.CRITICAL),
            cache_logger_on_first_use=False,
        )
        return

    config.log.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(config.log)
    file_handler.setLevel(logging.DEBUG)

    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        logger_factory=structlog.PrintLoggerFactory(file=file_handler.stream),
        cache_logger_on_first_use=False,
    )
