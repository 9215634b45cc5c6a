"""
Handlers: what program should open a given path or URL.

Two kinds of handler exist and the set is closed:

- NamedHandler: a registered application, looked up by name in a registry
- PatternHandler: a rule from the config matching paths/URLs by regex

Both produce a LaunchEntry; `open` is shared and built on top of
`get_launch_entry`, so callers can work with `Handler` without knowing
which kind they hold.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog

from handlr.core.entry import ExecMode, LaunchEntry
from handlr.core.errors import ConfigError, InvalidPattern, NotFound
from handlr.core.patterns import PatternSet
from handlr.core.registry import Registry, XdgRegistry

if TYPE_CHECKING:
    from handlr.core.config import Config

log = structlog.get_logger()


class Handleable(ABC):
    """Behavior shared by every handler kind."""

    @abstractmethod
    def get_launch_entry(self) -> LaunchEntry:
        """Get the launch entry associated with the handler."""
        ...

    def open(self, config: Config, args: list[str]) -> None:
        """Open the given paths or URLs with the handler."""
        self.get_launch_entry().execute(config, ExecMode.OPEN, args)


@dataclass(frozen=True)
class NamedHandler(Handleable):
    """A handler defined by a registered application name.

    The name is an opaque key: it is used as-is for registry lookup,
    equality and hashing. The registry is not part of identity.
    """

    name: str
    registry: Registry = field(
        default_factory=XdgRegistry, compare=False, repr=False
    )

    @classmethod
    def from_name(cls, name: str, registry: Registry | None = None) -> NamedHandler:
        """Create a handler, checking that the name is registered."""
        registry = registry if registry is not None else XdgRegistry()
        if not registry.contains(name):
            raise NotFound(name)
        return cls(name, registry)

    @classmethod
    def assume_valid(cls, name: str, registry: Registry | None = None) -> NamedHandler:
        """Create a handler without checking the registry.

        For trusted or pre-validated names. A name that does not exist
        only fails later, at `get_launch_entry`.
        """
        if registry is None:
            return cls(name)
        return cls(name, registry)

    def get_launch_entry(self) -> LaunchEntry:
        return self.registry.lookup(self.name)

    def launch(self, config: Config, args: list[str]) -> None:
        """Start the application, passing args through without targeting them."""
        self.get_launch_entry().execute(config, ExecMode.LAUNCH, args)

    def to_record(self) -> str:
        return self.name

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class PatternHandler(Handleable):
    """A handler from the config that matches paths/URLs by regex."""

    exec: str
    terminal: bool = False
    patterns: PatternSet = field(default_factory=PatternSet)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> PatternHandler:
        """Build a handler from a config record.

        Expects `exec` (str), optional `terminal` (bool, default false) and
        `regexes` (list of str; `patterns` is accepted as an alias).
        """
        if not isinstance(record, Mapping):
            raise ConfigError(f"handler record must be a table, got {type(record).__name__}")

        unknown = set(record) - {"exec", "terminal", "regexes", "patterns"}
        if unknown:
            raise ConfigError(f"unknown handler key '{sorted(unknown)[0]}'")

        exec_ = record.get("exec")
        if not isinstance(exec_, str) or not exec_:
            raise ConfigError("handler requires a non-empty 'exec' string")

        terminal = record.get("terminal", False)
        if not isinstance(terminal, bool):
            raise ConfigError(f"'terminal' must be a boolean, got {terminal!r}")

        if "regexes" in record and "patterns" in record:
            raise ConfigError("use only one of 'regexes' and 'patterns'")
        regexes = record.get("regexes", record.get("patterns"))
        if regexes is None:
            raise ConfigError("handler requires 'regexes'")
        if isinstance(regexes, str) or not isinstance(regexes, Iterable):
            raise ConfigError("'regexes' must be a list of strings")

        return cls(exec=exec_, terminal=terminal, patterns=PatternSet.of(regexes))

    def to_record(self) -> dict[str, Any]:
        return {
            "exec": self.exec,
            "terminal": self.terminal,
            "regexes": list(self.patterns.sources),
        }

    def matches(self, candidate: str) -> bool:
        """Test if a given path or URL matches the handler's patterns."""
        return self.patterns.matches(candidate)

    def get_launch_entry(self) -> LaunchEntry:
        return LaunchEntry.synthesize(self.exec, self.terminal)


Handler = NamedHandler | PatternHandler
"""Any handler. The set of kinds is closed."""


def handler_from_record(value: str | Mapping[str, Any]) -> Handler:
    """Deserialize a handler: a bare string is a name, a table is a pattern rule."""
    if isinstance(value, str):
        return NamedHandler.assume_valid(value)
    return PatternHandler.from_record(value)


def handler_to_record(handler: Handler) -> str | dict[str, Any]:
    return handler.to_record()


@dataclass(frozen=True)
class PatternHandlerTable:
    """All pattern handlers from the config, in declaration order.

    Resolution is first-match-wins. When several handlers match a
    candidate, the one declared earliest is returned and the overlap
    is not reported.
    """

    handlers: tuple[PatternHandler, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "handlers", tuple(self.handlers))

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> PatternHandlerTable:
        handlers = []
        for i, record in enumerate(records):
            try:
                handlers.append(PatternHandler.from_record(record))
            except ConfigError as e:
                raise ConfigError(f"handler {i + 1}: {e}") from None
            except InvalidPattern as e:
                raise e.at(f"handler {i + 1}") from None
        return cls(tuple(handlers))

    def to_records(self) -> list[dict[str, Any]]:
        return [h.to_record() for h in self.handlers]

    def resolve(self, candidate: str | os.PathLike) -> PatternHandler:
        """Get the first handler matching a path or URL. Raises NotFound."""
        candidate = os.fspath(candidate)
        for handler in self.handlers:
            if handler.matches(candidate):
                log.debug("resolved", candidate=candidate, exec=handler.exec)
                return handler
        log.debug("no_match", candidate=candidate)
        raise NotFound(candidate)

    def __iter__(self) -> Iterator[PatternHandler]:
        return iter(self.handlers)

    def __len__(self) -> int:
        return len(self.handlers)
