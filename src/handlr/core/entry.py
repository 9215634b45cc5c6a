"""
Launch entries: an executable description of how to run a program.

An entry carries an unexpanded Exec template (desktop entry field codes such
as %f and %U) and a terminal flag. Executing it expands the template against
the given paths or URLs and spawns the resulting command.
"""

from __future__ import annotations

import re
import subprocess
import sys
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

import bashlex
import structlog
from bashlex.errors import ParsingError

from handlr.core.errors import ExecError

if TYPE_CHECKING:
    from handlr.core.config import Config

log = structlog.get_logger()

# Field codes that take the target arguments
SINGLE_CODES = frozenset({"%f", "%u"})
MULTI_CODES = frozenset({"%F", "%U"})
ARG_CODES = SINGLE_CODES | MULTI_CODES

_FIELD_CODE = re.compile(r"%[fFuUick%]")


class ExecMode(Enum):
    """Why an entry is being executed."""

    OPEN = "open"  # open specific targets
    LAUNCH = "launch"  # start the program, args passed through as-is


def split_exec(template: str) -> list[str]:
    """Split an Exec template into words using bash word rules.

    Only simple commands are accepted: pipelines, lists and redirects
    in a template raise ExecError.
    """
    if not template or not template.strip():
        raise ExecError("empty exec template")
    try:
        nodes = bashlex.parse(template)
    except (ParsingError, NotImplementedError) as e:
        raise ExecError(f"cannot parse exec template '{template}': {e}") from None

    if len(nodes) != 1 or nodes[0].kind != "command":
        raise ExecError(f"exec template must be a simple command: '{template}'")

    words = []
    for part in nodes[0].parts:
        if part.kind not in ("word", "assignment"):
            raise ExecError(
                f"unsupported {part.kind} in exec template: '{template}'"
            )
        words.append(part.word)
    return words


def _stdout_is_tty() -> bool:
    return sys.stdout.isatty()


@dataclass(frozen=True)
class LaunchEntry:
    """How to run a program, independent of where the description came from."""

    exec: str
    terminal: bool = False
    name: str = ""

    @classmethod
    def synthesize(cls, exec: str, terminal: bool = False) -> LaunchEntry:
        """Build an in-memory entry from an Exec template. No file is read."""
        return cls(exec=exec, terminal=terminal)

    @property
    def takes_multiple(self) -> bool:
        """True if the template accepts several targets in one invocation."""
        return any(code in self.exec for code in MULTI_CODES)

    def execute(self, config: Config, mode: ExecMode, args: list[str]) -> None:
        """Run the entry for the given targets.

        With no args the program runs once. Templates taking multiple targets,
        and LAUNCH mode, get every arg in a single run. Otherwise each arg
        gets its own process.
        """
        args = list(args)
        if not args or self.takes_multiple or mode is ExecMode.LAUNCH:
            self._run(config, args)
        else:
            for arg in args:
                self._run(config, [arg])

    def build_command(self, config: Config, args: list[str]) -> list[str]:
        """Expand the template into argv for the given targets."""
        used_args = False

        def expand(match: re.Match) -> str:
            nonlocal used_args
            code = match.group()
            if code == "%%":
                return "%"
            if code in ARG_CODES:
                used_args = True
                return " ".join(args)
            return ""  # %i %c %k carry no value here

        cmd: list[str] = []
        for word in split_exec(self.exec):
            if word in ARG_CODES:
                used_args = True
                cmd.extend(args)
                continue
            expanded = _FIELD_CODE.sub(expand, word)
            if expanded or not _FIELD_CODE.search(word):
                cmd.append(expanded)

        if not used_args:
            cmd.extend(args)

        if not cmd:
            raise ExecError(f"exec template expands to nothing: '{self.exec}'")

        if self.terminal and not _stdout_is_tty():
            cmd = config.terminal_command() + cmd
        return cmd

    def _run(self, config: Config, args: list[str]) -> None:
        cmd = self.build_command(config, args)
        attached = self.terminal and _stdout_is_tty()
        log.debug("spawn", entry=self.name or None, argv=cmd, attached=attached)
        try:
            if attached:
                subprocess.run(cmd, check=False)
            else:
                subprocess.Popen(
                    cmd,
                    stdin=subprocess.DEVNULL,
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                    start_new_session=True,
                )
        except OSError as e:
            raise ExecError(f"failed to run '{cmd[0]}': {e}") from e
