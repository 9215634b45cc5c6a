"""Regex pattern sets used by pattern handlers."""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from handlr.core.errors import InvalidPattern


def _compile(source: object) -> re.Pattern:
    """Compile a single pattern source. Raises InvalidPattern on bad input."""
    if not isinstance(source, str):
        raise InvalidPattern(repr(source), "pattern must be a string")
    try:
        return re.compile(source)
    except re.error as e:
        raise InvalidPattern(source, str(e)) from None


def _reject_single(patterns: object) -> None:
    # A bare string would otherwise become one pattern per character
    if isinstance(patterns, (str, re.Pattern)):
        source = patterns.pattern if isinstance(patterns, re.Pattern) else patterns
        raise InvalidPattern(source, "expected a sequence of patterns")


@dataclass(frozen=True)
class PatternSet:
    """An ordered, immutable set of regex patterns.

    Equality and hashing are defined over the pattern source strings.
    Compiled patterns are not comparable, so they are kept out of both.
    Matching is `re.search` semantics: a pattern matches anywhere in the
    candidate unless it anchors itself.
    """

    sources: tuple[str, ...] = ()
    _compiled: tuple[re.Pattern, ...] = field(
        default=(), init=False, repr=False, compare=False
    )

    def __post_init__(self):
        _reject_single(self.sources)
        # Accept compiled patterns too, normalized back to their source text
        sources = tuple(
            p.pattern if isinstance(p, re.Pattern) else p for p in self.sources
        )
        compiled = tuple(_compile(s) for s in sources)
        object.__setattr__(self, "sources", sources)
        object.__setattr__(self, "_compiled", compiled)

    @classmethod
    def of(cls, patterns: Iterable[str | re.Pattern]) -> PatternSet:
        """Build a PatternSet from any iterable of sources or compiled patterns."""
        _reject_single(patterns)
        return cls(tuple(patterns))

    @property
    def patterns(self) -> tuple[re.Pattern, ...]:
        return self._compiled

    def matches(self, candidate: str) -> bool:
        """True if any pattern matches somewhere in candidate."""
        return any(p.search(candidate) for p in self._compiled)

    def __iter__(self) -> Iterator[str]:
        return iter(self.sources)

    def __len__(self) -> int:
        return len(self.sources)
