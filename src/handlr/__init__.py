"""
handlr - Pick the program that opens a path or URL.

Resolves a target to a handler (a registered application or a regex rule
from the config) and hands it off for execution.
"""

from __future__ import annotations

__version__ = "0.1.0"

from handlr.core.config import Config, load_config
from handlr.core.entry import ExecMode, LaunchEntry
from handlr.core.errors import HandlrError, InvalidPattern, NotFound
from handlr.core.handler import (
    Handler,
    NamedHandler,
    PatternHandler,
    PatternHandlerTable,
)
from handlr.core.patterns import PatternSet

__all__ = [
    "Config",
    "ExecMode",
    "Handler",
    "HandlrError",
    "InvalidPattern",
    "LaunchEntry",
    "NamedHandler",
    "NotFound",
    "PatternHandler",
    "PatternHandlerTable",
    "PatternSet",
    "load_config",
    "__version__",
]
