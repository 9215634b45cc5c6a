"""Exceptions raised by handler resolution and dispatch.

PUBLIC API:
  - HandlrError: Base exception for all handlr operations
  - NotFound: No registry entry for a name, or no pattern handler matched
  - InvalidPattern: A pattern string failed to compile
  - RegistryError: The entry registry backend could not be read
  - ExecError: A launch entry could not be turned into a running process
  - ConfigError: Configuration text or records are malformed
"""


class HandlrError(Exception):
    """Base exception for all handlr operations."""

    pass


class NotFound(HandlrError):
    """Raised when a name or candidate has no handler."""

    def __init__(self, identifier: str):
        super().__init__(f"no handler found for '{identifier}'")
        self.identifier = identifier


class InvalidPattern(HandlrError, ValueError):
    """Raised when a pattern source string is not a valid regex."""

    def __init__(self, pattern: str, reason: str, location: str | None = None):
        message = f"invalid pattern '{pattern}': {reason}"
        if location:
            message = f"{location}: {message}"
        super().__init__(message)
        self.pattern = pattern
        self.reason = reason
        self.location = location

    def at(self, location: str) -> "InvalidPattern":
        """Same error, with location prepended to any existing one."""
        if self.location:
            location = f"{location}: {self.location}"
        return InvalidPattern(self.pattern, self.reason, location)



class RegistryError(HandlrError):
    """Raised when the entry registry cannot be searched or read."""

    pass


class ExecError(HandlrError):
    """Raised when a launch entry cannot be expanded or spawned."""

    pass


class ConfigError(HandlrError, ValueError):
    """Raised on malformed configuration."""

    pass
