"""Exception types raised by cratezoom."""

from __future__ import annotations


class CratezoomError(Exception):
    """Base class for all cratezoom failures."""


class MalformedInputError(CratezoomError):
    """Cargo output that cannot be parsed."""

    def __init__(self, reason: str, line: str | None = None, line_number: int | None = None):
        self.reason = reason
        self.line = line
        self.line_number = line_number
        if line is None:
            message = reason
        else:
            message = f"{reason} at line {line_number}: {line!r}"
        super().__init__(message)


class UsageError(CratezoomError):
    """Invalid invocation or configuration."""


class AmbiguousSelectorError(CratezoomError):
    """A crate selector matched no crate or more than one."""

    def __init__(self, pattern: str, matches: list[str]):
        self.pattern = pattern
        self.matches = matches
        if matches:
            message = (
                f"pattern {pattern!r} matches {len(matches)} crates: "
                + ", ".join(matches)
            )
        else:
            message = f"pattern {pattern!r} matches no crate"
        super().__init__(message)


class TemplateError(CratezoomError):
    """Invalid label or tooltip template."""
