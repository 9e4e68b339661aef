from __future__ import annotations


class GrepError(Exception):
    """Base class for every error raised while building or running a filter."""


class CompileError(GrepError, ValueError):
    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"invalid pattern {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason


class SourceReadError(GrepError, OSError):
    """A pattern file or an input stream failed while being read."""
