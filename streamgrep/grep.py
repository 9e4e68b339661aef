"""Grep-like line filtering over byte streams.

A best effort is made to mirror the matching control of GNU grep 3.3
(https://www.gnu.org/software/grep/manual/grep.html#Matching-Control).
"""

from __future__ import annotations

import contextlib
import io
from typing import IO, Iterable, Iterator, Sequence

from logzero import logger

from streamgrep.matcher import CompositeMatcher
from streamgrep.options import GrepConfig, MatchOptions
from streamgrep.pattern_texts import PatternSet, PatternText
from streamgrep.streaming import NEWLINE, BackgroundStream, IteratorReader, iter_lines


class Grep:
    """One filtering request: a pattern set compiled against its options.

    Construction compiles every pattern, so an invalid pattern raises
    :class:`~streamgrep.errors.CompileError` before any input is touched.
    """

    def __init__(
        self, patterns: PatternSet, options: MatchOptions = MatchOptions()
    ) -> None:
        self.patterns = patterns
        self.options = options
        self.matcher = CompositeMatcher.from_patterns(patterns, options)

        reserved = options.reserved_in_use()
        if reserved:
            logger.warning(
                f"options {', '.join(reserved)} are not supported, ignored."
            )

    @classmethod
    def from_sources(
        cls,
        pattern: PatternText = "",
        regexps: Sequence[PatternText] = (),
        files: Sequence[IO] = (),
        options: MatchOptions = MatchOptions(),
    ) -> Grep:
        return cls(
            PatternSet.from_sources(pattern=pattern, regexps=regexps, files=files),
            options,
        )

    @classmethod
    def from_config(cls, config: GrepConfig, pattern: PatternText = "") -> Grep:
        with contextlib.ExitStack() as stack:
            files = [
                stack.enter_context(path.open("rb")) for path in config.pattern_files
            ]
            return cls.from_sources(
                pattern=pattern,
                regexps=config.patterns,
                files=files,
                options=config.options,
            )

    def filter(self, source: Iterable[bytes]) -> Iterator[bytes]:
        """Yield each selected line of ``source`` followed by a newline."""
        selected = 0
        lines = iter_lines(source)
        try:
            for line in lines:
                if self.matcher.matches(line):
                    selected += 1
                    yield line + NEWLINE
        finally:
            lines.close()
            logger.debug(f"selected {selected} lines.")

    def open(self, source: Iterable[bytes]) -> io.BufferedReader:
        return io.BufferedReader(IteratorReader(self.filter(source)))

    def stream(self, source: Iterable[bytes], maxsize: int = 64) -> BackgroundStream:
        return BackgroundStream(self.filter(source), maxsize=maxsize)


def grep(
    source: Iterable[bytes],
    pattern: PatternText,
    options: MatchOptions = MatchOptions(),
) -> Iterator[bytes]:
    return Grep(PatternSet.from_sources(pattern=pattern), options).filter(source)


def pipe(source: Iterable[bytes], *stages: Grep) -> Iterator[bytes]:
    """Feed ``source`` through ``stages`` in order, each reading the previous output."""
    with contextlib.ExitStack() as stack:
        stream: Iterable[bytes] = source
        for stage in stages:
            stream = stack.enter_context(contextlib.closing(stage.filter(stream)))
        yield from stream
