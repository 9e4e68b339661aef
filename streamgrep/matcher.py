from __future__ import annotations

import string
from dataclasses import dataclass
from typing import Iterable

import regex
from logzero import logger

from streamgrep.errors import CompileError
from streamgrep.options import MatchOptions
from streamgrep.pattern_texts import PatternText

# word constituents as grep sees them: ASCII letters, digits and the underscore
WORD_CHARS = frozenset(string.ascii_letters + string.digits + "_")


def decode_line(line: bytes) -> str:
    return line.decode("utf-8", errors="surrogateescape")


def is_word_char(char: str) -> bool:
    return char in WORD_CHARS


def compile_pattern(expr: PatternText, options: MatchOptions) -> CompiledMatcher:
    """Compile ``expr`` into a matcher bound to ``options``.

    With ``options.ignore_case`` the whole expression is compiled
    case-insensitively, so literals and character classes fold alike and an
    inline ``(?i)`` in ``expr`` changes nothing. POSIX bracket classes such
    as ``[[:digit:]]`` and Unicode properties such as ``\\pL`` are understood.
    """
    flags = regex.IGNORECASE if options.ignore_case else 0
    try:
        regexp = regex.compile(expr, flags)
    except regex.error as e:
        raise CompileError(expr, e.msg) from e

    logger.debug(f"compiled pattern {expr!r} with flags {flags!r}.")
    return CompiledMatcher(regexp=regexp, options=options)


@dataclass(frozen=True)
class CompiledMatcher:
    regexp: regex.Pattern
    options: MatchOptions

    def match_line(self, line: bytes) -> bool:
        return self.match_text(decode_line(line))

    def match_text(self, text: str) -> bool:
        first = self.regexp.search(text)
        if first is None:
            return False

        if self.options.line_regexp:
            return self.__equal(first.group(), text)

        if self.options.word_regexp:
            return any(
                self.__is_whole_word(text, m.start(), m.end())
                for m in self.regexp.finditer(text)
            )

        return True

    def __equal(self, matched: str, text: str) -> bool:
        if self.options.ignore_case:
            return matched.casefold() == text.casefold()
        return matched == text

    @staticmethod
    def __is_whole_word(text: str, begin: int, end: int) -> bool:
        if begin == 0 and end == len(text):
            return True
        if begin == 0 and not is_word_char(text[end]):
            return True
        if end == len(text) and not is_word_char(text[begin - 1]):
            return True
        return False


@dataclass(frozen=True)
class CompositeMatcher:
    """OR of every pattern's matcher, XORed with invert-match."""

    matchers: tuple[CompiledMatcher, ...]
    options: MatchOptions

    @classmethod
    def from_patterns(
        cls, patterns: Iterable[PatternText], options: MatchOptions
    ) -> CompositeMatcher:
        return cls(
            matchers=tuple(compile_pattern(expr, options) for expr in patterns),
            options=options,
        )

    def matches(self, line: bytes) -> bool:
        text = decode_line(line)
        matched = any(m.match_text(text) for m in self.matchers)
        return matched != self.options.invert_match
