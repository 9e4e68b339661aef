from __future__ import annotations

from typing import IO, AnyStr, Iterable, Sequence

from pydantic import ConfigDict, RootModel

from streamgrep.errors import SourceReadError

PatternText = str


def split_pattern(pattern: PatternText) -> list[PatternText]:
    return pattern.split("\n")


def _decode(line: str | bytes) -> str:
    if isinstance(line, bytes):
        return line.decode("utf-8", errors="surrogateescape")
    return line


def read_pattern_file(file: IO[AnyStr]) -> list[PatternText]:
    """One pattern per line; an empty file yields no patterns."""
    try:
        return [_decode(line).removesuffix("\n").removesuffix("\r") for line in file]
    except OSError as e:
        raise SourceReadError(
            f"failed to read patterns from {getattr(file, 'name', file)!r}: {e}"
        ) from e


class PatternSet(RootModel[tuple[PatternText, ...]]):
    model_config = ConfigDict(frozen=True)

    def __init__(self, root: Iterable[PatternText] = ()) -> None:
        super().__init__(
            root=tuple(text for pattern in root for text in split_pattern(pattern))
        )

    def __iter__(self):
        yield from self.root

    def __len__(self) -> int:
        return len(self.root)

    def __add__(self, other: PatternSet) -> PatternSet:
        return PatternSet(self.root + other.root)

    @classmethod
    def from_sources(
        cls,
        pattern: PatternText = "",
        regexps: Sequence[PatternText] = (),
        files: Sequence[IO] = (),
    ) -> PatternSet:
        """Collect patterns from every source in order.

        The inline ``pattern`` is only used when neither ``regexps`` nor
        ``files`` is given, and an empty inline pattern contributes nothing.
        A pattern containing newlines is split into one pattern per line.
        """
        if not regexps and not files:
            return cls([pattern] if pattern else [])

        return cls(
            [*regexps, *(text for file in files for text in read_pattern_file(file))]
        )
