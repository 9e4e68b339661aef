from __future__ import annotations

import io
import queue
import threading
import weakref
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from logzero import logger

from streamgrep.errors import SourceReadError

NEWLINE = b"\n"


def _strip_cr(line: bytes) -> bytes:
    return line[:-1] if line.endswith(b"\r") else line


def iter_lines(source: Iterable[bytes]) -> Iterator[bytes]:
    """Split a stream of byte chunks into lines without their terminators.

    A trailing ``\\r`` is dropped along with the newline, and a final line
    without a newline is still produced.
    """
    # pieces of the current line seen so far, each chunk is scanned once
    partial: list[bytes] = []
    try:
        for chunk in source:
            *lines, rest = chunk.split(NEWLINE)
            if lines:
                partial.append(lines[0])
                lines[0] = b"".join(partial)
                partial = []
                for line in lines:
                    yield _strip_cr(line)
            if rest:
                partial.append(rest)
    except SourceReadError:
        raise
    except OSError as e:
        raise SourceReadError(f"failed to read input: {e}") from e

    if partial:
        yield _strip_cr(b"".join(partial))


class IteratorReader(io.RawIOBase):
    """Expose an iterator of byte chunks as a readable raw stream."""

    def __init__(self, chunks: Iterator[bytes]) -> None:
        self._chunks = chunks
        self._pending = b""

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        while not self._pending:
            try:
                self._pending = next(self._chunks)
            except StopIteration:
                return 0

        n = min(len(b), len(self._pending))
        b[:n] = self._pending[:n]
        self._pending = self._pending[n:]
        return n

    def close(self) -> None:
        if not self.closed:
            close = getattr(self._chunks, "close", None)
            if close is not None:
                close()
        super().close()


@dataclass(frozen=True)
class _Failure:
    error: BaseException


_DONE = object()


def _put(
    q: queue.Queue, stop: threading.Event, item: object, poll_interval: float
) -> bool:
    while not stop.is_set():
        try:
            q.put(item, timeout=poll_interval)
            return True
        except queue.Full:
            continue
    return False


def _produce(
    lines: Iterator[bytes],
    q: queue.Queue,
    stop: threading.Event,
    poll_interval: float,
) -> None:
    # must not reference the BackgroundStream that owns the queue
    try:
        for line in lines:
            if not _put(q, stop, line, poll_interval):
                logger.debug("consumer went away, producer stopping.")
                return
    except Exception as e:
        _put(q, stop, _Failure(e), poll_interval)
        return
    finally:
        close = getattr(lines, "close", None)
        if close is not None:
            close()

    _put(q, stop, _DONE, poll_interval)


class BackgroundStream:
    """Run a line producer in a worker thread behind a bounded queue.

    The producer blocks while the queue is full and the consumer blocks while
    it is empty. Closing the stream, or dropping the last reference to it,
    tells the producer to stop at its next hand-off; a producer stuck reading
    its input only notices once that read returns.
    """

    def __init__(
        self,
        lines: Iterator[bytes],
        maxsize: int = 64,
        poll_interval: float = 0.05,
    ) -> None:
        if maxsize < 1:
            raise ValueError(f"maxsize must be positive, got {maxsize}")
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._stop = threading.Event()
        self._finished = False
        self._thread = threading.Thread(
            target=_produce,
            args=(lines, self._queue, self._stop, poll_interval),
            name="streamgrep-producer",
            daemon=True,
        )
        self._finalizer = weakref.finalize(self, self._stop.set)
        self._thread.start()

    def __iter__(self) -> BackgroundStream:
        return self

    def __next__(self) -> bytes:
        if self._finished:
            raise StopIteration

        item = self._queue.get()
        if item is _DONE:
            self._finished = True
            raise StopIteration
        if isinstance(item, _Failure):
            self._finished = True
            raise item.error
        return item

    def close(self, timeout: Optional[float] = None) -> None:
        self._finished = True
        self._finalizer()
        self._thread.join(timeout)

    @property
    def alive(self) -> bool:
        return self._thread.is_alive()

    def __enter__(self) -> BackgroundStream:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
