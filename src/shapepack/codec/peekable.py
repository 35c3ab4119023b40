"""One-byte lookahead over a binary source."""

from __future__ import annotations

from typing import Protocol


class ByteSource(Protocol):
    """Anything with a ``read(n)`` method returning bytes."""

    def read(self, size: int = -1, /) -> bytes: ...


class PeekableReader:
    """Wraps a byte source and buffers at most one byte for peeking.

    Optional values are decoded by looking at the next head byte before
    deciding whether to allocate the pointee; the byte stays buffered and is
    returned by the next ``read``.

    The reader keeps no other state, so it is only meant for a single call
    chain; do not share one instance between threads.

    Example:
        >>> reader = PeekableReader(io.BytesIO(b"\\xc0\\x01"))
        >>> reader.peek()
        192
        >>> reader.read(2)
        b'\\xc0\\x01'
    """

    def __init__(self, source: ByteSource) -> None:
        """Initialize a reader over the given source.

        Args:
            source: Object with a ``read(n)`` method
        """
        self._source = source
        self._pending: int | None = None

    @classmethod
    def wrap(cls, source: ByteSource) -> PeekableReader:
        """Return ``source`` itself if it already peeks, else a new wrapper."""
        if isinstance(source, PeekableReader):
            return source
        return cls(source)

    def peek(self) -> int:
        """Return the next byte without consuming it.

        Raises:
            EOFError: If the source is exhausted
        """
        if self._pending is None:
            data = self._source.read(1)
            if not data:
                raise EOFError("No byte available to peek")
            self._pending = data[0]
        return self._pending

    def read(self, size: int = -1, /) -> bytes:
        """Read up to ``size`` bytes, starting with the buffered byte if any.

        Like ``io.RawIOBase.read`` this may return fewer bytes than asked
        for; an empty result means end of input.
        """
        if self._pending is None:
            return self._source.read(size)
        if size == 0:
            return b""

        head = bytes((self._pending,))
        self._pending = None
        if size == 1:
            return head
        rest = self._source.read(-1 if size < 0 else size - 1)
        return head + rest

    @property
    def has_pending(self) -> bool:
        """Whether a peeked byte is waiting to be read."""
        return self._pending is not None
