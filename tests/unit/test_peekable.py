"""Unit tests for the lookahead reader."""

from __future__ import annotations

import io

import pytest

from shapepack import PeekableReader


class TestPeekableReader:
    """Test one-byte lookahead."""

    def test_peek_does_not_consume(self) -> None:
        """Test peek returns the same byte until it is read."""
        reader = PeekableReader(io.BytesIO(b"\x01\x02"))
        assert reader.peek() == 1
        assert reader.peek() == 1
        assert reader.has_pending
        assert reader.read(1) == b"\x01"
        assert not reader.has_pending
        assert reader.read(1) == b"\x02"

    def test_read_includes_pending_byte(self) -> None:
        """Test a read after peek starts with the peeked byte."""
        reader = PeekableReader(io.BytesIO(b"abcdef"))
        reader.peek()
        assert reader.read(3) == b"abc"
        assert reader.read() == b"def"

    def test_read_all_after_peek(self) -> None:
        """Test an unbounded read returns the peeked byte and the rest."""
        reader = PeekableReader(io.BytesIO(b"xyz"))
        reader.peek()
        assert reader.read() == b"xyz"

    def test_read_zero_keeps_pending(self) -> None:
        """Test a zero-size read does not drop the peeked byte."""
        reader = PeekableReader(io.BytesIO(b"q"))
        reader.peek()
        assert reader.read(0) == b""
        assert reader.read(1) == b"q"

    def test_peek_at_end(self) -> None:
        """Test peeking an exhausted source raises EOFError."""
        reader = PeekableReader(io.BytesIO(b""))
        with pytest.raises(EOFError):
            reader.peek()

    def test_wrap_is_idempotent(self) -> None:
        """Test wrapping a reader returns the same instance."""
        reader = PeekableReader(io.BytesIO(b""))
        assert PeekableReader.wrap(reader) is reader
        assert PeekableReader.wrap(io.BytesIO(b"")) is not reader
