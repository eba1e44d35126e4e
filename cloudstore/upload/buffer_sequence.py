"""Ordered sequence of immutable byte spans used for pending upload payloads."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]


class BufferSequence:
    """A list of read-only ``memoryview`` spans.

    Dropping committed bytes from the front only slices views; the remaining
    payload is never copied.
    """

    def __init__(self, buffers: Iterable[BytesLike] = ()):
        self._spans: list[memoryview] = []
        for buffer in buffers:
            span = memoryview(buffer).cast("B").toreadonly()
            if len(span) > 0:
                self._spans.append(span)

    @classmethod
    def of(cls, *buffers: BytesLike) -> BufferSequence:
        """Build a sequence from positional buffers."""
        return cls(buffers)

    def __iter__(self) -> Iterator[memoryview]:
        return iter(self._spans)

    def __len__(self) -> int:
        return len(self._spans)

    def __bool__(self) -> bool:
        return bool(self._spans)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, BufferSequence):
            return self.tobytes() == other.tobytes()
        if isinstance(other, (bytes, bytearray)):
            return self.tobytes() == bytes(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"BufferSequence(spans={len(self._spans)}, size={self.total_size()})"

    def total_size(self) -> int:
        """Total number of bytes across all spans."""
        return sum(len(span) for span in self._spans)

    def copy(self) -> BufferSequence:
        """Shallow copy sharing the underlying memory."""
        return BufferSequence(self._spans)

    def pop_front_bytes(self, count: int) -> None:
        """Drop ``count`` bytes from the front of the sequence.

        Dropping more bytes than available leaves the sequence empty.
        """
        while count > 0 and self._spans:
            front = self._spans[0]
            if len(front) <= count:
                count -= len(front)
                self._spans.pop(0)
            else:
                self._spans[0] = front[count:]
                count = 0

    def prefix(self, count: int) -> BufferSequence:
        """Return a new sequence viewing the first ``count`` bytes."""
        result: list[memoryview] = []
        for span in self._spans:
            if count <= 0:
                break
            piece = span[:count]
            result.append(piece)
            count -= len(piece)
        return BufferSequence(result)

    def tobytes(self) -> bytes:
        """Concatenate the spans into a single ``bytes`` object."""
        return b"".join(span.tobytes() for span in self._spans)
