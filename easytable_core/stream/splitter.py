"""
Chunk Line Splitter
===================
Reassembles newline-delimited lines from arbitrarily sized byte chunks.
"""

from typing import Iterable, Iterator, List, Optional

NEWLINE = 0x0A


class ChunkLineSplitter:
    """
    Stateful byte-exact line splitter.

    ``feed`` returns every line completed by the chunk, without its
    terminating newline byte. Bytes after the last newline are carried to
    the next call. ``flush`` returns the carried partial line, if any, once
    the stream has ended.

    Owned by a single stream; not safe to share.
    """

    def __init__(self):
        self._buffer = bytearray()

    @property
    def pending(self) -> bytes:
        """Bytes of the incomplete trailing line."""
        return bytes(self._buffer)

    def feed(self, chunk: bytes) -> List[bytes]:
        lines: List[bytes] = []
        data = bytes(chunk)
        start = 0
        while True:
            index = data.find(NEWLINE, start)
            if index == -1:
                break
            self._buffer += data[start:index]
            lines.append(bytes(self._buffer))
            self._buffer.clear()
            start = index + 1
        if start < len(data):
            self._buffer += data[start:]
        return lines

    def flush(self) -> Optional[bytes]:
        if not self._buffer:
            return None
        tail = bytes(self._buffer)
        self._buffer.clear()
        return tail


def iter_lines(chunks: Iterable[bytes]) -> Iterator[bytes]:
    """Split a whole chunk sequence, flushing the final partial line."""
    splitter = ChunkLineSplitter()
    for chunk in chunks:
        yield from splitter.feed(chunk)
    tail = splitter.flush()
    if tail is not None:
        yield tail
