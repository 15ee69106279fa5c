"""
Extraction Stream Pipeline
==========================
Raw upstream bytes in, text fragments out.
"""

from typing import AsyncGenerator, AsyncIterable, AsyncIterator, Awaitable, Callable, Iterable, Iterator, List, Optional

from .extractor import SSEContentExtractor
from .splitter import ChunkLineSplitter


class FragmentStream:
    """
    Async iterator over decoded fragments that owns its source.

    ``aclose()`` always runs ``release``, also when the stream is closed
    before the first fragment was requested.
    """

    def __init__(self, fragments: AsyncGenerator[str, None], release: Callable[[], Awaitable[None]]):
        self._fragments = fragments
        self._release = release
        self._closed = False

    def __aiter__(self) -> "FragmentStream":
        return self

    async def __anext__(self) -> str:
        if self._closed:
            raise StopAsyncIteration
        return await self._fragments.__anext__()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._fragments.aclose()
        finally:
            await self._release()


async def _close_source(chunks: AsyncIterable[bytes]) -> None:
    aclose = getattr(chunks, "aclose", None)
    if aclose is not None:
        await aclose()



class ExtractionStreamPipeline:
    """
    Composes ChunkLineSplitter and SSEContentExtractor.

    Each instance decodes exactly one upstream stream. Fragments are
    yielded as soon as their line completes, in source order, and the
    generator only advances when the consumer asks for the next fragment.
    """

    def __init__(self, extractor: Optional[SSEContentExtractor] = None):
        self.splitter = ChunkLineSplitter()
        self.extractor = extractor or SSEContentExtractor()
        self._started = False

    def _claim(self) -> None:
        if self._started:
            raise RuntimeError("ExtractionStreamPipeline is single-pass and has already been started")
        self._started = True

    def _fragments(self, lines: List[bytes]) -> Iterator[str]:
        for line in lines:
            fragment = self.extractor.parse_line(line)
            if fragment:
                yield fragment

    def _tail(self) -> List[bytes]:
        tail = self.splitter.flush()
        return [tail] if tail is not None else []

    def stream(self, chunks: AsyncIterable[bytes]) -> FragmentStream:
        """
        Decode an async chunk source lazily.

        Closing the returned stream at any point closes ``chunks`` too, so a
        disconnecting consumer releases the upstream connection.
        """
        self._claim()
        return FragmentStream(self._stream(chunks), lambda: _close_source(chunks))

    async def _stream(self, chunks: AsyncIterable[bytes]) -> AsyncIterator[str]:
        try:
            async for chunk in chunks:
                for fragment in self._fragments(self.splitter.feed(chunk)):
                    yield fragment
            for fragment in self._fragments(self._tail()):
                yield fragment
        finally:
            await _close_source(chunks)

    def iter_fragments(self, chunks: Iterable[bytes]) -> Iterator[str]:
        """Synchronous twin of ``stream`` for already-available chunks."""
        self._claim()
        return self._iter(chunks)

    def _iter(self, chunks: Iterable[bytes]) -> Iterator[str]:
        for chunk in chunks:
            yield from self._fragments(self.splitter.feed(chunk))
        yield from self._fragments(self._tail())
