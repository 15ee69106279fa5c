"""
Unit Tests for Stream Decoding
==============================
Line splitting, line parsing and the composed pipeline.
"""

import json
import random

import pytest
from structlog.testing import capture_logs

from tests.conftest import sse_line


async def _aiter(chunks):
    for chunk in chunks:
        yield chunk


async def _collect(agen):
    return [item async for item in agen]


class TestChunkLineSplitter:
    """Tests for byte-exact line reassembly."""

    def test_split_across_chunks(self):
        """A line split across chunks should be reassembled."""
        from easytable_core.stream import ChunkLineSplitter

        splitter = ChunkLineSplitter()

        first = splitter.feed(b"data: A\nda")
        second = splitter.feed(b"ta: B\ndata: C")

        assert first == [b"data: A"]
        assert second == [b"data: B"]
        assert splitter.pending == b"data: C"
        assert splitter.flush() == b"data: C"
        assert splitter.flush() is None

    def test_chunk_boundary_independence(self):
        """Any partition of the input should yield the same lines."""
        from easytable_core.stream import iter_lines

        data = b"data: one\r\n\ndata: {\"x\": 1}\n: heartbeat\ndata: \xe8\xa1\xa8\xe6\xa0\xbc\ndata: tail"
        expected = list(iter_lines([data]))

        assert expected == [b"data: one\r", b"", b'data: {"x": 1}', b": heartbeat", "data: 表格".encode(), b"data: tail"]

        # every single split point
        for i in range(len(data) + 1):
            assert list(iter_lines([data[:i], data[i:]])) == expected

        # byte at a time
        assert list(iter_lines([data[i:i + 1] for i in range(len(data))])) == expected

        rng = random.Random(1234)
        for _ in range(200):
            cuts = sorted(rng.sample(range(len(data) + 1), rng.randint(1, 8)))
            bounds = [0] + cuts + [len(data)]
            chunks = [data[a:b] for a, b in zip(bounds, bounds[1:])]
            assert list(iter_lines(chunks)) == expected

    def test_line_spanning_many_chunks(self):
        """A line spread over many chunks should come out once, intact."""
        from easytable_core.stream import ChunkLineSplitter

        splitter = ChunkLineSplitter()
        lines = []
        for piece in (b"da", b"ta", b": ", b"lo", b"ng", b"\n"):
            lines.extend(splitter.feed(piece))

        assert lines == [b"data: long"]
        assert splitter.pending == b""

    def test_empty_chunk(self):
        """Empty chunks should neither emit nor disturb the buffer."""
        from easytable_core.stream import ChunkLineSplitter

        splitter = ChunkLineSplitter()
        splitter.feed(b"abc")

        assert splitter.feed(b"") == []
        assert splitter.pending == b"abc"

    def test_no_trailing_newline_flush_only(self):
        """Input without a trailing newline should hold its tail until flush."""
        from easytable_core.stream import ChunkLineSplitter

        splitter = ChunkLineSplitter()

        assert splitter.feed(b"a\nb\n") == [b"a", b"b"]
        assert splitter.flush() is None


class TestSSEContentExtractor:
    """Tests for single-line parsing."""

    def test_content_delta(self):
        """Should extract choices[0].delta.content."""
        from easytable_core.stream import SSEContentExtractor

        extractor = SSEContentExtractor()

        assert extractor.parse_line(sse_line("<table").rstrip(b"\n")) == "<table"

    def test_whitespace_and_crlf_trimmed(self):
        """Surrounding whitespace should be trimmed before parsing."""
        from easytable_core.stream import SSEContentExtractor

        extractor = SSEContentExtractor()
        line = b"  " + sse_line("<tr>").rstrip(b"\n") + b"\r"

        assert extractor.parse_line(line) == "<tr>"

    def test_non_data_lines_ignored(self):
        """Blank, comment and event lines should yield nothing."""
        from easytable_core.stream import SSEContentExtractor

        extractor = SSEContentExtractor()

        for line in (b"", b"   ", b": keep-alive", b"event: message", b"id: 7"):
            assert extractor.parse_line(line) == ""

    def test_missing_content(self):
        """Absent, null or empty choices should yield an empty fragment."""
        from easytable_core.stream import SSEContentExtractor

        extractor = SSEContentExtractor()

        assert extractor.parse_line(b'data: {"choices":[{"delta":{"role":"assistant"}}]}') == ""
        assert extractor.parse_line(b'data: {"choices":[{"delta":{"content":null}}]}') == ""
        assert extractor.parse_line(b'data: {"choices":[]}') == ""
        assert extractor.parse_line(b'data: {"id":"x"}') == ""

    def test_done_sentinel(self):
        """The [DONE] marker should yield nothing and log no error."""
        from easytable_core.stream import SSEContentExtractor

        extractor = SSEContentExtractor()

        with capture_logs() as logs:
            assert extractor.parse_line(b"data: [DONE]") == ""

        assert not [entry for entry in logs if entry["log_level"] == "error"]

    def test_malformed_json_logged_not_raised(self):
        """Malformed JSON should log an error and yield an empty fragment."""
        from easytable_core.stream import SSEContentExtractor

        extractor = SSEContentExtractor()

        with capture_logs() as logs:
            assert extractor.parse_line(b"data: {not valid json") == ""

        errors = [entry for entry in logs if entry["event"] == "llm.malformed_line"]
        assert len(errors) == 1
        assert errors[0]["log_level"] == "error"
        assert "{not valid json" in errors[0]["line"]

    def test_non_object_json(self):
        """JSON that is not an object should be treated as malformed."""
        from easytable_core.stream import SSEContentExtractor

        extractor = SSEContentExtractor()

        assert extractor.parse_line(b"data: [1, 2, 3]") == ""
        assert extractor.parse_line(b'data: "text"') == ""

    def test_invalid_utf8_tolerated(self):
        """Invalid UTF-8 should be replaced rather than raise."""
        from easytable_core.stream import SSEContentExtractor

        extractor = SSEContentExtractor()

        assert extractor.parse_line(b"data: \xff\xfe") == ""

    def test_usage_recorded_not_content(self):
        """A usage summary should be recorded and not returned as content."""
        from easytable_core.stream import SSEContentExtractor

        seen = []
        extractor = SSEContentExtractor(on_usage=seen.append)
        record = {"choices": [], "usage": {"prompt_tokens": 812, "completion_tokens": 40, "total_tokens": 852}}

        with capture_logs() as logs:
            fragment = extractor.parse_line(f"data: {json.dumps(record)}".encode())

        assert fragment == ""
        assert extractor.last_usage.prompt_tokens == 812
        assert extractor.last_usage.total_tokens == 852
        assert seen == [extractor.last_usage]
        assert any(entry["event"] == "llm.usage" for entry in logs)

    def test_zero_prompt_tokens_not_usage(self):
        """A usage block without prompt tokens is not a summary record."""
        from easytable_core.stream import SSEContentExtractor

        extractor = SSEContentExtractor()
        extractor.parse_line(b'data: {"choices":[{"delta":{"content":"x"}}],"usage":{"prompt_tokens":0}}')

        assert extractor.last_usage is None


class TestExtractionStreamPipeline:
    """Tests for the composed byte-to-fragment transform."""

    @pytest.mark.asyncio
    async def test_end_to_end_fragments(self):
        """Fragments should come out in source order."""
        from easytable_core.stream import ExtractionStreamPipeline

        chunks = [
            b'data: {"choices":[{"delta":{"content":"<table"}}]}\n',
            b'data: {"choices":[{"delta":{"content":" class=...>"}}]}\n',
        ]

        fragments = await _collect(ExtractionStreamPipeline().stream(_aiter(chunks)))

        assert fragments == ["<table", " class=...>"]

    @pytest.mark.asyncio
    async def test_chunk_boundaries_do_not_matter(self):
        """Re-chunking the body should not change the fragments."""
        from easytable_core.stream import ExtractionStreamPipeline

        body = b"".join(sse_line(part) for part in ["<table class='easy-table'>", "<tr><td>", "a<br/>b", "</td></tr>", "</table>"])
        expected = ["<table class='easy-table'>", "<tr><td>", "a<br/>b", "</td></tr>", "</table>"]

        for size in (1, 3, 7, 64, len(body)):
            chunks = [body[i:i + size] for i in range(0, len(body), size)]
            assert await _collect(ExtractionStreamPipeline().stream(_aiter(chunks))) == expected

    @pytest.mark.asyncio
    async def test_malformed_line_does_not_halt(self):
        """A malformed line should be skipped and later lines still processed."""
        from easytable_core.stream import ExtractionStreamPipeline

        chunks = [sse_line("A"), b"data: {not valid json\n", sse_line("B")]

        assert await _collect(ExtractionStreamPipeline().stream(_aiter(chunks))) == ["A", "B"]

    @pytest.mark.asyncio
    async def test_final_line_without_newline_flushed(self):
        """The last line should be processed even without a trailing newline."""
        from easytable_core.stream import ExtractionStreamPipeline

        chunks = [sse_line("A"), sse_line("B").rstrip(b"\n")]

        assert await _collect(ExtractionStreamPipeline().stream(_aiter(chunks))) == ["A", "B"]

    @pytest.mark.asyncio
    async def test_lazy_incremental_delivery(self):
        """Each fragment should be delivered before the next chunk is pulled."""
        from easytable_core.stream import ExtractionStreamPipeline

        pulled = []

        async def source():
            for part in ("A", "B", "C"):
                pulled.append(part)
                yield sse_line(part)

        stream = ExtractionStreamPipeline().stream(source())

        assert await stream.__anext__() == "A"
        assert pulled == ["A"]
        assert await stream.__anext__() == "B"
        assert pulled == ["A", "B"]
        await stream.aclose()

    @pytest.mark.asyncio
    async def test_early_close_closes_source(self):
        """Closing the fragment stream should close the upstream iterator."""
        from easytable_core.stream import ExtractionStreamPipeline

        state = {"closed": False}

        async def source():
            try:
                for part in ("A", "B", "C"):
                    yield sse_line(part)
            finally:
                state["closed"] = True

        stream = ExtractionStreamPipeline().stream(source())
        assert await stream.__anext__() == "A"
        await stream.aclose()

        assert state["closed"] is True

    @pytest.mark.asyncio
    async def test_close_before_first_fragment_closes_source(self):
        """Closing a stream that was never iterated should still close the source."""
        from easytable_core.stream import ExtractionStreamPipeline

        class Source:
            def __init__(self):
                self.closed = False

            def __aiter__(self):
                return self

            async def __anext__(self):
                raise StopAsyncIteration

            async def aclose(self):
                self.closed = True

        source = Source()
        stream = ExtractionStreamPipeline().stream(source)
        await stream.aclose()

        assert source.closed is True
        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()

    @pytest.mark.asyncio
    async def test_single_pass(self):
        """A pipeline instance should refuse a second stream."""
        from easytable_core.stream import ExtractionStreamPipeline

        pipeline = ExtractionStreamPipeline()
        await _collect(pipeline.stream(_aiter([sse_line("A")])))

        with pytest.raises(RuntimeError):
            pipeline.stream(_aiter([sse_line("B")]))

    def test_sync_iter_fragments(self):
        """The synchronous twin should produce the same fragments."""
        from easytable_core.stream import ExtractionStreamPipeline

        chunks = [b"data: {\"choices\":[{\"delta\":{\"content\":\"x\"}}]}\nda", b"ta: [DONE]\n"]

        assert list(ExtractionStreamPipeline().iter_fragments(chunks)) == ["x"]
