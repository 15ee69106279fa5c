"""
SSE Content Extractor
=====================
Parses one line of the model API's ``data:``-prefixed JSON stream into a
text fragment.
"""

import json
from typing import Any, Callable, Optional

import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

from ..exceptions import MalformedUpstreamLine

logger = structlog.get_logger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"

# Longest slice of a bad line kept in logs
LOG_LINE_LIMIT = 200


class UsageStats(BaseModel):
    """Token usage reported in the stream's summary record."""
    model_config = ConfigDict(extra="allow")

    prompt_tokens: int
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


class SSEContentExtractor:
    """
    Extracts ``choices[0].delta.content`` from upstream stream lines.

    Malformed lines are logged and yield an empty fragment; they never
    abort the stream. Usage summaries are logged as ``llm.usage`` and
    handed to ``on_usage`` when given.
    """

    def __init__(self, on_usage: Optional[Callable[[UsageStats], None]] = None):
        self.on_usage = on_usage
        self.last_usage: Optional[UsageStats] = None

    def parse_line(self, line: bytes) -> str:
        text = line.decode("utf-8", errors="replace").strip()
        if not text or not text.startswith(DATA_PREFIX):
            return ""

        payload = text[len(DATA_PREFIX):].strip()
        if payload == DONE_SENTINEL:
            return ""

        try:
            record = self._decode_record(payload)
        except MalformedUpstreamLine as e:
            logger.error("llm.malformed_line", reason=e.reason, line=e.line[:LOG_LINE_LIMIT])
            return ""

        usage = record.get("usage")
        if isinstance(usage, dict) and usage.get("prompt_tokens"):
            self._record_usage(usage)

        return _delta_content(record)

    @staticmethod
    def _decode_record(payload: str) -> dict:
        try:
            record = json.loads(payload)
        except json.JSONDecodeError as e:
            raise MalformedUpstreamLine(payload, f"invalid JSON: {e.msg} at pos {e.pos}") from e
        if not isinstance(record, dict):
            raise MalformedUpstreamLine(payload, "expected a JSON object")
        return record

    def _record_usage(self, usage: dict) -> None:
        logger.info("llm.usage", usage=usage)
        try:
            stats = UsageStats.model_validate(usage)
        except ValidationError as e:
            logger.warning("llm.usage_invalid", error=str(e))
            return
        self.last_usage = stats
        if self.on_usage is not None:
            self.on_usage(stats)


def _delta_content(record: dict) -> str:
    choices: Any = record.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    if not isinstance(first, dict):
        return ""
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return ""
    content = delta.get("content")
    return content if isinstance(content, str) else ""
