"""
LLM Request Models
==================
Request body for the vision chat-completions call and image URL handling.
"""

import base64
from typing import Any, Dict, Union

TABLE_INSTRUCTION = (
    "Please analyze this image and extract any tables as HTML tables. "
    "Handle line wraps in cells carefully, using '<br/>' when needed.\n"
    "The <table> tag should have the class 'easy-table', "
    "no other classes or attributes should be added to the table.\n"
)

# (magic prefix, media type)
_IMAGE_SIGNATURES = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"BM", "image/bmp"),
)

_URL_PREFIXES = (b"data:", b"http://", b"https://")


def sniff_media_type(data: bytes) -> str:
    for signature, media_type in _IMAGE_SIGNATURES:
        if data.startswith(signature):
            return media_type
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return "application/octet-stream"


def to_image_url(image: Union[str, bytes]) -> str:
    """
    Normalize an inbound image payload into an ``image_url`` value.

    Data URLs and http(s) URLs pass through as text; raw image bytes are
    wrapped in a base64 data URL. Returns "" for an empty payload.
    """
    if isinstance(image, str):
        return image.strip()
    data = bytes(image)
    text = data.strip()
    if not text:
        return ""
    if text.startswith(_URL_PREFIXES):
        return text.decode("utf-8", errors="replace")
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{sniff_media_type(data)};base64,{encoded}"


def build_llm_request(image: str, model: str, instruction: str = TABLE_INSTRUCTION) -> Dict[str, Any]:
    """Build the streaming chat-completions body for one image."""
    return {
        "model": model,
        "messages": [
            {
                "role": "user",
                "content": [
                    {"type": "image_url", "image_url": {"url": image}},
                    {"type": "text", "text": instruction},
                ],
            }
        ],
        "stream": True,
        "stream_options": {"include_usage": True},
    }


def redact_request(body: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of the request body with image URLs replaced, for logging."""
    messages = []
    for message in body.get("messages", []):
        content = []
        for part in message.get("content", []):
            if part.get("type") == "image_url":
                part = {**part, "image_url": {"url": "omit"}}
            content.append(part)
        messages.append({**message, "content": content})
    return {**body, "messages": messages}
