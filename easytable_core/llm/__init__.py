"""
LLM Module
==========
Model API request building and streaming.
"""

from .models import TABLE_INSTRUCTION, build_llm_request, redact_request, to_image_url
from .client import LLMClient

__all__ = [
    "TABLE_INSTRUCTION",
    "build_llm_request",
    "redact_request",
    "to_image_url",
    "LLMClient",
]
