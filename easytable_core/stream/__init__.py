"""
Stream Module
=============
Incremental decoding of the model API's streamed response.
"""

from .splitter import ChunkLineSplitter, iter_lines
from .extractor import SSEContentExtractor, UsageStats, DATA_PREFIX
from .pipeline import ExtractionStreamPipeline, FragmentStream

__all__ = [
    "ChunkLineSplitter",
    "iter_lines",
    "SSEContentExtractor",
    "UsageStats",
    "DATA_PREFIX",
    "ExtractionStreamPipeline",
    "FragmentStream",
]
