"""
EasyTable Core Library
======================
Streaming table extraction relay: encrypted quota authorization and
incremental decoding of the model API's streamed response.
"""

__version__ = "0.1.0"

# Config
from easytable_core.config import LLMConfig, AuthServiceConfig

# Errors
from easytable_core.exceptions import (
    EasyTableError,
    InvalidKindError,
    InvalidRequestParamsError,
    EncryptionFailedError,
    AuthTransportError,
    UpstreamTransportError,
    MalformedUpstreamLine,
    MissingImageError,
    QuotaDeniedError,
)

# Crypto
from easytable_core.crypto import SymmetricKey, derive_key, AesGcmCipher

# Auth
from easytable_core.auth import (
    AuthRequest,
    RevokeRequest,
    CheckRevokeRequest,
    QuotaRequest,
    RequestKind,
    build_request,
    encrypt_request,
    decrypt_envelope,
    AuthClient,
    DenyReason,
    QuotaDecision,
)

# Stream
from easytable_core.stream import (
    ChunkLineSplitter,
    SSEContentExtractor,
    ExtractionStreamPipeline,
    UsageStats,
)

# LLM
from easytable_core.llm import LLMClient, build_llm_request

# Service
from easytable_core.service import TableExtractionService, create_service

__all__ = [
    # Config
    "LLMConfig",
    "AuthServiceConfig",
    # Errors
    "EasyTableError",
    "InvalidKindError",
    "InvalidRequestParamsError",
    "EncryptionFailedError",
    "AuthTransportError",
    "UpstreamTransportError",
    "MalformedUpstreamLine",
    "MissingImageError",
    "QuotaDeniedError",
    # Crypto
    "SymmetricKey",
    "derive_key",
    "AesGcmCipher",
    # Auth
    "AuthRequest",
    "RevokeRequest",
    "CheckRevokeRequest",
    "QuotaRequest",
    "RequestKind",
    "build_request",
    "encrypt_request",
    "decrypt_envelope",
    "AuthClient",
    "DenyReason",
    "QuotaDecision",
    # Stream
    "ChunkLineSplitter",
    "SSEContentExtractor",
    "ExtractionStreamPipeline",
    "UsageStats",
    # LLM
    "LLMClient",
    "build_llm_request",
    # Service
    "TableExtractionService",
    "create_service",
]
