"""
Auth Request Models
===================
Wire models for the quota/auth service protocol.

An ``AuthRequest`` carries exactly one payload variant. On the wire it is
rendered as ``{"traceId": ..., "<variant key>": {...}}`` with camelCase
field names and unset fields omitted.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )

    @model_validator(mode="after")
    def check_single_expiry(self):
        # ttl and expiresAt describe the same expiry
        if getattr(self, "ttl", None) is not None and getattr(self, "expires_at", None) is not None:
            raise ValueError("ttl and expiresAt are mutually exclusive")
        return self

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class RevokeRequest(_WireModel):
    wire_key: ClassVar[str] = "revoke"

    token: str
    ttl: Optional[int] = None
    expires_at: Optional[int] = None


class CheckRevokeRequest(_WireModel):
    wire_key: ClassVar[str] = "checkRevoke"

    token: str


class QuotaRequest(_WireModel):
    """
    Quota operation.

    ``dry_run`` reports usage without consuming quota, ``reset`` resets the
    counter to ``max_quota``. With neither flag one unit is consumed.
    """
    wire_key: ClassVar[str] = "quota"

    token: str
    ttl: Optional[int] = None
    expires_at: Optional[int] = None
    max_quota: Optional[int] = None
    dry_run: Optional[bool] = None
    reset: Optional[bool] = None


AuthPayload = Union[RevokeRequest, CheckRevokeRequest, QuotaRequest]

PAYLOAD_TYPES: dict = {
    RevokeRequest.wire_key: RevokeRequest,
    CheckRevokeRequest.wire_key: CheckRevokeRequest,
    QuotaRequest.wire_key: QuotaRequest,
}


class AuthRequest(BaseModel):
    """Envelope holding an optional trace id and exactly one payload."""
    model_config = ConfigDict(frozen=True)

    payload: AuthPayload
    trace_id: Optional[str] = None

    @property
    def wire_key(self) -> str:
        return self.payload.wire_key

    def to_wire(self) -> dict:
        wire: dict = {}
        if self.trace_id is not None:
            wire["traceId"] = self.trace_id
        wire[self.payload.wire_key] = self.payload.to_wire()
        return wire

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> "AuthRequest":
        """Parse the wire form back; rejects zero or several populated variants."""
        variants = [key for key in PAYLOAD_TYPES if data.get(key) is not None]
        if len(variants) != 1:
            raise ValueError(f"Expected exactly one request variant, found {variants or 'none'}")
        key = variants[0]
        return cls(
            payload=PAYLOAD_TYPES[key].model_validate(data[key]),
            trace_id=data.get("traceId"),
        )


# =============================================================================
# Quota decisions
# =============================================================================

class DenyReason(str, Enum):
    """Why the quota gate refused an extraction."""
    QUOTA_EXHAUSTED = "quota_exhausted"
    MISSING_TOKEN = "missing_token"
    AUTH_UNAVAILABLE = "auth_unavailable"
    MALFORMED_RESPONSE = "malformed_response"


@dataclass
class QuotaDecision:
    """Result of a fail-closed quota check."""
    allowed: bool
    remaining: Optional[float] = None
    reason: Optional[DenyReason] = None

    @classmethod
    def allow(cls, remaining: Optional[float]) -> "QuotaDecision":
        return cls(allowed=True, remaining=remaining)

    @classmethod
    def deny(cls, reason: DenyReason, remaining: Optional[float] = None) -> "QuotaDecision":
        return cls(allowed=False, remaining=remaining, reason=reason)
