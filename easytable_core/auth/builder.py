"""
Auth Request Builder
====================
Maps a request kind onto the payload variant it produces.
"""

from enum import Enum
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from ..exceptions import InvalidKindError, InvalidRequestParamsError
from .models import (
    AuthRequest,
    CheckRevokeRequest,
    QuotaRequest,
    RevokeRequest,
    _WireModel,
)


class RequestKind(str, Enum):
    """Request kinds understood by ``build_request``."""
    REVOKE = "revoke"
    CHECK_REVOKE = "checkRevoke"
    USE = "use"
    USAGE = "usage"
    RESET_QUOTA = "resetQuota"


class UseParams(_WireModel):
    token: str
    ttl: Optional[int] = None
    expires_at: Optional[int] = None
    max_quota: int


class UsageParams(_WireModel):
    token: str


class ResetQuotaParams(_WireModel):
    token: str
    max_quota: Optional[int] = None


# kind -> (params model, payload model, fixed payload flags)
_KIND_TABLE = {
    RequestKind.REVOKE: (RevokeRequest, RevokeRequest, {}),
    RequestKind.CHECK_REVOKE: (CheckRevokeRequest, CheckRevokeRequest, {}),
    RequestKind.USE: (UseParams, QuotaRequest, {}),
    RequestKind.USAGE: (UsageParams, QuotaRequest, {"dry_run": True}),
    RequestKind.RESET_QUOTA: (ResetQuotaParams, QuotaRequest, {"reset": True}),
}


def _resolve_kind(kind: Union[RequestKind, str]) -> RequestKind:
    try:
        return RequestKind(kind)
    except ValueError:
        raise InvalidKindError(kind) from None


def build_request(
    kind: Union[RequestKind, str],
    params: Optional[Mapping[str, Any]] = None,
    trace_id: Optional[str] = None,
    **kwargs: Any,
) -> AuthRequest:
    """
    Build an auth request for the given kind.

    ``usage`` becomes a dry-run quota request and ``resetQuota`` a quota
    reset; ``use`` consumes one unit and requires ``maxQuota``.

    Args:
        kind: Request kind (RequestKind or its string value)
        params: Payload fields, camelCase or snake_case
        trace_id: Optional trace identifier
        **kwargs: Payload fields merged over ``params``

    Returns:
        AuthRequest with exactly one populated variant

    Raises:
        InvalidKindError: Unknown kind
        InvalidRequestParamsError: Params do not match the kind's shape
    """
    request_kind = _resolve_kind(kind)
    params_model, payload_model, flags = _KIND_TABLE[request_kind]

    fields = {**(params or {}), **kwargs}
    try:
        validated = params_model.model_validate(fields)
        if params_model is payload_model:
            payload = validated
        else:
            payload = payload_model(**validated.model_dump(exclude_none=True), **flags)
    except ValidationError as e:
        raise InvalidRequestParamsError(request_kind.value, details=e.errors(include_url=False)) from e

    return AuthRequest(payload=payload, trace_id=trace_id)
