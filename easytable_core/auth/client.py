"""
Auth Service Client
===================
Sends encrypted requests to the quota/auth service.

Usage:
    from easytable_core.auth import AuthClient

    async with AuthClient(AuthServiceConfig()) as client:
        decision = await client.check_quota(token)
        if not decision.allowed:
            ...
"""

import math
from typing import Any, Optional

import httpx
import structlog

from ..config import AuthServiceConfig
from ..crypto import AesGcmCipher, Cipher, derive_key
from ..exceptions import AuthTransportError
from .builder import RequestKind, build_request
from .codec import encrypt_request
from .models import AuthRequest, DenyReason, QuotaDecision

logger = structlog.get_logger(__name__)


class AuthClient:
    """
    Client for the quota/auth service.

    Features:
    - AES-256-GCM sealed requests (key derived once at construction)
    - One attempt per call, no retries
    - Fail-closed quota checks that keep the denial reason
    """

    def __init__(
        self,
        config: Optional[AuthServiceConfig] = None,
        cipher: Optional[Cipher] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config or AuthServiceConfig()
        self.cipher = cipher or AesGcmCipher()
        self._key = derive_key(self.config.enc_key)
        self._client = http_client
        self._owns_client = http_client is None

    async def __aenter__(self):
        self._get_client()
        return self

    async def __aexit__(self, *args):
        await self.close()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def send_envelope(self, envelope: bytes, url: Optional[str] = None) -> Any:
        """
        POST an encrypted envelope and return the parsed JSON response.

        Args:
            envelope: Encrypted request bytes
            url: Endpoint override (defaults to the configured URL)

        Raises:
            AuthTransportError: Network failure, non-2xx status or non-JSON body
        """
        client = self._get_client()
        url = url or self.config.url
        try:
            response = await client.post(
                url,
                content=envelope,
                headers={"Content-Type": "application/octet-stream"},
            )
        except httpx.HTTPError as e:
            logger.error("auth.transport_failed", url=url, error=str(e))
            raise AuthTransportError(f"Failed to send auth request: {e}") from e

        if not response.is_success:
            logger.warning(
                "auth.request_rejected",
                url=url,
                status_code=response.status_code,
                reason=response.reason_phrase,
            )
            raise AuthTransportError(
                f"Failed to send auth request: {response.reason_phrase}",
                status_code=response.status_code,
                status_text=response.reason_phrase,
            )

        try:
            return response.json()
        except ValueError as e:
            raise AuthTransportError(
                "Auth service returned a non-JSON body",
                status_code=response.status_code,
                status_text=response.reason_phrase,
            ) from e

    async def send_request(self, request: AuthRequest) -> Any:
        """Encrypt a request and send it."""
        envelope = encrypt_request(request, self._key, self.cipher)
        return await self.send_envelope(envelope)

    # Convenience operations

    async def revoke(self, token: str, ttl: Optional[int] = None, expires_at: Optional[int] = None, trace_id: Optional[str] = None) -> Any:
        return await self.send_request(
            build_request(RequestKind.REVOKE, token=token, ttl=ttl, expires_at=expires_at, trace_id=trace_id)
        )

    async def check_revoke(self, token: str, trace_id: Optional[str] = None) -> Any:
        return await self.send_request(build_request(RequestKind.CHECK_REVOKE, token=token, trace_id=trace_id))

    async def use_quota(self, token: str, max_quota: Optional[int] = None, trace_id: Optional[str] = None) -> Any:
        """Consume one unit of quota for ``token``."""
        max_quota = self.config.max_quota if max_quota is None else max_quota
        return await self.send_request(
            build_request(RequestKind.USE, token=token, max_quota=max_quota, trace_id=trace_id)
        )

    async def get_usage(self, token: str, trace_id: Optional[str] = None) -> Any:
        """Report usage without consuming quota."""
        return await self.send_request(build_request(RequestKind.USAGE, token=token, trace_id=trace_id))

    async def reset_quota(self, token: str, max_quota: Optional[int] = None, trace_id: Optional[str] = None) -> Any:
        return await self.send_request(
            build_request(RequestKind.RESET_QUOTA, token=token, max_quota=max_quota, trace_id=trace_id)
        )

    async def check_quota(self, token: str, trace_id: Optional[str] = None) -> QuotaDecision:
        """
        Consume one unit and decide whether the extraction may proceed.

        Fails closed: transport errors and missing or non-positive quota
        values all deny, each with its own reason.
        """
        try:
            result = await self.use_quota(token, trace_id=trace_id)
        except AuthTransportError as e:
            logger.warning("auth.quota_denied", reason=DenyReason.AUTH_UNAVAILABLE.value, status_code=e.status_code)
            return QuotaDecision.deny(DenyReason.AUTH_UNAVAILABLE)

        remaining = _extract_quota(result)
        if remaining is None:
            logger.warning("auth.quota_denied", reason=DenyReason.MALFORMED_RESPONSE.value)
            return QuotaDecision.deny(DenyReason.MALFORMED_RESPONSE)
        if remaining <= 0:
            logger.info("auth.quota_denied", reason=DenyReason.QUOTA_EXHAUSTED.value, remaining=remaining)
            return QuotaDecision.deny(DenyReason.QUOTA_EXHAUSTED, remaining=remaining)

        logger.info("auth.quota_allowed", remaining=remaining)
        return QuotaDecision.allow(remaining)


def _extract_quota(result: Any) -> Optional[float]:
    """Read ``quota.quota`` from a response; None when absent or not a finite number."""
    if not isinstance(result, dict):
        return None
    quota = result.get("quota")
    if not isinstance(quota, dict):
        return None
    value = quota.get("quota")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value
