"""
Table Extraction Service
========================
Gates an extraction on the quota service, then streams fragments from the
model API.

Usage:
    service = TableExtractionService(LLMClient(), AuthClient())
    fragments = await service.extract(image, token=token)
    async for fragment in fragments:
        ...
"""

from typing import AsyncIterator, Optional, Union

import structlog

from .auth import AuthClient, DenyReason, QuotaDecision
from .config import AuthServiceConfig, LLMConfig
from .exceptions import MissingImageError, QuotaDeniedError
from .llm import LLMClient, to_image_url

logger = structlog.get_logger(__name__)


class TableExtractionService:
    """
    One extraction per call, no shared mutable state between calls.

    When an auth client is configured every extraction needs a token (the
    caller's, or the configured default) and a positive quota; the check
    runs once, before the model API is contacted.
    """

    def __init__(self, llm_client: LLMClient, auth_client: Optional[AuthClient] = None):
        self.llm_client = llm_client
        self.auth_client = auth_client

    async def authorize(self, token: Optional[str], trace_id: Optional[str] = None) -> QuotaDecision:
        if self.auth_client is None:
            return QuotaDecision.allow(None)
        token = token or self.auth_client.config.token
        if not token:
            logger.warning("extract.quota_denied", reason=DenyReason.MISSING_TOKEN.value)
            return QuotaDecision.deny(DenyReason.MISSING_TOKEN)
        return await self.auth_client.check_quota(token, trace_id=trace_id)

    async def extract(
        self,
        image: Union[str, bytes, None],
        token: Optional[str] = None,
        trace_id: Optional[str] = None,
    ) -> AsyncIterator[str]:
        """
        Start an extraction and return its fragment stream.

        Raises:
            MissingImageError: No image supplied
            QuotaDeniedError: Quota gate refused the call
            UpstreamTransportError: Model API request failed
        """
        image_url = to_image_url(image) if image else ""
        if not image_url:
            raise MissingImageError()

        decision = await self.authorize(token, trace_id=trace_id)
        if not decision.allowed:
            raise QuotaDeniedError(decision)

        logger.info("extract.started", trace_id=trace_id, remaining=decision.remaining)
        return await self.llm_client.stream_fragments(image_url)


def create_service(
    llm_config: Optional[LLMConfig] = None,
    auth_config: Optional[AuthServiceConfig] = None,
) -> TableExtractionService:
    """Build a service from configuration; quota gating only when the auth service is configured."""
    auth_config = auth_config or AuthServiceConfig()
    auth_client = AuthClient(auth_config) if auth_config.enabled else None
    if auth_client is None:
        logger.warning("extract.quota_gate_disabled")
    elif auth_config.max_quota <= 0:
        logger.warning("extract.max_quota_unset", max_quota=auth_config.max_quota)
    return TableExtractionService(LLMClient(llm_config), auth_client)
