"""
LLM Client
==========
Streams table extractions from the upstream chat-completions API.
"""

from contextlib import aclosing
from typing import AsyncIterator, Callable, Optional

import httpx
import structlog

from ..config import LLMConfig
from ..exceptions import UpstreamTransportError
from ..stream import ExtractionStreamPipeline, FragmentStream, SSEContentExtractor, UsageStats
from .models import build_llm_request, redact_request

logger = structlog.get_logger(__name__)

# Upstream error bodies are kept whole on the exception, trimmed in logs
LOG_BODY_LIMIT = 2000


class LLMClient:
    """
    Client for the upstream model API.

    ``stream_fragments`` returns only after the upstream answered 200, so
    transport failures surface before any fragment is produced.
    """

    def __init__(
        self,
        config: Optional[LLMConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        on_usage: Optional[Callable[[UsageStats], None]] = None,
    ):
        self.config = config or LLMConfig()
        self.on_usage = on_usage
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

    def _get_headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.api_key}",
            "x-portkey-provider": self.config.provider,
        }

    async def stream_fragments(self, image: str) -> FragmentStream:
        """
        Send the extraction request and return the fragment stream.

        Closing the stream releases the upstream response, whether or not
        any fragment was consumed.

        Raises:
            UpstreamTransportError: The request failed or the status was not 200
        """
        response = await self._send(image)
        return FragmentStream(self._fragments(response), response.aclose)

    async def _send(self, image: str) -> httpx.Response:
        client = self._get_client()
        url = self.config.completions_url
        body = build_llm_request(image, self.config.model)
        logger.info("llm.request", url=url, body=redact_request(body))

        request = client.build_request("POST", url, json=body, headers=self._get_headers())
        try:
            response = await client.send(request, stream=True)
        except httpx.HTTPError as e:
            logger.error("llm.transport_failed", url=url, error=str(e))
            raise UpstreamTransportError(f"Failed to send request to LLM: {e}") from e

        if response.status_code != 200:
            try:
                error_body = (await response.aread()).decode("utf-8", errors="replace")
            except httpx.HTTPError:
                error_body = ""
            finally:
                await response.aclose()
            logger.error("llm.request_failed", status_code=response.status_code, body=error_body[:LOG_BODY_LIMIT])
            raise UpstreamTransportError(
                "Failed to send request to LLM",
                status_code=response.status_code,
                body=error_body,
            )
        return response

    async def _fragments(self, response: httpx.Response) -> AsyncIterator[str]:
        pipeline = ExtractionStreamPipeline(SSEContentExtractor(on_usage=self.on_usage))
        try:
            async with aclosing(pipeline.stream(response.aiter_bytes())) as fragments:
                async for fragment in fragments:
                    yield fragment
        except httpx.HTTPError as e:
            logger.error("llm.stream_interrupted", error=str(e))
            raise UpstreamTransportError(f"LLM stream interrupted: {e}") from e
        finally:
            await response.aclose()
