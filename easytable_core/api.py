"""
Extraction Router
=================
FastAPI surface: raw image in, chunked HTML table markup out.
"""

from fastapi import APIRouter, Request, Response
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask
import structlog

from .exceptions import MissingImageError, QuotaDeniedError, UpstreamTransportError
from .service import TableExtractionService

logger = structlog.get_logger(__name__)

TOKEN_HEADER = "X-Auth-Token"
TRACE_HEADER = "X-Request-ID"


def create_extract_router(
    service: TableExtractionService,
    path: str = "/api/extract",
) -> APIRouter:
    """
    Create the extraction router.

    Args:
        service: Configured extraction service
        path: Route path for the POST endpoint

    Returns:
        FastAPI router mapping 400 (no image), 403 (quota denied) and
        500 (upstream failure)
    """
    router = APIRouter(tags=["Extract"])

    @router.post(path)
    async def extract(request: Request):
        """Stream extracted tables for the image in the request body."""
        image = await request.body()
        token = request.headers.get(TOKEN_HEADER)
        trace_id = request.headers.get(TRACE_HEADER)

        try:
            fragments = await service.extract(image, token=token, trace_id=trace_id)
        except MissingImageError as e:
            return Response(e.message, status_code=400, media_type="text/plain")
        except QuotaDeniedError as e:
            logger.info("extract.forbidden", reason=e.decision.reason.value)
            return Response("Quota exhausted", status_code=403, media_type="text/plain")
        except UpstreamTransportError as e:
            return Response(f"Failed to send request to LLM \n{e.body}", status_code=500, media_type="text/plain")

        # the stream may never be iterated if the client is already gone
        return StreamingResponse(fragments, media_type="text/html", background=BackgroundTask(fragments.aclose))

    return router
