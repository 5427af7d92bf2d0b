"""
Streaming endpoints.

Runs query and subject sessions as Server-Sent Events.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from finsight.api.dependencies import rate_limited
from finsight.api.models import ChatRequest, AnalysisRequest
from finsight.api.services import pipeline_service
from finsight.core.ratelimit import DEFAULT_PROFILE
from finsight.core.streaming import StreamSession, EventChannel, StreamEvent, events
from finsight.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/stream", tags=["streaming"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no"
}


async def _event_stream(channel: EventChannel):
    try:
        async for event in channel:
            yield event.to_sse()
    except Exception as e:
        logger.error(f"❌ Stream delivery failed: {str(e)}")
        yield StreamEvent(events.ERROR, {"message": str(e)}).to_sse()
    finally:
        # Client went away or the session ended
        channel.close()


def _sse_response(session: StreamSession) -> StreamingResponse:
    channel = pipeline_service.start_stream(session)
    return StreamingResponse(
        _event_stream(channel),
        media_type="text/event-stream",
        headers=SSE_HEADERS
    )


@router.post("/chat")
async def stream_chat(request: ChatRequest, identity: str = Depends(rate_limited(DEFAULT_PROFILE))):
    """Stream the answer to a free-text query."""
    session = StreamSession.for_query(request.query, identity=identity)
    return _sse_response(session)


@router.post("/analysis")
async def stream_analysis(request: AnalysisRequest, identity: str = Depends(rate_limited(DEFAULT_PROFILE))):
    """Stream a subject analysis."""
    session = StreamSession.for_subject(request.subject, request.time_horizon, identity=identity)
    return _sse_response(session)
