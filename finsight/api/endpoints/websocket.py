"""
WebSocket endpoint.

One connection carries any number of sessions, one at a time. Messages
are JSON objects with a ``type`` of ``chat``, ``analysis`` or
``chat_about_analysis``.
"""

import json
from typing import Any
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as SchemaError
from finsight.api.models import SocketMessage, StreamEventMessage
from finsight.api.services import pipeline_service
from finsight.core.ratelimit import DEFAULT_PROFILE
from finsight.core.streaming import StreamSession, events
from finsight.utils.logging import get_logger
from finsight.utils.exceptions import FinsightException

logger = get_logger(__name__)

router = APIRouter(tags=["websocket"])


async def _send(websocket: WebSocket, event: str, data: Any = None) -> None:
    await websocket.send_json(StreamEventMessage(event=event, data=data).model_dump())


async def _run_session(websocket: WebSocket, session: StreamSession) -> None:
    channel = pipeline_service.start_stream(session)
    try:
        async for event in channel:
            await _send(websocket, event.event, event.data)
    finally:
        channel.close()


async def _handle(websocket: WebSocket, message: SocketMessage, identity: str) -> None:
    await pipeline_service.enforce(DEFAULT_PROFILE, identity)

    if message.type == "chat":
        await _run_session(websocket, StreamSession.for_query(message.query, identity=identity))
    elif message.type == "analysis":
        session = StreamSession.for_subject(message.subject, message.time_horizon, identity=identity)
        await _run_session(websocket, session)
    elif message.type == "chat_about_analysis":
        result = await pipeline_service.follow_up(
            message.subject, message.analysis, message.message, identity=identity
        )
        await _send(websocket, events.CONTENT, result["response"])
        await _send(websocket, events.DONE, {"cached": False, "provider": result["provider"]})
    else:
        await _send(websocket, events.ERROR, {"message": f"Unknown message type: {message.type}"})


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Duplex session endpoint."""
    await websocket.accept()
    identity = websocket.client.host if websocket.client else "unknown"
    logger.info(f"🔗 WebSocket connected: {identity}")

    if not pipeline_service.is_ready():
        await _send(websocket, events.ERROR, {"message": "Pipeline not initialized"})
        await websocket.close(code=1011)
        return

    try:
        while True:
            text = await websocket.receive_text()
            try:
                message = SocketMessage(**json.loads(text))
            except SchemaError as e:
                await _send(websocket, events.ERROR, {"message": f"Invalid message: {e.errors()[0]['msg']}"})
                continue
            except (ValueError, TypeError):
                # Not JSON, or JSON that is not an object
                await _send(websocket, events.ERROR, {"message": "Invalid message: expected a JSON object"})
                continue

            try:
                await _handle(websocket, message, identity)
            except FinsightException as e:
                logger.info(f"🚫 WebSocket request rejected: {str(e)}")
                await _send(websocket, events.ERROR, {"message": str(e)})

    except WebSocketDisconnect:
        logger.info(f"🔌 WebSocket disconnected: {identity}")
