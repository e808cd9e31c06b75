"""Change feed websocket.

Clients subscribe to ``listings`` and/or ``bookings`` and refetch on each
event. Events carry ids only, never row contents.
"""

import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
from redis.exceptions import RedisError

from storeaway.services.change_feed import TOPICS, change_feed

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/changes")
async def stream_changes(
    websocket: WebSocket,
    topics: list[str] = Query(default=list(TOPICS)),
) -> None:
    """Stream change events until the client disconnects."""
    unknown = [topic for topic in topics if topic not in TOPICS]
    if unknown:
        await websocket.close(code=1008, reason=f"Unknown topics: {', '.join(unknown)}")
        return

    await websocket.accept()
    try:
        async for event in change_feed.subscribe(*topics):
            await websocket.send_json(event)
    except WebSocketDisconnect:
        logger.debug("Change feed client disconnected")
    except RedisError as e:
        logger.warning(f"Change feed unavailable: {e}")
        await websocket.close(code=1011, reason="Change feed unavailable")
