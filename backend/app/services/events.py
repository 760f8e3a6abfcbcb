"""
backend/app/services/events.py

Event emitter: pushes events to Redis queues for downstream consumers.

Slot lifecycle events go to the `events:slots` list (queue name comes from
settings), one JSON document per event.
"""

import json
import time
import logging

from ..config import settings
from ..redis_client import redis_client

logger = logging.getLogger(__name__)


def emit_event(event_type: str, payload: dict, queue: str | None = None) -> None:
    """
    Emit an event.

    Pushed to a Redis list for the consumer loop. Failures are logged and
    never propagate: the emitting operation has already been committed.
    """
    queue = queue or settings.slot_events_queue
    event = {
        "type": event_type,
        **payload,
        "ts": int(time.time()),
    }
    try:
        redis_client.rpush(queue, json.dumps(event, default=str))
        logger.info(f"Event emitted: {event_type} → {queue}")
    except Exception as e:
        logger.error(f"Failed to emit event {event_type}: {e}")
