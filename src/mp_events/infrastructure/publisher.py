"""Post-commit fan-out of marketplace events over Redis pub/sub.

The marketplace_events table is the durable record; a publish failure is
logged and dropped so it can never undo a committed operation.
"""
import json
import logging

from redis.exceptions import RedisError

from config.settings import settings
from src.mp_common.redis_client import get_redis
from src.mp_events.domain.models import MarketEvent

logger = logging.getLogger(__name__)


async def publish_events(events: list[MarketEvent]) -> None:
    if not events:
        return
    try:
        redis = await get_redis()
        for event in events:
            await redis.publish(settings.MARKET_EVENTS_CHANNEL, json.dumps(event.to_dict()))
    except RedisError:
        logger.warning(
            "Event publish failed, %d event(s) only in marketplace_events", len(events),
            exc_info=True,
        )
