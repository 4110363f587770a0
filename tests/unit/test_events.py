"""Unit tests for marketplace event serialisation, logging and publishing."""

import json
from unittest.mock import AsyncMock, patch

from redis.exceptions import ConnectionError as RedisConnectionError

from src.mp_common.enums import MarketEventType
from src.mp_events.domain.models import MarketEvent
from src.mp_events.infrastructure.persistence import MarketEventLog
from src.mp_events.infrastructure.publisher import publish_events

COLLECTION = "0x" + "c" * 40
BUYER = "0x" + "b" * 40


def _sold() -> MarketEvent:
    return MarketEvent(
        MarketEventType.ITEM_SOLD,
        actor=BUYER,
        collection=COLLECTION,
        item_id=2**200,
        amount=1000,
        payload={"fee": 25},
    )


def test_to_dict_stringifies_item_id() -> None:
    data = _sold().to_dict()
    assert data["event_type"] == "ItemSold"
    assert data["item_id"] == str(2**200)
    assert data["fee"] == 25
    assert json.loads(json.dumps(data)) == data


async def test_append_writes_json_payload() -> None:
    db = AsyncMock()
    await MarketEventLog().append(db, _sold())

    params = db.execute.await_args.args[1]
    assert params["event_type"] == "ItemSold"
    assert params["actor"] == BUYER
    assert json.loads(params["payload"])["amount"] == 1000


async def test_publish_sends_each_event() -> None:
    redis = AsyncMock()
    with patch(
        "src.mp_events.infrastructure.publisher.get_redis", AsyncMock(return_value=redis)
    ):
        await publish_events([_sold(), _sold()])

    assert redis.publish.await_count == 2
    channel, message = redis.publish.await_args.args
    assert channel == "marketplace:events"
    assert json.loads(message)["event_type"] == "ItemSold"


async def test_publish_failure_is_swallowed() -> None:
    redis = AsyncMock()
    redis.publish.side_effect = RedisConnectionError("down")
    with patch(
        "src.mp_events.infrastructure.publisher.get_redis", AsyncMock(return_value=redis)
    ):
        await publish_events([_sold()])


async def test_publish_nothing_does_not_connect() -> None:
    get_redis = AsyncMock()
    with patch("src.mp_events.infrastructure.publisher.get_redis", get_redis):
        await publish_events([])
    get_redis.assert_not_awaited()
