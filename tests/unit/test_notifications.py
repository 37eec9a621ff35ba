"""
Unit tests for change publishers
"""

import json
import pytest
from uuid import uuid4
from unittest.mock import AsyncMock

from app.services.notifications import (
    InMemoryPublisher, RedisChangePublisher, ENTITY_LEDGER, ENTITY_TOURNAMENT
)


@pytest.mark.asyncio
async def test_redis_publisher_sends_entity_and_id():
    redis_client = AsyncMock()
    publisher = RedisChangePublisher(redis_client=redis_client, channel="test:changes")
    entity_id = uuid4()

    await publisher.publish(ENTITY_LEDGER, entity_id)

    channel, payload = redis_client.publish.call_args.args
    assert channel == "test:changes"
    assert json.loads(payload) == {"entity": "ledger", "id": str(entity_id)}


@pytest.mark.asyncio
async def test_redis_publish_failure_is_logged_not_raised(caplog):
    redis_client = AsyncMock()
    redis_client.publish.side_effect = ConnectionError("redis down")
    publisher = RedisChangePublisher(redis_client=redis_client, channel="test:changes")

    await publisher.publish(ENTITY_TOURNAMENT, "t1")

    assert "Failed to publish tournament t1" in caplog.text


@pytest.mark.asyncio
async def test_in_memory_publisher_records_in_order():
    publisher = InMemoryPublisher()

    await publisher.publish_all((ENTITY_TOURNAMENT, "t1"), (ENTITY_LEDGER, "l1"), (ENTITY_LEDGER, "l2"))

    assert publisher.events == [("tournament", "t1"), ("ledger", "l1"), ("ledger", "l2")]
    assert publisher.of_kind(ENTITY_LEDGER) == ["l1", "l2"]
