"""
Change notifications published after each committed mutation

Subscribers receive ``{"entity": kind, "id": id}`` and re-read the
authoritative state; delivery is best effort and never undoes a commit.
"""

import json
import logging
from typing import List, Tuple

from app.core.config import settings
from app.core.redis_client import get_redis_client

logger = logging.getLogger(__name__)

ENTITY_ACCOUNT = "account"
ENTITY_LEDGER = "ledger"
ENTITY_TOURNAMENT = "tournament"
ENTITY_PAYMENT_REQUEST = "payment_request"
ENTITY_WITHDRAWAL_REQUEST = "withdrawal_request"


class ChangePublisher:
    """Base publisher; subclasses deliver (entity_kind, entity_id) events."""

    async def publish(self, entity_kind: str, entity_id) -> None:
        raise NotImplementedError

    async def publish_all(self, *events: Tuple[str, object]) -> None:
        for entity_kind, entity_id in events:
            await self.publish(entity_kind, entity_id)


class RedisChangePublisher(ChangePublisher):
    """Publishes change events on a Redis pub/sub channel."""

    def __init__(self, redis_client=None, channel: str = None):
        self.redis_client = redis_client
        self.channel = channel or settings.change_channel

    async def publish(self, entity_kind: str, entity_id) -> None:
        payload = json.dumps({"entity": entity_kind, "id": str(entity_id)})
        try:
            client = self.redis_client or await get_redis_client()
            await client.publish(self.channel, payload)
        except Exception as e:
            logger.error(f"Failed to publish {entity_kind} {entity_id} change: {e}")


class InMemoryPublisher(ChangePublisher):
    """Records events in order; used by tests and local tooling."""

    def __init__(self):
        self.events: List[Tuple[str, str]] = []

    async def publish(self, entity_kind: str, entity_id) -> None:
        self.events.append((entity_kind, str(entity_id)))

    def of_kind(self, entity_kind: str) -> List[str]:
        return [entity_id for kind, entity_id in self.events if kind == entity_kind]


_publisher: ChangePublisher = RedisChangePublisher()


def get_publisher() -> ChangePublisher:
    """FastAPI dependency returning the process-wide publisher"""
    return _publisher
