import json

import pytest
import redis.asyncio as redis

from storeaway.services.change_feed import ChangeFeed


class FakeRedis:
    def __init__(self, fail: bool = False) -> None:
        self.published: list[tuple[str, dict]] = []
        self.fail = fail

    async def publish(self, channel: str, message: str) -> int:
        if self.fail:
            raise redis.ConnectionError("connection refused")
        self.published.append((channel, json.loads(message)))
        return 1


@pytest.fixture
def change_feed() -> ChangeFeed:
    return ChangeFeed(redis_url="redis://localhost:6379/15", prefix="test")


def test_channel_names(change_feed):
    assert change_feed.channel("listings") == "test:listings"
    assert change_feed.channel("bookings") == "test:bookings"


def test_unknown_topic(change_feed):
    with pytest.raises(ValueError):
        change_feed.channel("payments")


async def test_publish_serializes_event(change_feed):
    fake = FakeRedis()
    change_feed._redis = fake

    await change_feed.publish("listings", "UPDATE", 42, is_available=False)

    channel, message = fake.published[0]
    assert channel == "test:listings"
    assert message["event"] == "UPDATE"
    assert message["id"] == "42"
    assert message["is_available"] is False
    assert "at" in message


async def test_publish_failure_is_logged_not_raised(change_feed, caplog):
    change_feed._redis = FakeRedis(fail=True)

    await change_feed.publish("bookings", "INSERT", "abc")

    assert "Change feed publish to 'bookings' failed" in caplog.text
