"""Notification store: record, pagination, read flags and counts."""
import math

import pytest

from app.lib.exceptions import (
    InvalidNotificationError,
    NotificationForbiddenError,
    NotificationNotFoundError,
)
from app.models.notification import NotificationKind


async def test_record_returns_unread_notification(store):
    notification = await store.record(
        "bob", "alice", "like", "A liked your post", subject="post-1"
    )
    assert notification.kind == NotificationKind.LIKE
    assert notification.subject == "post-1"
    assert notification.read is False
    assert notification.created_at.tzinfo is not None


async def test_record_follow_has_no_subject(store):
    notification = await store.record("bob", "alice", "follow", "A started following you")
    assert notification.subject is None


@pytest.mark.parametrize(
    "recipient, sender, kind, message",
    [
        ("", "alice", "like", "x"),
        ("bob", "", "like", "x"),
        ("bob", "alice", "like", ""),
        ("bob", "alice", "poke", "x"),
    ],
)
async def test_record_validates_fields(store, recipient, sender, kind, message):
    with pytest.raises(InvalidNotificationError):
        await store.record(recipient, sender, kind, message)


async def test_pages_cover_everything_once_newest_first(store):
    total, page_size = 7, 3
    recorded = [
        await store.record("bob", "alice", "comment", f"comment {i}", subject=f"post-{i}")
        for i in range(total)
    ]
    await store.record("carol", "alice", "like", "not for bob")

    seen = []
    for page in range(1, math.ceil(total / page_size) + 1):
        result = await store.list_by_recipient("bob", page, page_size)
        assert result.total_count == total
        seen.extend(result.items)

    assert [n.id for n in seen] == [n.id for n in reversed(recorded)]
    created = [n.created_at for n in seen]
    assert created == sorted(created, reverse=True)


async def test_page_past_the_end_is_empty(store):
    await store.record("bob", "alice", "like", "A liked your post")
    result = await store.list_by_recipient("bob", page=5, page_size=10)
    assert result.items == []
    assert result.total_count == 1


async def test_invalid_page_rejected(store):
    with pytest.raises(InvalidNotificationError):
        await store.list_by_recipient("bob", page=0, page_size=10)


async def test_mark_read_checks_existence_and_recipient(store):
    notification = await store.record("bob", "alice", "like", "A liked your post")

    with pytest.raises(NotificationNotFoundError):
        await store.mark_read("missing-id", "bob")
    with pytest.raises(NotificationForbiddenError):
        await store.mark_read(notification.id, "alice")

    assert await store.mark_read(notification.id, "bob") is True
    assert await store.mark_read(notification.id, "bob") is False
    assert (await store.get(notification.id)).read is True


async def test_mark_all_read_is_idempotent(store):
    for i in range(3):
        await store.record("bob", "alice", "like", f"like {i}")
    await store.record("carol", "alice", "like", "other user")

    assert await store.mark_all_read("bob") == 3
    assert await store.count_unread("bob") == 0
    assert await store.mark_all_read("bob") == 0
    assert await store.count_unread("bob") == 0
    assert await store.count_unread("carol") == 1


async def test_mark_all_read_returns_changed_ids(store):
    first = await store.record("bob", "alice", "like", "one")
    second = await store.record("bob", "carol", "follow", "two")
    await store.mark_read(first.id, "bob")

    assert await store.mark_all_read_ids("bob") == [second.id]
    assert await store.mark_all_read_ids("bob") == []


async def test_unread_count_matches_listing(store):
    first = await store.record("bob", "alice", "like", "one")
    await store.record("bob", "carol", "follow", "two")
    await store.mark_read(first.id, "bob")

    result = await store.list_by_recipient("bob", 1, 10)
    assert result.unread_count == await store.count_unread("bob") == 1
    assert sum(1 for n in result.items if not n.read) == 1
