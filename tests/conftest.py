"""Pytest fixtures: in-memory Mongo, wired core components, fake sockets, test client."""
import asyncio

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from app.lib.config import ConfigSingleton
from app.lib.connection_registry import ConnectionRegistry
from app.lib.delivery_channel import DeliveryChannel
from app.lib.event_publisher import EventPublisher
from app.lib.notification_manager import NotificationManager
from app.lib.notification_store import NotificationStore
from app.lib.post_directory import PostDirectory
from app.lib.profile_directory import ProfileDirectory
from app.lib.websocket_manager import WebSocketManager
from main import create_app

USERS = [
    {"_id": "alice", "username": "A", "profilePicture": "https://img.example/a.png"},
    {"_id": "bob", "username": "B", "profilePicture": None},
    {"_id": "carol", "username": "carol", "profilePicture": None},
]

POSTS = [
    {"_id": "post-1", "author": "bob", "content": "First post"},
    {"_id": "post-2", "author": "bob", "content": "Second post"},
]


class FakeWebSocket:
    """Records frames sent to it; can be told to fail or stall."""

    def __init__(self, fail=False, delay=0.0):
        self.sent = []
        self.fail = fail
        self.delay = delay

    async def send_json(self, data):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("socket is broken")
        self.sent.append(data)

    def of_type(self, event_type):
        return [frame for frame in self.sent if frame.get("type") == event_type]


@pytest.fixture
def mongo_client():
    return AsyncMongoMockClient()


@pytest.fixture
async def database(mongo_client):
    database = mongo_client.get_database("social_test")
    await database.get_collection("users").insert_many([dict(user) for user in USERS])
    await database.get_collection("posts").insert_many([dict(post) for post in POSTS])
    return database


@pytest.fixture
def store(database):
    return NotificationStore(database)


@pytest.fixture
def profiles(database):
    return ProfileDirectory(database)


@pytest.fixture
def posts(database):
    return PostDirectory(database)


@pytest.fixture
def registry():
    return ConnectionRegistry()


@pytest.fixture
def channel(registry):
    return DeliveryChannel(registry)


@pytest.fixture
def publisher(store, registry, channel, profiles, posts):
    return EventPublisher(store, registry, channel, profiles, posts)


@pytest.fixture
def notification_manager(store, profiles, posts, publisher):
    return NotificationManager(store, profiles, posts, publisher)


@pytest.fixture
def websocket_manager(channel, notification_manager):
    return WebSocketManager(channel, notification_manager)


@pytest.fixture
def connect(channel):
    """Open a session over a fake socket, optionally joining it as a user."""

    async def _connect(user_id=None, **socket_options):
        websocket = FakeWebSocket(**socket_options)
        session = channel.on_connect(websocket)
        if user_id is not None:
            await channel.on_join(session, user_id)
        return session, websocket

    return _connect


@pytest.fixture
def client():
    """TestClient; lifespan wires every manager against the in-memory Mongo."""
    ConfigSingleton.reset()
    app = create_app(
        mongo_client=AsyncMongoMockClient(),
        config_overrides={
            "mongo_db_name": "social_test",
            "default_page_size": 20,
            "max_page_size": 50,
            "log_level": "WARNING",
        },
    )
    with TestClient(app) as c:
        c.portal.call(seed_users, app.state.profile_directory)
        c.portal.call(seed_posts, app.state.post_directory)
        yield c
    ConfigSingleton.reset()


async def seed_users(profile_directory):
    await profile_directory.collection.insert_many([dict(user) for user in USERS])


async def seed_posts(post_directory):
    await post_directory.collection.insert_many([dict(post) for post in POSTS])


@pytest.fixture
def headers_for():
    """X-User-ID header as forwarded by the auth layer."""
    return lambda user_id: {"X-User-ID": user_id}


@pytest.fixture
def fake_websocket():
    return FakeWebSocket
