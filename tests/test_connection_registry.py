"""Connection registry: bind/unbind bookkeeping across users and sessions."""
import asyncio
import random


async def test_bind_is_idempotent(registry):
    session = object()
    assert await registry.bind("alice", session) is True
    assert await registry.bind("alice", session) is False
    assert await registry.sessions_for("alice") == {session}


async def test_new_session_adds_instead_of_replacing(registry):
    first, second = object(), object()
    await registry.bind("alice", first)
    await registry.bind("alice", second)
    assert await registry.sessions_for("alice") == {first, second}


async def test_unbind_unknown_session_is_noop(registry):
    assert await registry.unbind(object()) == set()
    assert await registry.online_users() == set()


async def test_unbind_removes_only_that_handle(registry):
    tab_one, tab_two, other = object(), object(), object()
    await registry.bind("alice", tab_one)
    await registry.bind("alice", tab_two)
    await registry.bind("bob", other)

    assert await registry.unbind(tab_one) == {"alice"}
    assert await registry.sessions_for("alice") == {tab_two}
    assert await registry.sessions_for("bob") == {other}


async def test_unbind_handle_bound_to_several_users(registry):
    session = object()
    await registry.bind("alice", session)
    await registry.bind("bob", session)

    assert await registry.unbind(session) == {"alice", "bob"}
    assert await registry.sessions_for("alice") == set()
    assert await registry.sessions_for("bob") == set()
    assert await registry.session_count() == 0


async def test_sessions_for_returns_a_copy(registry):
    session = object()
    await registry.bind("alice", session)
    sessions = await registry.sessions_for("alice")
    sessions.clear()
    assert await registry.sessions_for("alice") == {session}


async def test_random_sequences_match_model(registry):
    rng = random.Random(1234)
    users = ["alice", "bob", "carol"]
    handles = [object() for _ in range(6)]
    expected = {user: set() for user in users}

    for _ in range(300):
        handle = rng.choice(handles)
        if rng.random() < 0.6:
            user = rng.choice(users)
            await registry.bind(user, handle)
            expected[user].add(handle)
        else:
            await registry.unbind(handle)
            for sessions in expected.values():
                sessions.discard(handle)

        for user in users:
            assert await registry.sessions_for(user) == expected[user]


async def test_concurrent_bind_and_unbind_leave_no_dangling_entries(registry):
    handles = [object() for _ in range(50)]

    await asyncio.gather(
        *(registry.bind(f"user-{i % 5}", handle) for i, handle in enumerate(handles)),
        *(registry.unbind(handle) for handle in handles[::2]),
    )
    # Whatever interleaving ran, a second unbind pass must empty everything.
    await asyncio.gather(*(registry.unbind(handle) for handle in handles))

    assert await registry.online_users() == set()
    assert await registry.session_count() == 0
