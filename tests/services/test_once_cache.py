"""Once cache tests: session-scoped memoization, reset, fallback, single flight.

Tests cover:
    - Hit after first resolution (resolver invoked once)
    - Reset by path and reset "all"
    - Sessionless requests always resolve
    - Non-serializable values returned but not stored
    - Distinct paths and distinct sessions never collide
    - Concurrent requests in one session resolve once, with shared or copied sessions
    - Resolver exceptions propagate and store nothing
"""

import asyncio
import json

import pytest

from pageprops.services.once_cache import OnceCache


def _resolver(fn):
    async def resolve():
        return fn()
    return resolve


# --- Hits and resets -----------------------------------------------------------

async def test_second_resolution_hits_cache(cache, counter, make_context):
    session = {}
    first = await cache.get_or_resolve("translations", make_context(session=session), _resolver(counter))
    second = await cache.get_or_resolve("translations", make_context(session=session), _resolver(counter))
    assert counter.calls["count"] == 1
    assert first == second == {"hello": "Hello"}


async def test_value_stored_as_json(cache, counter, make_context):
    session = {}
    ctx = make_context(session=session)
    await cache.get_or_resolve("translations", ctx, _resolver(counter))
    stored = session[cache.cache_key(ctx.session_id, "translations")]
    assert json.loads(stored) == {"hello": "Hello"}


async def test_reset_forces_reresolution(cache, counter, make_context):
    session = {}
    await cache.get_or_resolve("translations", make_context(session=session), _resolver(counter))
    await cache.get_or_resolve(
        "translations", make_context(session=session, reset="translations"), _resolver(counter),
    )
    assert counter.calls["count"] == 2


async def test_reset_of_other_path_keeps_entry(cache, counter, make_context):
    session = {}
    await cache.get_or_resolve("translations", make_context(session=session), _resolver(counter))
    await cache.get_or_resolve(
        "translations", make_context(session=session, reset="permissions"), _resolver(counter),
    )
    assert counter.calls["count"] == 1


async def test_reset_all(cache, make_context):
    session = {}
    counts = {"a": 0, "b": 0}

    def bump(name):
        async def resolve():
            counts[name] += 1
            return counts[name]
        return resolve

    for reset in (None, "all"):
        ctx = make_context(session=session, reset=reset)
        await cache.get_or_resolve("a", ctx, bump("a"))
        await cache.get_or_resolve("b", ctx, bump("b"))
    assert counts == {"a": 2, "b": 2}


async def test_reset_result_is_cached_again(cache, counter, make_context):
    session = {}
    await cache.get_or_resolve("t", make_context(session=session, reset="t"), _resolver(counter))
    await cache.get_or_resolve("t", make_context(session=session), _resolver(counter))
    assert counter.calls["count"] == 1


# --- Degradation ---------------------------------------------------------------

async def test_sessionless_always_resolves(cache, counter, make_context):
    await cache.get_or_resolve("translations", make_context(), _resolver(counter))
    await cache.get_or_resolve("translations", make_context(), _resolver(counter))
    assert counter.calls["count"] == 2


async def test_unserializable_value_returned_not_stored(cache, make_context):
    session = {}
    marker = object()
    calls = []

    async def resolve():
        calls.append(1)
        return {"obj": marker}

    for _ in range(2):
        value = await cache.get_or_resolve("thing", make_context(session=session), resolve)
        assert value["obj"] is marker
    assert len(calls) == 2
    assert not any(k.startswith("pageprops.once") for k in session)


async def test_resolver_error_propagates_and_stores_nothing(cache, make_context):
    session = {}

    async def boom():
        raise RuntimeError("lookup failed")

    with pytest.raises(RuntimeError, match="lookup failed"):
        await cache.get_or_resolve("x", make_context(session=session), boom)
    assert not any(k.startswith("pageprops.once") for k in session)


async def test_none_is_a_cacheable_value(cache, make_context):
    session = {}
    calls = []

    async def resolve():
        calls.append(1)
        return None

    for _ in range(2):
        assert await cache.get_or_resolve("n", make_context(session=session), resolve) is None
    assert len(calls) == 1


# --- Scoping -------------------------------------------------------------------

async def test_nested_and_top_level_paths_cache_independently(cache, make_context):
    session = {}
    ctx = make_context(session=session)

    async def nested():
        return ["edit"]

    async def top():
        return ["admin"]

    assert await cache.get_or_resolve("user.permissions", ctx, nested) == ["edit"]
    assert await cache.get_or_resolve("permissions", ctx, top) == ["admin"]
    assert await cache.get_or_resolve("user.permissions", ctx, top) == ["edit"]


async def test_sessions_do_not_share_entries(cache, counter, make_context):
    await cache.get_or_resolve("t", make_context(session={}), _resolver(counter))
    await cache.get_or_resolve("t", make_context(session={}), _resolver(counter))
    assert counter.calls["count"] == 2


def test_cache_key_includes_prefix_session_and_path():
    assert OnceCache("p").cache_key("S1", "user.permissions") == "p:S1:user.permissions"


# --- Single flight -------------------------------------------------------------

async def test_concurrent_requests_resolve_once(cache, make_context):
    session = {}
    calls = []

    async def slow():
        calls.append(1)
        await asyncio.sleep(0.01)
        return {"hello": "Hello"}

    results = await asyncio.gather(*(
        cache.get_or_resolve("translations", make_context(session=session), slow)
        for _ in range(5)
    ))
    assert len(calls) == 1
    assert all(r == {"hello": "Hello"} for r in results)


async def test_concurrent_requests_with_own_session_copies_resolve_once(cache, make_context):
    shared = {"pageprops.session_id": "S1"}
    copies = [dict(shared) for _ in range(3)]
    calls = []

    async def slow():
        calls.append(1)
        await asyncio.sleep(0.01)
        return {"hello": "Hello"}

    results = await asyncio.gather(*(
        cache.get_or_resolve("translations", make_context(session=copy), slow)
        for copy in copies
    ))
    assert len(calls) == 1
    assert results == [{"hello": "Hello"}] * 3
    key = cache.cache_key("S1", "translations")
    assert all(json.loads(copy[key]) == {"hello": "Hello"} for copy in copies)


async def test_concurrent_waiters_share_resolver_failure(cache, make_context):
    shared = {"pageprops.session_id": "S1"}
    copies = [dict(shared) for _ in range(3)]
    calls = []

    async def broken():
        calls.append(1)
        await asyncio.sleep(0.01)
        raise RuntimeError("lookup failed")

    results = await asyncio.gather(*(
        cache.get_or_resolve("translations", make_context(session=copy), broken)
        for copy in copies
    ), return_exceptions=True)
    assert len(calls) == 1
    assert all(isinstance(r, RuntimeError) for r in results)
    assert all(cache.cache_key("S1", "translations") not in copy for copy in copies)


async def test_waiter_takes_over_when_first_request_cancelled(cache, make_context):
    shared = {"pageprops.session_id": "S1"}
    started = asyncio.Event()
    calls = []

    async def slow():
        calls.append(1)
        started.set()
        await asyncio.sleep(0.01)
        return "value"

    first = asyncio.ensure_future(
        cache.get_or_resolve("t", make_context(session=dict(shared)), slow),
    )
    await started.wait()
    second = asyncio.ensure_future(
        cache.get_or_resolve("t", make_context(session=dict(shared)), slow),
    )
    await asyncio.sleep(0)
    first.cancel()

    assert await second == "value"
    assert len(calls) == 2
    with pytest.raises(asyncio.CancelledError):
        await first
