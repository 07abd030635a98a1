"""Tests for the token store: expiry, atomic replacement and single-flight refresh."""

from __future__ import annotations

import asyncio
import threading
import time

import pytest

from spotify_web_api.auth.token import TokenStore
from spotify_web_api.exceptions import AuthenticationRequiredError, TokenRefreshError


class TestBasics:
    def test_empty_store(self, clock) -> None:
        store = TokenStore(clock=clock)
        assert store.get() is None
        with pytest.raises(AuthenticationRequiredError):
            store.require()

    def test_replace_fires_callback(self, clock, make_token) -> None:
        seen = []
        store = TokenStore(clock=clock, on_token=seen.append)
        token = make_token()
        store.replace(token)
        assert store.get() is token
        assert seen == [token]

    def test_clear(self, clock, make_token) -> None:
        store = TokenStore(clock=clock)
        store.replace(make_token())
        store.clear()
        assert store.get() is None

    def test_expiry_boundary(self, clock, make_token) -> None:
        store = TokenStore(clock=clock)
        token = make_token(expires_in=3600)
        clock.set(3599)
        assert not store.is_expired(token)
        clock.set(3600)
        assert store.is_expired(token)

    def test_expiry_margin(self, clock, make_token) -> None:
        store = TokenStore(clock=clock, expiry_margin=60)
        token = make_token(expires_in=3600)
        clock.set(3539)
        assert not store.is_expired(token)
        clock.set(3540)
        assert store.is_expired(token)


class TestEnsureFresh:
    def test_fresh_token_not_renewed(self, clock, make_token) -> None:
        store = TokenStore(clock=clock)
        token = make_token()
        store.replace(token)

        def renew(_):
            raise AssertionError("should not renew")

        assert store.ensure_fresh(renew) is token

    def test_expired_token_renewed_once(self, clock, make_token) -> None:
        store = TokenStore(clock=clock)
        store.replace(make_token())
        clock.set(3601)
        fresh = make_token(access_token="access-2", issued_at=clock.now)
        calls = []

        def renew(current):
            calls.append(current.access_token)
            return fresh

        assert store.ensure_fresh(renew) is fresh
        assert store.ensure_fresh(renew) is fresh
        assert calls == ["access-1"]

    def test_failed_renewal_leaves_token(self, clock, make_token) -> None:
        store = TokenStore(clock=clock)
        old = make_token()
        store.replace(old)
        clock.set(3601)

        def renew(_):
            raise TokenRefreshError("rejected")

        with pytest.raises(TokenRefreshError):
            store.ensure_fresh(renew)
        assert store.get() is old

    def test_forced_refresh(self, clock, make_token) -> None:
        store = TokenStore(clock=clock)
        store.replace(make_token())
        fresh = make_token(access_token="access-2")
        assert store.refresh(lambda _: fresh) is fresh
        assert store.get() is fresh

    def test_refresh_without_token(self, clock) -> None:
        store = TokenStore(clock=clock)
        with pytest.raises(AuthenticationRequiredError):
            store.refresh(lambda _: None)


class TestThreadedSingleFlight:
    def test_racing_threads_share_one_refresh(self, clock, make_token) -> None:
        store = TokenStore(clock=clock)
        store.replace(make_token())
        clock.set(3601)
        fresh = make_token(access_token="access-2", issued_at=clock.now)
        calls = []
        barrier = threading.Barrier(8)

        def renew(_):
            calls.append(1)
            time.sleep(0.05)
            return fresh

        results = []

        def worker():
            barrier.wait()
            results.append(store.ensure_fresh(renew))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(calls) == 1
        assert results == [fresh] * 8

    def test_waiters_share_failure(self, clock, make_token) -> None:
        store = TokenStore(clock=clock)
        store.replace(make_token())
        clock.set(3601)
        calls = []
        started = threading.Event()
        release = threading.Event()

        def renew(_):
            calls.append(1)
            started.set()
            release.wait(timeout=5)
            raise TokenRefreshError("rejected")

        errors = []

        def worker():
            try:
                store.ensure_fresh(renew)
            except TokenRefreshError as exc:
                errors.append(exc)

        first = threading.Thread(target=worker)
        first.start()
        started.wait(timeout=5)
        others = [threading.Thread(target=worker) for _ in range(3)]
        for t in others:
            t.start()
        # Give the waiters time to block on the in-flight refresh.
        time.sleep(0.05)
        release.set()
        for t in [first, *others]:
            t.join()

        assert len(calls) == 1
        assert len(errors) == 4


class TestAsyncSingleFlight:
    @pytest.mark.asyncio
    async def test_concurrent_tasks_share_one_refresh(self, clock, make_token) -> None:
        store = TokenStore(clock=clock)
        store.replace(make_token())
        clock.set(3601)
        fresh = make_token(access_token="access-2", issued_at=clock.now)
        calls = []

        async def renew(_):
            calls.append(1)
            await asyncio.sleep(0.01)
            return fresh

        results = await asyncio.gather(*(store.aensure_fresh(renew) for _ in range(10)))

        assert len(calls) == 1
        assert all(r is fresh for r in results)

    @pytest.mark.asyncio
    async def test_cancelled_refresh_commits_nothing(self, clock, make_token) -> None:
        store = TokenStore(clock=clock)
        old = make_token()
        store.replace(old)
        clock.set(3601)
        fresh = make_token(access_token="access-2", issued_at=clock.now)
        gate = asyncio.Event()

        async def slow_renew(_):
            await gate.wait()
            return fresh

        task = asyncio.create_task(store.aensure_fresh(slow_renew))
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert store.get() is old

        async def renew(_):
            return fresh

        # The lock was released: a later refresh goes through.
        assert await store.aensure_fresh(renew) is fresh
