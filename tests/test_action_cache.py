"""
Tests for the per-message, single-flight action cache.
"""

import threading
import time

import pytest

from unsubscriber.email_processor.unsubscribe.cache import UnsubscribeActionCache
from unsubscriber.email_processor.unsubscribe.exceptions import RetrievalError
from unsubscriber.email_processor.unsubscribe.types import WebAction

ACTION = WebAction(link='https://x.test/u')


class TestCacheBasics:

    def test_action_is_memoized(self):
        cache = UnsubscribeActionCache()
        calls = []

        def compute():
            calls.append(1)
            return ACTION

        assert cache.get_or_compute('m1', compute) == ACTION
        assert cache.get_or_compute('m1', compute) == ACTION
        assert len(calls) == 1
        assert 'm1' in cache
        assert len(cache) == 1

    def test_not_found_is_memoized(self):
        cache = UnsubscribeActionCache()
        calls = []

        def compute():
            calls.append(1)
            return None

        assert cache.get_or_compute('m1', compute) is None
        assert cache.get_or_compute('m1', compute) is None
        assert len(calls) == 1
        assert 'm1' in cache

    def test_failure_is_not_cached(self):
        cache = UnsubscribeActionCache()
        outcomes = [RetrievalError('offline', message_id='m1'), ACTION]

        def compute():
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        with pytest.raises(RetrievalError):
            cache.get_or_compute('m1', compute)
        assert 'm1' not in cache

        assert cache.get_or_compute('m1', compute) == ACTION

    def test_invalidate_and_clear(self):
        cache = UnsubscribeActionCache()
        cache.get_or_compute('m1', lambda: ACTION)
        cache.get_or_compute('m2', lambda: None)

        cache.invalidate('m1')
        assert 'm1' not in cache
        assert cache.get('m1') is None

        cache.clear()
        assert len(cache) == 0

    def test_get_does_not_compute(self):
        cache = UnsubscribeActionCache()

        assert cache.get('m1') is None
        assert cache.get('m1', 'missing') == 'missing'


class TestSingleFlight:
    """Concurrent requests for one message id share one classification."""

    def test_concurrent_requests_compute_once(self):
        cache = UnsubscribeActionCache()
        started = threading.Event()
        release = threading.Event()
        calls = []
        results = []

        def compute():
            calls.append(1)
            started.set()
            release.wait(timeout=5)
            return ACTION

        def request():
            results.append(cache.get_or_compute('m1', compute))

        leader = threading.Thread(target=request)
        leader.start()
        assert started.wait(timeout=5)

        followers = [threading.Thread(target=request) for _ in range(8)]
        for thread in followers:
            thread.start()
        time.sleep(0.1)
        release.set()

        for thread in [leader] + followers:
            thread.join(timeout=5)

        assert len(calls) == 1
        assert results == [ACTION] * 9

    def test_waiters_receive_leader_exception(self):
        cache = UnsubscribeActionCache()
        started = threading.Event()
        release = threading.Event()
        errors = []

        def failing():
            started.set()
            release.wait(timeout=5)
            raise RetrievalError('offline', message_id='m1')

        def request():
            try:
                cache.get_or_compute('m1', failing)
            except RetrievalError as e:
                errors.append(e)

        leader = threading.Thread(target=request)
        leader.start()
        assert started.wait(timeout=5)

        follower = threading.Thread(target=request)
        follower.start()
        time.sleep(0.1)
        release.set()

        leader.join(timeout=5)
        follower.join(timeout=5)

        assert len(errors) == 2
        assert 'm1' not in cache

    def test_different_ids_do_not_block_each_other(self):
        cache = UnsubscribeActionCache()
        release = threading.Event()

        def slow():
            release.wait(timeout=5)
            return ACTION

        thread = threading.Thread(target=cache.get_or_compute, args=('slow', slow))
        thread.start()

        assert cache.get_or_compute('fast', lambda: None) is None

        release.set()
        thread.join(timeout=5)
        assert cache.get('slow') == ACTION
