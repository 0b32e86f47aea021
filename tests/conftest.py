"""Pytest configuration and fixtures."""

from __future__ import annotations

from datetime import date

import pytest

from linkcheck_agent.checker import LinkChecker
from linkcheck_agent.models import QueueEntry, Verdict
from linkcheck_agent.reputation import NOT_FOUND, ReputationResult
from linkcheck_agent.store import FORCED_SAFE_SCORE, StoreError


class FakeStore:
    """In-memory stand-in for the Postgres store with per-operation failure switches."""

    def __init__(self):
        self.master: dict[str, tuple[int, bool]] = {}
        self.queue: dict[str, date] = {}
        self.fail_reads = False
        self.fail_writes = False
        self.calls: list[tuple[str, str]] = []

    async def get_master(self, url):
        self.calls.append(("get_master", url))
        if self.fail_reads:
            raise StoreError("read failed")
        row = self.master.get(url)
        if row is None:
            return None
        return Verdict(success=True, url=url, score=row[0], safe=row[1])

    async def put_master(self, url, score, safe):
        self.calls.append(("put_master", url))
        if self.fail_writes:
            raise StoreError("write failed")
        self.master[url] = (score, safe)

    async def enqueue(self, url):
        self.calls.append(("enqueue", url))
        if self.fail_writes:
            raise StoreError("write failed")
        self.queue.setdefault(url, date.today())

    async def force_safe(self, url):
        self.calls.append(("force_safe", url))
        if self.fail_writes:
            raise StoreError("write failed")
        self.master[url] = (FORCED_SAFE_SCORE, True)

    async def oldest_queued(self):
        if not self.queue:
            return None
        url = min(self.queue, key=lambda u: (self.queue[u], u))
        return QueueEntry(url=url, date_added=self.queue[url])


class StubReputation:
    def __init__(self, result: ReputationResult = NOT_FOUND):
        self.result = result
        self.calls: list[str] = []

    async def classify(self, url):
        self.calls.append(url)
        return self.result


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def reputation():
    return StubReputation()


@pytest.fixture
def checker(store, reputation):
    return LinkChecker(store, reputation)
