"""
Tiered link lookup: verdict store first, reputation provider on a miss.

Fresh classifications are answered before they are written back. Write-back and
queueing run as detached tasks whose failures are only logged; callers never
wait on them, trading store consistency for response latency.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

from .models import Ack, Verdict
from .reputation import Outcome, ReputationClient
from .scoring import decode_results
from .store import StoreError, StoreGateway
from .urls import sanitize_url

logger = logging.getLogger(__name__)


class LinkChecker:
    def __init__(self, store: StoreGateway, reputation: ReputationClient) -> None:
        self.store = store
        self.reputation = reputation
        self._background: set[asyncio.Task[None]] = set()

    async def check_link(self, url: str) -> Verdict:
        clean_url = sanitize_url(url)

        cached = await self._read_master(clean_url)
        if cached is not None:
            return cached

        try:
            result = await self.reputation.classify(clean_url)
        except Exception:
            logger.exception("Reputation client raised for %s", clean_url)
            return Verdict.failed()

        if result.outcome is Outcome.CLASSIFIED and result.stats is not None:
            verdict = decode_results(result.stats, clean_url)
            self._detach(
                self.store.put_master(clean_url, verdict.score, verdict.safe),
                f"write-back of {clean_url}",
            )
            return verdict

        if result.outcome is Outcome.RATE_LIMITED:
            self._detach(self.store.enqueue(clean_url), f"enqueue of {clean_url}")

        return Verdict.failed()

    async def update_link(self, url: str) -> Ack:
        clean_url = sanitize_url(url)
        try:
            await self.store.force_safe(clean_url)
        except StoreError:
            logger.exception("Forced safe verdict failed for %s", clean_url)
            return Ack(success=False)
        except Exception:
            logger.exception("Unexpected store failure forcing %s safe", clean_url)
            return Ack(success=False)
        logger.info("Forced safe verdict for %s", clean_url)
        return Ack(success=True)

    async def drain(self) -> None:
        """Wait for every outstanding write-back and enqueue task."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def _read_master(self, url: str) -> Verdict | None:
        try:
            cached = await self.store.get_master(url)
        except StoreError as e:
            logger.warning("Store read failed for %s, treating as miss: %s", url, e)
            return None
        except Exception:
            logger.exception("Unexpected store read failure for %s, treating as miss", url)
            return None
        if cached is None:
            logger.debug("%s not in database.", url)
        return cached

    def _detach(self, coro: Coroutine[Any, Any, None], label: str) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)

        def _done(t: asyncio.Task[None]) -> None:
            self._background.discard(t)
            if t.cancelled():
                logger.warning("Detached %s was cancelled", label)
                return
            exc = t.exception()
            if exc is not None:
                logger.error("Detached %s failed", label, exc_info=exc)

        task.add_done_callback(_done)
