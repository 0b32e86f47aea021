from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

import asyncpg  # type: ignore[import-untyped]

from .models import MasterRecord, QueueEntry, Verdict

logger = logging.getLogger(__name__)

FORCED_SAFE_SCORE = 99

_SCHEMA = (
    """
    create table if not exists master (
      url text primary key,
      score integer not null,
      safe boolean not null,
      date_added date not null default current_date
    )
    """,
    """
    create table if not exists queue (
      url text primary key,
      date_added date not null default current_date
    )
    """,
)


class StoreError(Exception):
    """Base store error."""


class StoreUnavailableError(StoreError):
    """Raised when the database is not configured or cannot be reached."""


class StoreGateway(Protocol):
    async def get_master(self, url: str) -> Verdict | None: ...

    async def put_master(self, url: str, score: int, safe: bool) -> None: ...

    async def enqueue(self, url: str) -> None: ...

    async def force_safe(self, url: str) -> None: ...

    async def oldest_queued(self) -> QueueEntry | None: ...


_DB_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


class PostgresStore:
    """Verdict table plus deferred queue, backed by an asyncpg pool.

    The pool is created lazily on first use so that constructing the store never
    touches the network.
    """

    def __init__(
        self,
        database_url: str | None,
        min_pool_size: int = 1,
        max_pool_size: int = 5,
        query_timeout: float = 2.0,
    ) -> None:
        self.database_url = database_url
        self.min_pool_size = min_pool_size
        self.max_pool_size = max_pool_size
        self.query_timeout = query_timeout
        self._pool: asyncpg.Pool | None = None
        self._pool_lock = asyncio.Lock()

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    async def ensure_schema(self) -> None:
        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                async with conn.transaction():
                    for statement in _SCHEMA:
                        await conn.execute(statement, timeout=self.query_timeout)
        except _DB_ERRORS as exc:
            raise StoreError("schema bootstrap failed") from exc

    async def get_master(self, url: str) -> Verdict | None:
        row = await self._fetchrow(
            "select url, score, safe, date_added from master where url = $1 limit 1",
            url,
        )
        if row is None:
            return None
        return MasterRecord(**dict(row)).to_verdict()

    async def put_master(self, url: str, score: int, safe: bool) -> None:
        await self._execute(
            """
            insert into master (url, score, safe)
            values ($1, $2, $3)
            on conflict (url) do update
              set score = excluded.score,
                  safe = excluded.safe,
                  date_added = current_date
            """,
            url,
            score,
            safe,
        )

    async def enqueue(self, url: str) -> None:
        await self._execute(
            "insert into queue (url) values ($1) on conflict do nothing",
            url,
        )

    async def force_safe(self, url: str) -> None:
        # Upsert: a host that was never classified still gets a row.
        await self._execute(
            """
            insert into master (url, score, safe)
            values ($1, $2, true)
            on conflict (url) do update
              set score = excluded.score,
                  safe = true
            """,
            url,
            FORCED_SAFE_SCORE,
        )

    async def oldest_queued(self) -> QueueEntry | None:
        row = await self._fetchrow(
            "select url, date_added from queue order by date_added asc, url asc limit 1",
        )
        if row is None:
            return None
        return QueueEntry(**dict(row))

    async def _fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        pool = await self._get_pool()
        try:
            return await pool.fetchrow(query, *args, timeout=self.query_timeout)
        except _DB_ERRORS as exc:
            raise StoreError(f"query failed: {exc}") from exc

    async def _execute(self, query: str, *args: Any) -> None:
        pool = await self._get_pool()
        try:
            await pool.execute(query, *args, timeout=self.query_timeout)
        except _DB_ERRORS as exc:
            raise StoreError(f"statement failed: {exc}") from exc

    async def _get_pool(self) -> asyncpg.Pool:
        if not self.database_url:
            raise StoreUnavailableError("LINKCHECK_DATABASE_URL is not configured")

        if self._pool is not None:
            return self._pool

        async with self._pool_lock:
            if self._pool is None:
                try:
                    self._pool = await asyncpg.create_pool(
                        dsn=self.database_url,
                        min_size=self.min_pool_size,
                        max_size=self.max_pool_size,
                        command_timeout=self.query_timeout,
                    )
                    logger.info("Connected to verdict database.")
                except Exception as exc:  # pragma: no cover - depends on environment
                    raise StoreUnavailableError("database unavailable") from exc
        return self._pool
