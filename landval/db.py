# landval/db.py
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, List, Mapping, Optional, Union

from fastapi import Request
from sqlalchemy import inspect, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.sql import Executable

from landval.config import Settings
from landval.errors import StorageError, StorageTimeout

logger = logging.getLogger(__name__)

Statement = Union[str, Executable]


# ----------------------------
# Utility: robust row -> dict mapper
# ----------------------------
def _row_to_dict(row) -> Dict[str, Any]:
    """
    Convert a SQLAlchemy Row to a plain dict.
    """
    if row is None:
        return {}
    if hasattr(row, "_mapping"):
        return dict(row._mapping)
    return dict(row)


def _engine_kwargs(settings: Settings) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {"echo": settings.echo, "pool_pre_ping": True}
    if settings.is_sqlite:
        # aiosqlite picks its own pool class; sizing arguments don't apply
        return kwargs
    kwargs.update(
        pool_size=settings.pool_size,
        max_overflow=0,
        pool_timeout=settings.pool_timeout,
        pool_recycle=settings.pool_recycle,
    )
    if settings.ssl:
        # hosted Postgres (Supabase) without certificate verification
        kwargs["connect_args"] = {"ssl": "require"}
    return kwargs


# ----------------------------
# Storage gateway: one checked-out connection
# ----------------------------
class Gateway:
    """Runs bound-parameter queries on a single pooled connection."""

    def __init__(self, conn: AsyncConnection, timeout: float):
        self._conn = conn
        self._timeout = timeout

    async def _run(self, awaitable, what: str):
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except asyncio.TimeoutError as e:
            logger.warning("%s exceeded %ss query timeout", what, self._timeout)
            await self._discard()
            raise StorageTimeout() from e
        except (SQLAlchemyError, OverflowError, ValueError) as e:
            # drivers raise plain OverflowError/ValueError while binding parameters
            logger.error("%s failed: %s", what, e.__class__.__name__)
            raise StorageError() from e

    async def _discard(self) -> None:
        # the cancelled statement may still be running; never hand this connection back
        try:
            await self._conn.invalidate()
        except SQLAlchemyError:
            logger.exception("failed to invalidate timed-out connection")

    async def query(self, sql: Statement, params: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        stmt = text(sql) if isinstance(sql, str) else sql
        result = await self._run(self._conn.execute(stmt, dict(params or {})), "query")
        return [_row_to_dict(r) for r in result.fetchall()]

    async def table_names(self, schema: Optional[str] = None) -> List[str]:
        def _inspect(sync_conn) -> List[str]:
            return inspect(sync_conn).get_table_names(schema=schema)

        names = await self._run(self._conn.run_sync(_inspect), "table listing")
        return sorted(names)


# ----------------------------
# Process-scoped pool
# ----------------------------
class Database:
    """
    Owns the async engine (and with it the connection pool).

    open() at startup, close() at shutdown; everything in between borrows a
    connection through connect(), which always hands it back.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.engine: Optional[AsyncEngine] = None

    @property
    def masked_url(self) -> str:
        return make_url(self.settings.database_url).render_as_string(hide_password=True)

    def open(self) -> AsyncEngine:
        if self.engine is None:
            self.engine = create_async_engine(self.settings.database_url, **_engine_kwargs(self.settings))
            logger.info("database pool opened for %s", self.masked_url)
        return self.engine

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None
            logger.info("database pool closed")

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[Gateway]:
        if self.engine is None:
            raise StorageError("Database is not open")
        try:
            async with self.engine.connect() as conn:
                yield Gateway(conn, self.settings.query_timeout)
        except (PoolTimeoutError, asyncio.TimeoutError) as e:
            logger.warning("no pooled connection within %ss", self.settings.pool_timeout)
            raise StorageTimeout() from e
        except (SQLAlchemyError, OSError) as e:
            logger.error("database connection failed: %s", e.__class__.__name__)
            raise StorageError() from e

    async def query(self, sql: Statement, params: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        async with self.connect() as gateway:
            return await gateway.query(sql, params)

    async def run_sync(self, fn: Callable) -> None:
        """Run a sync callable (e.g. metadata.create_all) inside a transaction."""
        async with self.open().begin() as conn:
            await conn.run_sync(fn)


# ----------------------------
# FastAPI dependencies
# ----------------------------
def get_database(request: Request) -> Database:
    return request.app.state.db


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
