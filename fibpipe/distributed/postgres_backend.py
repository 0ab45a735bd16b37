"""
PostgreSQL backend for the durable log.

One row per accepted submission; rows are only ever inserted. A serial id
column keeps scans in insertion order.
"""

from typing import List, Optional
import logging

import asyncpg

from ..core.models import DurableRecord
from ..core.stores import DurableLog

logger = logging.getLogger(__name__)


class PostgresDurableLog(DurableLog):
    """
    asyncpg-backed durable log.

    Example:
        log = PostgresDurableLog(dsn="postgresql://postgres@localhost/postgres")
        await log.connect()

        await log.append(DurableRecord(number=7))
        records = await log.scan_all()
    """

    def __init__(
        self,
        dsn: Optional[str] = None,
        host: Optional[str] = None,
        port: Optional[int] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        database: Optional[str] = None,
        table: str = "values",
        min_size: int = 1,
        max_size: int = 10,
    ):
        self.dsn = dsn
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.database = database
        self.table = table
        self.min_size = min_size
        self.max_size = max_size
        self._pool: Optional[asyncpg.Pool] = None

    @property
    def _table(self) -> str:
        # Quoted: VALUES is a reserved word in PostgreSQL.
        return '"' + self.table.replace('"', '""') + '"'

    async def connect(self) -> None:
        """Create the connection pool and the table if missing."""
        self._pool = await asyncpg.create_pool(
            dsn=self.dsn,
            host=self.host,
            port=self.port,
            user=self.user,
            password=self.password,
            database=self.database,
            min_size=self.min_size,
            max_size=self.max_size,
        )
        await self._init_schema()
        logger.info(f"Durable log connected to PostgreSQL (table {self.table})")

    async def _init_schema(self) -> None:
        async with self._pool.acquire() as conn:
            await conn.execute(
                f"CREATE TABLE IF NOT EXISTS {self._table} ("
                " id BIGSERIAL PRIMARY KEY,"
                " number INT NOT NULL"
                ")"
            )

    async def disconnect(self) -> None:
        """Close the connection pool."""
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.info("Durable log disconnected")

    async def append(self, record: DurableRecord) -> None:
        async with self._pool.acquire() as conn:
            await conn.execute(
                f"INSERT INTO {self._table} (number) VALUES ($1)",
                record.number,
            )

    async def scan_all(self) -> List[DurableRecord]:
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(
                f"SELECT number FROM {self._table} ORDER BY id"
            )
        return [DurableRecord(number=row["number"]) for row in rows]
