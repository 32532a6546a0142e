import os
import logging
import asyncpg
from asyncpg.exceptions import PostgresError
from contextlib import asynccontextmanager
from typing import Type, List, Optional
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class Database:
    def __init__(self, dsn: Optional[str] = None):
        self.dsn = dsn or os.getenv("POSTGRES_CONN_STRING")
        self.pool = None

    async def connect(self):
        try:
            self.pool = await asyncpg.create_pool(self.dsn)
        except Exception as e:
            raise ConnectionError(f"Error connecting to database: {e}")

    async def disconnect(self):
        if self.pool:
            await self.pool.close()

    @asynccontextmanager
    async def transaction(self):
        """Yield a Database bound to one connection inside a transaction.

        Queries through the yielded object commit together when the block
        exits and roll back when it raises.
        """
        if not self.pool:
            raise RuntimeError("Database connection pool is not initialized")
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                bound = Database(self.dsn)
                # asyncpg connections expose the same fetch/execute as the pool
                bound.pool = conn
                yield bound

    async def execute_script(self, sql: str):
        """Run a multi-statement script (no parameters), e.g. schema DDL."""
        if not self.pool:
            raise RuntimeError("Database connection pool is not initialized")
        await self.pool.execute(sql)

    async def execute_query(self, sql, *parameters):
        if not self.pool:
            raise RuntimeError("Database connection pool is not initialized")
        try:
            response = await self.pool.fetch(sql, *parameters)
            return [dict(row) for row in response]
        except PostgresError as e:
            logger.error(f"Postgres error: {e}")
            raise
        except Exception as e:
            logger.error(f"Unexpected error: {e}")
            raise

    async def execute_to_model(self, model: Type[BaseModel], sql: str, *parameters) -> List[BaseModel]:
        result = await self.execute_query(sql, *parameters)
        return [model(**item) for item in result]
