# ============================================================================
# DATABASE CONNECTION POOL
# ============================================================================
# EPOCH: 1 - QUEUED DELIVERY
# STATUS: Core - Async PostgreSQL connection management
# PURPOSE: Connection pooling for psycopg3 async and queue schema bootstrap
# CREATED: 19 OCT 2026
# ============================================================================
"""
Database Connection Pool

Manages async PostgreSQL connections using psycopg3 and psycopg_pool.
Singleton pattern ensures one pool per application.

Connection settings come from DATABASE_URL, or from individual POSTGRES_*
variables when DATABASE_URL is unset.

Usage:
    from repositories.database import get_pool

    pool = await get_pool()
    async with pool.connection() as conn:
        await conn.execute("SELECT 1")
"""

import logging
import os
from typing import Optional, Sequence, Type

from psycopg import sql
from psycopg_pool import AsyncConnectionPool
from pydantic import BaseModel

from core.schema import PydanticToSQL

logger = logging.getLogger(__name__)

# Global pool instance
_pool: Optional[AsyncConnectionPool] = None

# Queue tables live in their own schema; override with QUEUE_SCHEMA
SCHEMA = os.environ.get("QUEUE_SCHEMA", "eventq")


def get_connection_string() -> str:
    """
    Get database connection string from environment.

    Priority:
    1. DATABASE_URL environment variable
    2. Individual POSTGRES_* components
    """
    if url := os.environ.get("DATABASE_URL"):
        return url

    host = os.environ.get("POSTGRES_HOST", "localhost")
    port = os.environ.get("POSTGRES_PORT", "5432")
    name = os.environ.get("POSTGRES_DB", "postgres")
    user = os.environ.get("POSTGRES_USER", "postgres")
    password = os.environ.get("POSTGRES_PASSWORD", "")
    sslmode = os.environ.get("POSTGRES_SSLMODE", "prefer")

    return f"postgresql://{user}:{password}@{host}:{port}/{name}?sslmode={sslmode}"


def _safe_conninfo(conninfo: str) -> str:
    """Strip credentials for logging."""
    if "@" in conninfo:
        return conninfo.split("@")[-1]
    if "password=" in conninfo:
        return conninfo.split("password=")[0] + "password=***"
    return conninfo


async def init_pool(
    min_size: int = 1,
    max_size: int = 5,
    connection_string: Optional[str] = None,
) -> AsyncConnectionPool:
    """
    Initialize the global connection pool.

    Args:
        min_size: Minimum connections to maintain
        max_size: Maximum connections allowed
        connection_string: Override connection string (defaults to env)
    """
    global _pool

    if _pool is not None:
        logger.warning("Pool already initialized, returning existing pool")
        return _pool

    conninfo = connection_string or get_connection_string()
    logger.info(f"Initializing connection pool: {_safe_conninfo(conninfo)}")

    _pool = AsyncConnectionPool(
        conninfo=conninfo,
        min_size=min_size,
        max_size=max_size,
        open=False,  # We'll open it explicitly
    )

    await _pool.open()
    logger.info(f"Connection pool opened (min={min_size}, max={max_size})")

    return _pool


async def get_pool() -> AsyncConnectionPool:
    """Get the global connection pool, initializing if needed."""
    if _pool is None:
        return await init_pool()
    return _pool


async def close_pool() -> None:
    """Close the global connection pool."""
    global _pool

    if _pool is not None:
        await _pool.close()
        _pool = None
        logger.info("Connection pool closed")


async def ensure_schema(
    pool: AsyncConnectionPool,
    models: Sequence[Type[BaseModel]],
    schema_name: Optional[str] = None,
) -> int:
    """
    Create the queue schema, tables and indexes if they do not exist.

    Idempotent. Returns the number of statements executed.
    """
    statements = PydanticToSQL(schema_name=schema_name or SCHEMA).generate_all(models)
    async with pool.connection() as conn:
        async with conn.transaction():
            for statement in statements:
                await conn.execute(statement)
    logger.info(f"Schema bootstrap applied {len(statements)} statements to {schema_name or SCHEMA}")
    return len(statements)


def table_identifier(model: Type[BaseModel], schema_name: Optional[str] = None) -> sql.Identifier:
    """Schema-qualified identifier for a model's table."""
    return sql.Identifier(schema_name or SCHEMA, getattr(model, "__sql_table__"))


__all__ = [
    "SCHEMA",
    "get_connection_string",
    "init_pool",
    "get_pool",
    "close_pool",
    "ensure_schema",
    "table_identifier",
]
