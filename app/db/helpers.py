# app/db/helpers.py
"""
Query helpers for the repository layer.

Every psycopg failure surfaces as DatabaseError tagged with the
repository operation that issued the query.
"""

from typing import Any

import psycopg

from app.db.pool import get_db_connection
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class DatabaseError(Exception):
    """A query against the visit store failed."""

    def __init__(self, message: str, operation: str = "unknown"):
        super().__init__(message)
        self.operation = operation


async def fetch_all(
    query: str,
    params: tuple = (),
    *,
    operation: str = "fetch_all",
    connection: psycopg.AsyncConnection | None = None,
) -> list[dict[str, Any]]:
    """
    Execute query and return all rows as dicts.

    Args:
        query: SQL query with %s placeholders
        params: Query parameters
        operation: Name used in logs and on the raised DatabaseError
        connection: Optional existing connection
    """
    try:
        if connection:
            async with connection.cursor() as cur:
                await cur.execute(query, params)
                return await cur.fetchall()

        async with await get_db_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, params)
                return await cur.fetchall()

    except psycopg.Error as e:
        logger.error("Database query failed", operation=operation, error=str(e))
        raise DatabaseError(f"Query failed: {e}", operation=operation) from e
