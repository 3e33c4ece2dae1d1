import asyncio
import logging
from typing import Any, Dict, List, Optional

from postgrest.exceptions import APIError
from supabase import Client

from creditos.core.exceptions import GatewayError, UniqueViolationError

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION_CODE = "23505"


class SupabaseGateway:
    """Async facade over the Supabase tables used by the dashboard.

    supabase-py's query builders are blocking, so every `execute()` runs in a
    worker thread. PostgREST errors are translated into `GatewayError` or
    `UniqueViolationError`; nothing from postgrest leaks to callers.
    """

    def __init__(self, client: Client):
        self.client = client

    async def insert(self, table: str, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        logger.debug("Inserting %d row(s) into %s", len(rows), table)
        response = await self._execute(table, self.client.table(table).insert(rows))
        return response.data or []

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        query = self.client.table(table).select(columns)
        for column, value in (filters or {}).items():
            query = query.eq(column, value)
        if order_by:
            query = query.order(order_by, desc=descending)
        if limit is not None:
            query = query.limit(limit)
        response = await self._execute(table, query)
        return response.data or []

    async def update(self, table: str, record_id: str, patch: Dict[str, Any]) -> List[Dict[str, Any]]:
        logger.debug("Updating %s row %s with fields %s", table, record_id, sorted(patch))
        response = await self._execute(table, self.client.table(table).update(patch).eq("id", record_id))
        return response.data or []

    async def delete(self, table: str, record_id: str) -> None:
        logger.debug("Deleting %s row %s", table, record_id)
        await self._execute(table, self.client.table(table).delete().eq("id", record_id))

    async def count(self, table: str, filters: Optional[Dict[str, Any]] = None) -> int:
        query = self.client.table(table).select("id", count="exact")
        for column, value in (filters or {}).items():
            query = query.eq(column, value)
        response = await self._execute(table, query)
        return response.count or 0

    async def _execute(self, table: str, query):
        try:
            return await asyncio.to_thread(query.execute)
        except APIError as e:
            message = e.message or str(e)
            if e.code == UNIQUE_VIOLATION_CODE or "duplicate key" in message:
                logger.warning(f"Unique constraint violated on {table}: {message}")
                raise UniqueViolationError(table, message, code=e.code) from e
            logger.error(f"Supabase query on {table} failed: code={e.code} message={message}")
            raise GatewayError(table, message, code=e.code) from e
        except Exception as e:
            logger.error(f"Supabase request on {table} failed: {e}")
            raise GatewayError(table, str(e)) from e
