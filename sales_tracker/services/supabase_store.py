"""
Supabase sales store.

This module talks to a Supabase project through its PostgREST interface
using aiohttp. The schema has three tables: ``items(id, name)``,
``sales(id, buyer_name, sale_date)`` and
``sale_items(sale_id, item_id, quantity)``.

PostgREST offers no transaction spanning two inserts, so this store
reports ``supports_transactions = False`` and the domain layer
compensates for a failed line insert.
"""

import asyncio
from datetime import date
from typing import Any, Dict, List, Optional

import aiohttp

from sales_tracker.config import settings
from sales_tracker.config.logging_config import get_logger
from sales_tracker.data.base_repository import SalesStore
from sales_tracker.data.models import Item, Sale, SaleLine, lines_to_records, parse_date
from sales_tracker.utils.error_handling import NotFoundError, StoreError

logger = get_logger(__name__)

REST_PREFIX = "/rest/v1"

SALES_SELECT = "id,buyer_name,sale_date,sale_items(item_id,quantity,items(name))"


class SupabaseSalesStore(SalesStore):
    """
    Sales store backed by the Supabase REST API.

    This class handles:
    - Opening and closing the HTTP session with the project's API key
    - Translating store operations into PostgREST requests
    - Mapping HTTP and transport failures onto StoreError / NotFoundError
    """

    def __init__(
        self,
        url: Optional[str] = None,
        anon_key: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        cascade_deletes: Optional[bool] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize the Supabase store.

        Args:
            url: Project URL (defaults to settings)
            anon_key: Anonymous API key (defaults to settings)
            timeout_seconds: Per-request timeout (defaults to settings)
            cascade_deletes: Whether sale_items rows cascade on sale delete
            session: Optional pre-built aiohttp session, closed by the caller
        """
        config = settings.supabase
        super().__init__({
            "url": (url if url is not None else config.url).rstrip("/"),
            "anon_key": anon_key if anon_key is not None else config.anon_key,
            "timeout_seconds": timeout_seconds if timeout_seconds is not None else config.timeout_seconds,
        })
        self.supports_cascade = config.cascade_deletes if cascade_deletes is None else cascade_deletes

        self._session = session
        self._owns_session = session is None

    @property
    def base_url(self) -> str:
        return f"{self.connection_config['url']}{REST_PREFIX}"

    def _headers(self) -> Dict[str, str]:
        key = self.connection_config["anon_key"]
        return {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        }

    async def connect(self) -> bool:
        """
        Open the HTTP session.

        Returns:
            bool: True once a session is available
        """
        if not self.connection_config["url"]:
            logger.error("Supabase URL is not configured")
            return False

        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=self.connection_config["timeout_seconds"])
            self._session = aiohttp.ClientSession(headers=self._headers(), timeout=timeout)
            self._owns_session = True

        logger.info(f"Connected to Supabase store at {self.connection_config['url']}")
        return True

    async def disconnect(self) -> None:
        """Close the HTTP session if this store opened it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None
        logger.info("Disconnected from Supabase store")

    async def _request(
        self,
        method: str,
        table: str,
        operation: str,
        params: Optional[Dict[str, str]] = None,
        payload: Any = None,
        return_representation: bool = False,
    ) -> Any:
        """
        Send one request to PostgREST.

        Args:
            method: HTTP method
            table: Table name appended to the REST prefix
            operation: Store operation name, for error reporting
            params: Query parameters (select, order, filters)
            payload: JSON body
            return_representation: Ask PostgREST to echo affected rows

        Returns:
            Decoded JSON body for reads and representation requests, otherwise None

        Raises:
            StoreError: On HTTP error status, transport failure or timeout
        """
        if self._session is None:
            raise StoreError(f"{operation} failed: store is not connected")

        headers = self._headers()
        if return_representation:
            headers["Prefer"] = "return=representation"

        url = f"{self.base_url}/{table}"

        try:
            async with self._session.request(
                method, url, params=params, json=payload, headers=headers
            ) as response:
                if response.status >= 400:
                    body = await response.text()
                    raise StoreError(
                        f"{operation} failed with HTTP {response.status}",
                        details={"status": response.status, "body": body[:500]}
                    )
                if method != "GET" and not return_representation:
                    # PostgREST answers minimal inserts with an empty, untyped body
                    await response.read()
                    return None
                return await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            await self.handle_db_error(e, operation)
            raise StoreError(f"{operation} failed", cause=e) from e

    async def list_items(self) -> List[Item]:
        data = await self._request(
            "GET", "items", "list_items",
            params={"select": "id,name", "order": "name.asc"}
        )
        return [Item.from_dict(row) for row in data or []]

    async def list_sales(self) -> List[Sale]:
        data = await self._request(
            "GET", "sales", "list_sales",
            params={"select": SALES_SELECT, "order": "sale_date.desc"}
        )
        return [self._sale_from_row(row) for row in data or []]

    @staticmethod
    def _sale_from_row(row: Dict[str, Any]) -> Sale:
        lines = tuple(
            SaleLine(
                item_id=str(line["item_id"]),
                quantity=int(line["quantity"]),
                item_name=(line.get("items") or {}).get("name")
            )
            for line in row.get("sale_items") or []
        )
        return Sale(
            id=str(row["id"]),
            buyer_name=row["buyer_name"],
            sale_date=parse_date(row["sale_date"]),
            lines=lines
        )

    async def create_sale(self, buyer_name: str, sale_date: date) -> str:
        data = await self._request(
            "POST", "sales", "create_sale",
            payload=[{"buyer_name": buyer_name, "sale_date": sale_date.isoformat()}],
            return_representation=True
        )
        if not data:
            raise StoreError("create_sale failed: no record returned")
        return str(data[0]["id"])

    async def create_sale_lines(self, sale_id: str, lines: List[SaleLine]) -> None:
        await self._request(
            "POST", "sale_items", "create_sale_lines",
            payload=lines_to_records(sale_id, lines)
        )

    async def delete_sale_lines(self, sale_id: str) -> None:
        await self._request(
            "DELETE", "sale_items", "delete_sale_lines",
            params={"sale_id": f"eq.{sale_id}"}
        )

    async def delete_sale(self, sale_id: str) -> None:
        deleted = await self._request(
            "DELETE", "sales", "delete_sale",
            params={"id": f"eq.{sale_id}"},
            return_representation=True
        )
        if not deleted:
            raise NotFoundError(f"Sale {sale_id} not found", record_id=sale_id)
