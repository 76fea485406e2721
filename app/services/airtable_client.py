"""
Airtable Client
SchemaSource and RecordSource over the Airtable REST and metadata APIs.
Errors are mapped to the upstream error kinds with a message fit to show the
user; retries and timeouts stay with httpx.
"""
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from app.config.settings import settings
from app.models.field_spec import LinkedTable, RawField, TableSchema
from app.models.record import Record
from app.models.session import ConnectionParams
from app.utils.errors import Forbidden, NotFound, Unauthorized, UpstreamError, UpstreamUnavailable

logger = logging.getLogger(__name__)

BASE_NOT_FOUND = "Base not found. Please check your Base ID."
INVALID_API_KEY = "Invalid API key. Please check your API key."
TABLE_NOT_FOUND = "Table not found. Please check your table name."
PERMISSION_DENIED = "Permission denied. Your API key may not have access to this table."


def map_upstream_error(response: httpx.Response) -> UpstreamError:
    """Turn an Airtable error response into the matching upstream error"""
    try:
        data = response.json()
    except ValueError:
        data = {}
    error = data.get("error") if isinstance(data, dict) else None
    status = response.status_code

    if error == "NOT_FOUND":
        return NotFound(BASE_NOT_FOUND, status)
    if error == "UNAUTHORIZED" or status == 401:
        return Unauthorized(INVALID_API_KEY, status)
    if status == 404:
        return NotFound(TABLE_NOT_FOUND, status)
    if status == 403:
        return Forbidden(PERMISSION_DENIED, status)

    message = None
    if isinstance(error, dict):
        message = error.get("message") or error.get("type")
    elif isinstance(error, str):
        message = error
    return UpstreamUnavailable(message or f"Airtable request failed ({status})", status)


class AirtableClient:
    """Schema and record access for one Airtable base"""

    def __init__(self, connection: ConnectionParams,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 base_url: Optional[str] = None,
                 timeout: Optional[float] = None):
        self.connection = connection
        self.base_url = base_url or settings.AIRTABLE_API_URL
        self.timeout = timeout or settings.AIRTABLE_TIMEOUT
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {self.connection.apiKey}"},
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            async with self._client() as client:
                resp = await client.request(method, path, **kwargs)
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPStatusError as exc:
            logger.error("Airtable %s %s failed: %s %s", method, path,
                         exc.response.status_code, exc.response.text)
            raise map_upstream_error(exc.response) from exc
        except httpx.RequestError as exc:
            logger.error("Airtable %s %s unreachable: %s", method, path, exc)
            raise UpstreamUnavailable(f"Could not reach Airtable: {exc}") from exc

    @property
    def _meta_path(self) -> str:
        return f"/meta/bases/{self.connection.baseId}/tables"

    def _table_path(self, table_name: str) -> str:
        return f"/{self.connection.baseId}/{quote(table_name, safe='')}"

    # ─── SchemaSource ───────────────────────────────────────────────────

    async def _all_tables(self) -> List[Dict[str, Any]]:
        data = await self._request("GET", self._meta_path)
        return data.get("tables", [])

    async def list_tables(self) -> List[str]:
        return [t["name"] for t in await self._all_tables()]

    @staticmethod
    def _to_schema(table: Dict[str, Any], tables: List[Dict[str, Any]]) -> TableSchema:
        return TableSchema(
            id=table["id"],
            name=table["name"],
            fields=[RawField.from_source(f) for f in table.get("fields", [])],
            linkedTables=[LinkedTable(id=t["id"], name=t["name"]) for t in tables],
        )

    async def get_schema(self, table_name: str) -> TableSchema:
        tables = await self._all_tables()
        table = next((t for t in tables if t["name"] == table_name), None)
        if table is None:
            raise NotFound(TABLE_NOT_FOUND)
        return self._to_schema(table, tables)

    async def get_schema_by_id(self, table_id: str) -> TableSchema:
        tables = await self._all_tables()
        table = next((t for t in tables if t["id"] == table_id), None)
        if table is None:
            raise NotFound(TABLE_NOT_FOUND)
        return self._to_schema(table, tables)

    async def rename_table(self, table_id: str, new_name: str) -> Dict[str, str]:
        data = await self._request("PATCH", f"{self._meta_path}/{table_id}", json={"name": new_name})
        return {"id": data.get("id", table_id), "name": data.get("name", new_name)}

    async def rename_field(self, table_id: str, field_id: str, new_name: str) -> bool:
        await self._request("PATCH", f"{self._meta_path}/{table_id}/fields/{field_id}", json={"name": new_name})
        return True

    # ─── RecordSource ───────────────────────────────────────────────────

    async def list_records(self, table_name: str) -> List[Record]:
        """Every record of the table, following Airtable's offset pagination"""
        records: List[Record] = []
        params: Dict[str, str] = {}
        while True:
            data = await self._request("GET", self._table_path(table_name), params=params)
            records.extend(Record(**r) for r in data.get("records", []))
            offset = data.get("offset")
            if not offset:
                return records
            params = {"offset": offset}

    async def create_record(self, table_name: str, fields: Dict[str, Any]) -> Record:
        data = await self._request("POST", self._table_path(table_name), json={"fields": fields})
        return Record(**data)
