from __future__ import annotations

import copy
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from threading import RLock
from typing import Any, Dict, List, Mapping, Optional, Sequence

import httpx
import structlog
from notion_client import APIErrorCode, APIResponseError, Client
from notion_client.errors import HTTPResponseError, RequestTimeoutError

from .errors import GatewayError, RecordNotFound
from .settings import Settings

logger = structlog.get_logger(__name__)

RawDefinitions = Dict[str, Dict[str, Any]]
RawRecord = Dict[str, Any]
SortSpec = Sequence[Mapping[str, str]]


# PUBLIC_INTERFACE
class StoreGateway(ABC):
    """RPC boundary to the external record store."""

    @abstractmethod
    def fetch_schema(self) -> RawDefinitions:
        """Return the raw property definitions of the database, in declared order."""

    @abstractmethod
    def query_records(self, sorts: SortSpec) -> List[RawRecord]:
        """Return the database's live records ordered by ``sorts``."""

    @abstractmethod
    def create_record(self, properties: Mapping[str, Any]) -> RawRecord:
        """Create a record in the database and return it as the store reports it."""

    @abstractmethod
    def update_record(self, record_id: str, properties: Mapping[str, Any]) -> RawRecord:
        """Write ``properties`` onto an existing record."""

    @abstractmethod
    def archive_record(self, record_id: str) -> RawRecord:
        """Archive (soft-delete) a record."""


class NotionGateway(StoreGateway):
    """
    Gateway backed by the official Notion SDK.

    SDK and transport failures are raised as GatewayError; a Notion
    'object_not_found' response to a page update is raised as RecordNotFound.
    """

    def __init__(self, token: str, database_id: str, client: Optional[Client] = None) -> None:
        self._client = client or Client(auth=token)
        self._database_id = database_id

    def _call(self, operation: str, fn, page_call: bool = False, **kwargs: Any) -> Dict[str, Any]:
        # object_not_found on a page call means the task is gone; on a database
        # call it means the database is missing or not shared with the integration.
        try:
            return fn(**kwargs)
        except APIResponseError as exc:
            logger.warning(
                "gateway.request_failed",
                operation=operation,
                code=str(exc.code),
                status=exc.status,
            )
            if page_call and exc.code == APIErrorCode.ObjectNotFound:
                raise RecordNotFound("Task not found") from exc
            raise GatewayError(f"Notion {operation} failed: {exc}") from exc
        except (HTTPResponseError, RequestTimeoutError, httpx.HTTPError) as exc:
            logger.warning("gateway.request_failed", operation=operation, error=str(exc))
            raise GatewayError(f"Notion {operation} failed: {exc}") from exc

    def fetch_schema(self) -> RawDefinitions:
        database = self._call(
            "databases.retrieve",
            self._client.databases.retrieve,
            database_id=self._database_id,
        )
        return database.get("properties", {})

    def query_records(self, sorts: SortSpec) -> List[RawRecord]:
        response = self._call(
            "databases.query",
            self._client.databases.query,
            database_id=self._database_id,
            sorts=list(sorts),
        )
        return response.get("results", [])

    def create_record(self, properties: Mapping[str, Any]) -> RawRecord:
        return self._call(
            "pages.create",
            self._client.pages.create,
            parent={"database_id": self._database_id},
            properties=dict(properties),
        )

    def update_record(self, record_id: str, properties: Mapping[str, Any]) -> RawRecord:
        return self._call(
            "pages.update",
            self._client.pages.update,
            page_call=True,
            page_id=record_id,
            properties=dict(properties),
        )

    def archive_record(self, record_id: str) -> RawRecord:
        return self._call(
            "pages.update",
            self._client.pages.update,
            page_call=True,
            page_id=record_id,
            archived=True,
        )


def _options(*names: str) -> Dict[str, Any]:
    return {"options": [{"id": str(i), "name": n} for i, n in enumerate(names, start=1)]}


# Demo database used by the in-memory backend when no definitions are given.
DEFAULT_MEMORY_PROPERTIES: RawDefinitions = {
    "Name": {"id": "title", "name": "Name", "type": "title", "title": {}},
    "Status": {
        "id": "status",
        "name": "Status",
        "type": "status",
        "status": _options("Not started", "In progress", "Done"),
    },
    "Due": {"id": "due", "name": "Due", "type": "date", "date": {}},
    "Priority": {
        "id": "priority",
        "name": "Priority",
        "type": "select",
        "select": _options("Low", "Medium", "High"),
    },
    "Tags": {"id": "tags", "name": "Tags", "type": "multi_select", "multi_select": _options()},
    "Notes": {"id": "notes", "name": "Notes", "type": "rich_text", "rich_text": {}},
    "Link": {"id": "link", "name": "Link", "type": "url", "url": {}},
    "Estimate": {"id": "estimate", "name": "Estimate", "type": "number", "number": {}},
}

_EMPTY_VALUES: Dict[str, Any] = {
    "title": [],
    "rich_text": [],
    "multi_select": [],
    "checkbox": False,
}


def _read_shape(wire_type: str, written: Mapping[str, Any]) -> Dict[str, Any]:
    value = copy.deepcopy(written.get(wire_type))
    if wire_type in ("title", "rich_text"):
        for run in value or []:
            run.setdefault("type", "text")
            run.setdefault("plain_text", (run.get("text") or {}).get("content", ""))
    return {"type": wire_type, wire_type: value}


class InMemoryGateway(StoreGateway):
    """
    Thread-safe in-memory store holding records in the store's raw shape.
    Suitable for tests and for running the service without credentials.
    """

    def __init__(self, definitions: Optional[Mapping[str, Dict[str, Any]]] = None) -> None:
        self._lock = RLock()
        self._definitions: RawDefinitions = copy.deepcopy(
            dict(definitions if definitions is not None else DEFAULT_MEMORY_PROPERTIES)
        )
        self._records: Dict[str, RawRecord] = {}
        self.schema_fetches = 0

    def _now(self) -> str:
        return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def _live(self, record_id: str) -> RawRecord:
        record = self._records.get(record_id)
        if record is None:
            raise RecordNotFound("Task not found")
        if record["archived"]:
            raise GatewayError("Can't edit an archived record")
        return record

    def _write(self, record: RawRecord, properties: Mapping[str, Any]) -> None:
        for name, written in properties.items():
            definition = self._definitions.get(name)
            if definition is None:
                raise GatewayError(f"{name} is not a property that exists")
            record["properties"][name] = _read_shape(definition["type"], written)

    def fetch_schema(self) -> RawDefinitions:
        with self._lock:
            self.schema_fetches += 1
            return copy.deepcopy(self._definitions)

    def query_records(self, sorts: SortSpec) -> List[RawRecord]:
        with self._lock:
            records = [copy.deepcopy(r) for r in self._records.values() if not r["archived"]]
        # Stable sorts applied from the least significant key.
        for sort in reversed(list(sorts)):
            reverse = sort.get("direction") == "descending"
            present = [r for r in records if self._sort_value(r, sort) is not None]
            missing = [r for r in records if self._sort_value(r, sort) is None]
            present.sort(key=lambda r: self._sort_value(r, sort), reverse=reverse)
            records = present + missing
        return records

    def _sort_value(self, record: RawRecord, sort: Mapping[str, str]) -> Any:
        if "timestamp" in sort:
            return record.get(sort["timestamp"])
        prop = record["properties"].get(sort.get("property", ""))
        if not prop:
            return None
        value = prop.get(prop["type"])
        if prop["type"] == "date":
            return (value or {}).get("start")
        if prop["type"] in ("title", "rich_text"):
            return "".join(r.get("plain_text", "") for r in value or [])
        if isinstance(value, dict):
            return value.get("name")
        return value if not isinstance(value, list) else None

    def create_record(self, properties: Mapping[str, Any]) -> RawRecord:
        now = self._now()
        record: RawRecord = {
            "object": "page",
            "id": str(uuid.uuid4()),
            "created_time": now,
            "last_edited_time": now,
            "archived": False,
            "properties": {
                name: {"type": d["type"], d["type"]: copy.deepcopy(_EMPTY_VALUES.get(d["type"]))}
                for name, d in self._definitions.items()
            },
        }
        with self._lock:
            self._write(record, properties)
            self._records[record["id"]] = record
            return copy.deepcopy(record)

    def update_record(self, record_id: str, properties: Mapping[str, Any]) -> RawRecord:
        with self._lock:
            record = self._live(record_id)
            self._write(record, properties)
            record["last_edited_time"] = self._now()
            return copy.deepcopy(record)

    def archive_record(self, record_id: str) -> RawRecord:
        with self._lock:
            record = self._live(record_id)
            record["archived"] = True
            return copy.deepcopy(record)


# PUBLIC_INTERFACE
def get_gateway(settings: Settings) -> StoreGateway:
    """
    Factory returning the configured gateway.
    - notion: NotionGateway (requires NOTION_API_KEY and NOTION_DATABASE_ID)
    - memory: InMemoryGateway with the demo database
    """
    if settings.store_backend == "notion":
        if settings.notion_api_key and settings.notion_database_id:
            return NotionGateway(settings.notion_api_key, settings.notion_database_id)
        logger.warning("gateway.memory_fallback", reason="missing Notion credentials")
    return InMemoryGateway()
