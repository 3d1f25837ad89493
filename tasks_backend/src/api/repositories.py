from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List, Mapping, Optional

import structlog

from .errors import GatewayError, MissingTitleValue, RecordReadFailed, RecordWriteFailed
from .gateway import StoreGateway, get_gateway
from .models import CHOICE_KINDS, UniformRecord
from .schema_cache import SchemaCache
from .settings import get_settings
from .translator import apply_completed_flag, to_uniform, to_write_payload

logger = structlog.get_logger(__name__)


# PUBLIC_INTERFACE
class TaskRepository:
    """
    Task-list view over an external record store.

    Reads the cached schema once per operation, translates between uniform
    and external values, and delegates the actual calls to a StoreGateway.
    Gateway failures are surfaced as RecordReadFailed/RecordWriteFailed;
    nothing is retried.
    """

    def __init__(
        self,
        gateway: StoreGateway,
        schema_cache: Optional[SchemaCache] = None,
        sort_property: str = "Due",
    ) -> None:
        self._gateway = gateway
        self._schema_cache = schema_cache or SchemaCache(gateway)
        self._sort_property = sort_property

    def describe_schema(self) -> Dict[str, Any]:
        """Return the title/boolean properties and each property's type and options."""
        schema = self._schema_cache.get_schema()
        return {
            "title_property": schema.title_property,
            "boolean_property": schema.boolean_property,
            "properties": [
                {
                    "name": d.name,
                    "type": d.wire_type,
                    "options": list(d.choices) if d.kind in CHOICE_KINDS else None,
                }
                for d in schema.definitions.values()
            ],
        }

    def list_records(self) -> List[UniformRecord]:
        schema = self._schema_cache.get_schema()
        if schema.get(self._sort_property) is not None:
            sorts = [{"property": self._sort_property, "direction": "ascending"}]
        else:
            sorts = [{"timestamp": "created_time", "direction": "ascending"}]
        try:
            raw_records = self._gateway.query_records(sorts)
        except GatewayError as exc:
            raise RecordReadFailed("Failed to fetch items from database") from exc
        records = [to_uniform(schema, raw) for raw in raw_records]
        logger.info("tasks.listed", count=len(records))
        return records

    def create_record(self, properties: Mapping[str, Any]) -> UniformRecord:
        schema = self._schema_cache.get_schema()
        title_property = schema.require_title()
        if not properties.get(title_property):
            raise MissingTitleValue(f'Title property "{title_property}" is required')

        payload = to_write_payload(schema, properties)
        try:
            raw = self._gateway.create_record(payload)
        except GatewayError as exc:
            raise RecordWriteFailed("Failed to create item in database") from exc
        record = to_uniform(schema, raw)
        logger.info("task.created", task_id=record["id"], properties=sorted(payload))
        return record

    def update_record(
        self,
        record_id: str,
        properties: Mapping[str, Any],
        completed: Optional[bool] = None,
    ) -> Dict[str, Any]:
        schema = self._schema_cache.get_schema()
        payload = apply_completed_flag(schema, completed, to_write_payload(schema, properties))
        try:
            self._gateway.update_record(record_id, payload)
        except GatewayError as exc:
            raise RecordWriteFailed("Failed to update item in database") from exc
        logger.info("task.updated", task_id=record_id, properties=sorted(payload))
        return {"id": record_id, "updated": True, "properties": dict(properties)}

    def archive_record(self, record_id: str) -> Dict[str, Any]:
        try:
            self._gateway.archive_record(record_id)
        except GatewayError as exc:
            raise RecordWriteFailed("Failed to delete item from database") from exc
        logger.info("task.archived", task_id=record_id)
        return {"id": record_id, "deleted": True}


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_repository() -> TaskRepository:
    """
    Return the process-wide repository for the configured backend. The
    instance is shared so its schema cache survives across requests.
    """
    settings = get_settings()
    return TaskRepository(get_gateway(settings), sort_property=settings.sort_property)
