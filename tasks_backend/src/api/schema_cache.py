from __future__ import annotations

from threading import RLock
from typing import Any, Dict, Mapping, Optional

import structlog

from .errors import GatewayError, SchemaFetchFailed
from .gateway import StoreGateway
from .models import BOOLEAN_KINDS, CHOICE_KINDS, PropertyDefinition, PropertyKind, Schema

logger = structlog.get_logger(__name__)


def _parse_definition(name: str, raw: Mapping[str, Any]) -> PropertyDefinition:
    wire_type = raw.get("type") or ""
    kind = PropertyKind.from_wire(wire_type)
    choices: tuple = ()
    if kind in CHOICE_KINDS:
        options = (raw.get(wire_type) or {}).get("options") or []
        choices = tuple(o["name"] for o in options)
    return PropertyDefinition(name=name, kind=kind, choices=choices, wire_type=wire_type)


# PUBLIC_INTERFACE
def parse_schema(raw_definitions: Mapping[str, Mapping[str, Any]]) -> Schema:
    """
    Classify raw property definitions into a Schema.

    The title property is the first Title-kind property and the boolean
    property is the first Checkbox- or Status-kind property, both in the
    store's definition order.
    """
    definitions: Dict[str, PropertyDefinition] = {}
    title_property: Optional[str] = None
    boolean_property: Optional[str] = None
    for name, raw in raw_definitions.items():
        definition = _parse_definition(name, raw)
        definitions[name] = definition
        if title_property is None and definition.kind is PropertyKind.TITLE:
            title_property = name
        if boolean_property is None and definition.kind in BOOLEAN_KINDS:
            boolean_property = name
    return Schema(
        definitions=definitions,
        title_property=title_property,
        boolean_property=boolean_property,
    )


# PUBLIC_INTERFACE
class SchemaCache:
    """
    Fetches the external schema once and serves it for the process lifetime.

    The lock is held across the first fetch, so concurrent first callers wait
    for a single fetch instead of issuing their own. A failed fetch leaves the
    cache empty and the next call tries again. There is no invalidation;
    external schema edits are picked up only after a restart.
    """

    def __init__(self, gateway: StoreGateway) -> None:
        self._gateway = gateway
        self._lock = RLock()
        self._schema: Optional[Schema] = None

    @property
    def cached(self) -> Optional[Schema]:
        return self._schema

    def get_schema(self) -> Schema:
        schema = self._schema
        if schema is not None:
            return schema
        with self._lock:
            if self._schema is None:
                self._schema = self._fetch()
            return self._schema

    def _fetch(self) -> Schema:
        try:
            raw_definitions = self._gateway.fetch_schema()
        except GatewayError as exc:
            logger.error("schema.fetch_failed", error=exc.message)
            raise SchemaFetchFailed("Failed to fetch database schema") from exc
        schema = parse_schema(raw_definitions)
        logger.info(
            "schema.fetched",
            properties=len(schema.definitions),
            title_property=schema.title_property,
            boolean_property=schema.boolean_property,
        )
        return schema
