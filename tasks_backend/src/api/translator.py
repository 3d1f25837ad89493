from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Mapping, Optional

import structlog

from .codec import Payload, decode, encode
from .models import PropertyKind, Schema, UniformRecord

logger = structlog.get_logger(__name__)

UNTITLED = "Untitled"
DONE_NAMES = frozenset({"done", "complete", "completed"})


def is_done_like(name: str) -> bool:
    return name.lower() in DONE_NAMES


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _completed_from(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return is_done_like(value)
    return False


# PUBLIC_INTERFACE
def to_uniform(schema: Schema, raw_record: Mapping[str, Any]) -> UniformRecord:
    """
    Convert one raw external record into a UniformRecord.

    Only properties declared in the schema are decoded. The title falls back
    to 'Untitled' when empty, and 'completed' is read from the boolean-like
    property (a status name counts as done when it is done-like).
    """
    raw_properties: Mapping[str, Any] = raw_record.get("properties") or {}
    properties: Dict[str, Any] = {}
    for name, raw_value in raw_properties.items():
        definition = schema.get(name)
        if definition is None:
            continue
        properties[name] = decode(definition.kind, raw_value)

    title: Optional[str] = None
    if schema.title_property is not None:
        title = properties.get(schema.title_property) or UNTITLED

    completed = False
    if schema.boolean_property is not None:
        completed = _completed_from(properties.get(schema.boolean_property))

    return {
        "id": raw_record["id"],
        "created_at": _parse_timestamp(raw_record.get("created_time")),
        "title": title,
        "completed": completed,
        "properties": properties,
    }


# PUBLIC_INTERFACE
def to_write_payload(schema: Schema, requested: Mapping[str, Any]) -> Dict[str, Payload]:
    """
    Encode a partial property update into the store's write shape.

    Unknown property names are dropped. Empty strings are dropped except for
    the title property, so a missing title can still be detected downstream.
    Values that encode to None are omitted.
    """
    payload: Dict[str, Payload] = {}
    for name, value in requested.items():
        if value == "" and name != schema.title_property:
            continue
        definition = schema.get(name)
        if definition is None:
            continue
        encoded = encode(definition, value)
        if encoded is not None:
            payload[name] = encoded
    return payload


# PUBLIC_INTERFACE
def apply_completed_flag(
    schema: Schema,
    requested_completed: Optional[bool],
    payload: Mapping[str, Payload],
) -> Dict[str, Payload]:
    """
    Merge a requested 'completed' flag into a write payload.

    A checkbox property receives the flag directly. For a status property the
    declared choices are split into done-like and not-done options: True
    selects the first done-like option, False the first not-done option, and
    when no not-done option exists the first done-like option is written.
    """
    merged = dict(payload)
    name = schema.boolean_property
    if requested_completed is None or name is None:
        return merged

    definition = schema.definitions[name]
    if definition.kind is PropertyKind.CHECKBOX:
        merged[name] = {"checkbox": bool(requested_completed)}
        return merged

    done = [c for c in definition.choices if is_done_like(c)]
    not_done = [c for c in definition.choices if not is_done_like(c)]
    if requested_completed and done:
        choice = done[0]
    elif not_done:
        choice = not_done[0]
    elif done:
        choice = done[0]
    else:
        logger.warning("completed_flag.no_choices", property=name)
        return merged
    merged[name] = {"status": {"name": choice}}
    return merged
