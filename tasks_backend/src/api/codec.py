"""
Conversion between one external typed property value and one uniform value.

The store wraps every value in a kind-specific envelope, e.g.
``{"type": "select", "select": {"name": "High"}}``. ``decode`` unwraps such an
envelope into a plain value and ``encode`` builds the envelope the store
expects on write. Both functions are pure.
"""
from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

from .models import PropertyDefinition, PropertyKind, UniformValue

Payload = Dict[str, Any]

_FALSE_STRINGS = {"", "0", "false", "no", "off"}


def _plain_text(runs: Optional[List[Mapping[str, Any]]]) -> str:
    parts = []
    for run in runs or []:
        text = run.get("plain_text")
        if text is None:
            text = (run.get("text") or {}).get("content", "")
        parts.append(text)
    return "".join(parts)


def _option_name(option: Optional[Mapping[str, Any]]) -> Optional[str]:
    if not option:
        return None
    return option.get("name") or None


def _decode_date(value: Optional[Mapping[str, Any]]) -> Optional[str]:
    if not value:
        return None
    return value.get("start") or None


_DECODERS: Dict[PropertyKind, Callable[[Any], UniformValue]] = {
    PropertyKind.TITLE: _plain_text,
    PropertyKind.TEXT: _plain_text,
    PropertyKind.SELECT: _option_name,
    PropertyKind.MULTI_SELECT: lambda options: [o["name"] for o in options or []],
    PropertyKind.CHECKBOX: lambda checked: bool(checked),
    PropertyKind.STATUS: _option_name,
    PropertyKind.DATE: _decode_date,
    PropertyKind.URL: lambda url: url,
    PropertyKind.NUMBER: lambda number: number,
    PropertyKind.OTHER: lambda _: None,
}


# PUBLIC_INTERFACE
def decode(kind: PropertyKind, raw_property: Optional[Mapping[str, Any]]) -> UniformValue:
    """
    Convert an external property envelope into a uniform value.

    Text kinds join their rich-text runs ('' when there are none), multi-select
    yields a list of option names (never None), select/status/date/url/number
    yield their value or None. Unrecognized kinds decode to None.
    """
    if raw_property is None or kind is PropertyKind.OTHER:
        return None
    return _DECODERS[kind](raw_property.get(kind.value))


def _rich_text(value: Any) -> List[Payload]:
    return [{"text": {"content": str(value)}}]


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    return bool(value)


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        text = str(value).strip()
        number = int(text) if text.lstrip("-").isdigit() else float(text)
    except ValueError:
        return None
    # nan and inf have no JSON representation
    if isinstance(number, float) and not math.isfinite(number):
        return None
    return number


def _to_date(value: Any) -> str:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _status_name(definition: PropertyDefinition, value: Any) -> str:
    # An unmatched name falls back to the first declared choice so that a
    # status write never fails.
    wanted = str(value).lower()
    for choice in definition.choices:
        if choice.lower() == wanted:
            return choice
    if definition.choices:
        return definition.choices[0]
    return str(value)


# PUBLIC_INTERFACE
def encode(definition: PropertyDefinition, value: Any) -> Optional[Payload]:
    """
    Build the external write payload for ``value`` of the given property.

    Returns None when ``value`` is None or cannot be expressed for the kind;
    callers must then omit the property from the write. Select and
    multi-select names are not validated against the declared choices.
    """
    if value is None:
        return None

    kind = definition.kind
    if kind is PropertyKind.TITLE:
        return {"title": _rich_text(value)}
    if kind is PropertyKind.TEXT:
        return {"rich_text": _rich_text(value)}
    if kind is PropertyKind.SELECT:
        return {"select": {"name": str(value)}}
    if kind is PropertyKind.MULTI_SELECT:
        values = value if isinstance(value, (list, tuple)) else [value]
        return {"multi_select": [{"name": str(v)} for v in values]}
    if kind is PropertyKind.CHECKBOX:
        return {"checkbox": _to_bool(value)}
    if kind is PropertyKind.STATUS:
        return {"status": {"name": _status_name(definition, value)}}
    if kind is PropertyKind.DATE:
        return {"date": {"start": _to_date(value)}}
    if kind is PropertyKind.URL:
        return {"url": str(value)}
    if kind is PropertyKind.NUMBER:
        number = _to_number(value)
        return None if number is None else {"number": number}
    return None
