from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, TypedDict, Union

from .errors import MissingTitleProperty

# A uniform property value: text, number, flag, list of option names, or null.
UniformValue = Union[str, int, float, bool, None, List[str]]


# PUBLIC_INTERFACE
class PropertyKind(str, Enum):
    """
    Declared type of one external column. Values are the store's wire tags;
    any tag not listed here is represented as OTHER.
    """

    TITLE = "title"
    TEXT = "rich_text"
    SELECT = "select"
    MULTI_SELECT = "multi_select"
    CHECKBOX = "checkbox"
    STATUS = "status"
    DATE = "date"
    URL = "url"
    NUMBER = "number"
    OTHER = "other"

    @classmethod
    def from_wire(cls, wire_type: Optional[str]) -> "PropertyKind":
        for kind in cls:
            if kind is not cls.OTHER and kind.value == wire_type:
                return kind
        return cls.OTHER


CHOICE_KINDS = (PropertyKind.SELECT, PropertyKind.MULTI_SELECT, PropertyKind.STATUS)
BOOLEAN_KINDS = (PropertyKind.CHECKBOX, PropertyKind.STATUS)


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class PropertyDefinition:
    """
    One external column definition.

    Fields:
    - name: unique key within the schema
    - kind: classified PropertyKind
    - choices: declared option names, only for Select/MultiSelect/Status
    - wire_type: the raw type tag reported by the store (e.g. 'email')
    """

    name: str
    kind: PropertyKind
    choices: Tuple[str, ...] = ()
    wire_type: str = ""


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class Schema:
    """
    Property definitions of the external database plus the two semantic
    projections used by the task contract: the title property and the
    boolean-like property that backs the 'completed' flag.
    """

    definitions: Mapping[str, PropertyDefinition] = field(default_factory=dict)
    title_property: Optional[str] = None
    boolean_property: Optional[str] = None

    def get(self, name: str) -> Optional[PropertyDefinition]:
        return self.definitions.get(name)

    def names_of(self, *kinds: PropertyKind) -> Tuple[str, ...]:
        """Names of properties of the given kinds, in definition order."""
        return tuple(name for name, d in self.definitions.items() if d.kind in kinds)

    @property
    def boolean_like(self) -> Tuple[str, ...]:
        return self.names_of(*BOOLEAN_KINDS)

    @property
    def date_like(self) -> Tuple[str, ...]:
        return self.names_of(PropertyKind.DATE)

    @property
    def choice_like(self) -> Tuple[str, ...]:
        return self.names_of(PropertyKind.SELECT, PropertyKind.MULTI_SELECT)

    @property
    def numeric(self) -> Tuple[str, ...]:
        return self.names_of(PropertyKind.NUMBER)

    @property
    def free_text(self) -> Tuple[str, ...]:
        return self.names_of(PropertyKind.TEXT)

    @property
    def link_like(self) -> Tuple[str, ...]:
        return self.names_of(PropertyKind.URL)

    def require_title(self) -> str:
        """Return the title property name or raise MissingTitleProperty."""
        if self.title_property is None:
            raise MissingTitleProperty("Database must have a title property")
        return self.title_property


# PUBLIC_INTERFACE
class UniformRecord(TypedDict):
    """
    Store-agnostic representation of one external record.

    Fields:
    - id: opaque record identifier
    - created_at: creation timestamp
    - title: decoded title property value ('Untitled' when empty)
    - completed: flag derived from the boolean-like property
    - properties: decoded value of every defined property present on the record
    """

    id: str
    created_at: Optional[datetime]
    title: Optional[str]
    completed: bool
    properties: Dict[str, Any]
