"""Plain data types exchanged with a content-schema backend."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class FieldDef:
    """A CMS field: a named, typed slot pages can store a value in."""

    name: str
    type: str
    label: str = ""
    settings: dict[str, Any] = field(default_factory=dict)
    id: int | None = None


@dataclass
class TemplateDef:
    """A CMS template and its field group.

    ``fields`` is the field group in display order. ``contexts`` holds the
    per-template overrides of field settings, keyed by field name.
    """

    name: str
    fields: list[str] = field(default_factory=list)
    contexts: dict[str, dict[str, Any]] = field(default_factory=dict)
    id: int | None = None

    def has_field(self, name: str) -> bool:
        return name in self.fields


@dataclass
class PageRecord:
    """A page and its field values."""

    id: int
    template: str
    data: dict[str, Any] = field(default_factory=dict)
