"""Schema-editing helpers for fields, templates and field groups."""

from .backend import ContentSchema
from .editor import SchemaEditor, sanitize_field_name
from .models import FieldDef, PageRecord, TemplateDef

__all__ = [
    "ContentSchema",
    "FieldDef",
    "PageRecord",
    "SchemaEditor",
    "TemplateDef",
    "sanitize_field_name",
]
