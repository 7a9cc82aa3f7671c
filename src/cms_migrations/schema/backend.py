"""The CMS object API the schema-editing helpers drive.

The surrounding application provides an implementation and passes it to the
migration context; nothing in this package reaches for a global registry.
"""

from collections.abc import Iterable, Sequence
from typing import Protocol, runtime_checkable

from .models import FieldDef, PageRecord, TemplateDef


@runtime_checkable
class ContentSchema(Protocol):
    """Fields, templates, pages and modules of a CMS installation."""

    def get_field(self, name: str) -> FieldDef | None: ...

    def is_native_field(self, name: str) -> bool: ...

    def save_field(self, field: FieldDef) -> FieldDef:
        """Create the field if it is new, otherwise persist its settings."""
        ...

    def rename_field(self, field: FieldDef, new_name: str) -> FieldDef:
        """Rename a field everywhere it is referenced."""
        ...

    def clone_field(self, field: FieldDef, new_name: str) -> FieldDef: ...

    def delete_field(self, field: FieldDef) -> None: ...

    def get_template(self, name: str) -> TemplateDef | None: ...

    def save_template(self, template: TemplateDef) -> TemplateDef:
        """Persist a template with its field group and context overrides.

        Page data of fields dropped from the field group is removed.
        """
        ...

    def delete_template(self, template: TemplateDef) -> None: ...

    def templates_using_field(self, field: FieldDef) -> list[TemplateDef]: ...

    def find_pages(self, template_names: Sequence[str]) -> Iterable[PageRecord]: ...

    def save_page(self, page: PageRecord, quiet: bool = True) -> None:
        """Persist page data; ``quiet`` leaves modified date and user alone."""
        ...

    def install_module(self, name: str) -> None: ...

    def uninstall_module(self, name: str) -> None: ...
