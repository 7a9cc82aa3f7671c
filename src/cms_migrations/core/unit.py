"""Migration unit base classes."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from sqlalchemy.engine import Engine

from ..database.snapshots import SnapshotManager
from ..schema.backend import ContentSchema
from ..schema.editor import SchemaEditor
from ..schema.models import FieldDef, TemplateDef
from ..utils.logging import ConfigurationError
from .exceptions import SchemaError


@dataclass
class MigrationContext:
    """Dependencies handed to every migration unit on construction."""

    engine: Engine | None = None
    schema: ContentSchema | None = None
    snapshots: SnapshotManager | None = None


class MigrationUnit(ABC):
    """A single versioned, reversible change.

    Subclasses set ``description`` and implement ``update()`` (forward) and
    ``downgrade()`` (reverse). Both take no arguments; anything they need
    comes from the context passed to the constructor.

    Example:
        class Migration_2024_03_01_09_15_00(MigrationUnit):
            description = "Label the summary field"

            def update(self) -> None:
                self.schema.label_field("summary", "Teaser")

            def downgrade(self) -> None:
                self.schema.label_field("summary", "Summary")
    """

    description: str = ""
    kind: str = "default"

    def __init__(self, context: MigrationContext | None = None) -> None:
        self.context = context or MigrationContext()
        self._editor: SchemaEditor | None = None

    @abstractmethod
    def update(self) -> None:
        """Apply the change."""
        pass

    @abstractmethod
    def downgrade(self) -> None:
        """Undo the change."""
        pass

    @property
    def engine(self) -> Engine:
        if self.context.engine is None:
            raise ConfigurationError("No database engine in the migration context")
        return self.context.engine

    @property
    def schema(self) -> SchemaEditor:
        """Schema-editing helpers bound to the context's content schema."""
        if self.context.schema is None:
            raise ConfigurationError("No content schema in the migration context")
        if self._editor is None:
            self._editor = SchemaEditor(self.context.schema)
        return self._editor

    @property
    def snapshots(self) -> SnapshotManager:
        if self.context.snapshots is None:
            raise ConfigurationError("No snapshot manager in the migration context")
        return self.context.snapshots

    def __str__(self) -> str:
        return f"{self.__class__.__name__}: {self.description}"

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__}(kind='{self.kind}', "
            f"description='{self.description}')>"
        )


class FieldMigration(MigrationUnit):
    """Creates one field on update and deletes it on downgrade."""

    kind = "field"

    field_name: str = ""
    field_type: str = ""

    def field_setup(self, field: FieldDef) -> None:
        """Adjust the new field before it is saved."""
        pass

    def update(self) -> None:
        if not self.field_name or not self.field_type:
            raise SchemaError(
                f"{self.__class__.__name__} must set field_name and field_type"
            )
        editor = self.schema
        editor.verify_candidate_field_names([self.field_name], quiet=False)

        field = FieldDef(name=self.field_name, type=self.field_type)
        self.field_setup(field)
        editor.schema.save_field(field)

    def downgrade(self) -> None:
        self.schema.delete_field(self.field_name)


class TemplateMigration(MigrationUnit):
    """Creates one template with its field group on update, deletes it on downgrade."""

    kind = "template"

    template_name: str = ""

    def template_setup(self, template: TemplateDef) -> None:
        """Add fields and context settings to the new template before it is saved."""
        pass

    def update(self) -> None:
        if not self.template_name:
            raise SchemaError(f"{self.__class__.__name__} must set template_name")
        backend = self.schema.schema
        if backend.get_template(self.template_name) is not None:
            raise SchemaError(f"A template called {self.template_name} already exists")

        template = TemplateDef(name=self.template_name)
        self.template_setup(template)
        backend.save_template(template)

    def downgrade(self) -> None:
        template = self.schema.get_template(self.template_name)
        self.schema.schema.delete_template(template)


class ModuleMigration(MigrationUnit):
    """Installs a CMS module on update and uninstalls it on downgrade."""

    kind = "module"

    module_name: str = ""

    def update(self) -> None:
        if not self.module_name:
            raise SchemaError(f"{self.__class__.__name__} must set module_name")
        self.schema.schema.install_module(self.module_name)

    def downgrade(self) -> None:
        self.schema.schema.uninstall_module(self.module_name)


def unit_kind(unit: Any) -> str:
    """Kind of a unit class or instance, ``default`` when it declares none."""
    return getattr(unit, "kind", None) or "default"
