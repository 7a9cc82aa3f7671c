"""
Pytest configuration and shared fixtures for cms-migrations tests.
"""

import logging
import os
import sys
import tempfile
import textwrap
from collections.abc import Generator, Iterable, Sequence
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from cms_migrations.database.connection import DatabaseManager
from cms_migrations.database.ledger import Ledger
from cms_migrations.schema.models import FieldDef, PageRecord, TemplateDef

UNIT_SOURCE = """\
from sqlalchemy import text

from cms_migrations import {base}


class {class_name}({base}):
    description = {description!r}

    def update(self) -> None:
{update}

    def downgrade(self) -> None:
{downgrade}
"""


class FakeContentSchema:
    """In-memory ContentSchema used in place of a real CMS."""

    native_fields = {"id", "name", "status", "created", "modified", "parent_id"}

    def __init__(self) -> None:
        self.fields: dict[str, FieldDef] = {}
        self.templates: dict[str, TemplateDef] = {}
        self.pages: list[PageRecord] = []
        self.modules: set[str] = set()
        self.saved_pages: list[tuple[int, bool]] = []

    # Test setup helpers

    def add_field(self, name: str, type: str = "FieldtypeText", label: str = "") -> FieldDef:
        field = FieldDef(name=name, type=type, label=label)
        self.fields[name] = field
        return field

    def add_template(
        self, name: str, fields: Sequence[str] = (), contexts: dict | None = None
    ) -> TemplateDef:
        template = TemplateDef(name=name, fields=list(fields), contexts=contexts or {})
        self.templates[name] = template
        return template

    def add_page(self, id: int, template: str, **data) -> PageRecord:
        page = PageRecord(id=id, template=template, data=dict(data))
        self.pages.append(page)
        return page

    # ContentSchema

    def get_field(self, name: str) -> FieldDef | None:
        return self.fields.get(name)

    def is_native_field(self, name: str) -> bool:
        return name in self.native_fields

    def save_field(self, field: FieldDef) -> FieldDef:
        self.fields[field.name] = field
        return field

    def rename_field(self, field: FieldDef, new_name: str) -> FieldDef:
        old_name = field.name
        del self.fields[old_name]
        field.name = new_name
        self.fields[new_name] = field

        for template in self.templates.values():
            if old_name in template.fields:
                template.fields[template.fields.index(old_name)] = new_name
            if old_name in template.contexts:
                template.contexts[new_name] = template.contexts.pop(old_name)
        for page in self.pages:
            if old_name in page.data:
                page.data[new_name] = page.data.pop(old_name)
        return field

    def clone_field(self, field: FieldDef, new_name: str) -> FieldDef:
        clone = FieldDef(
            name=new_name, type=field.type, label=field.label, settings=dict(field.settings)
        )
        self.fields[new_name] = clone
        return clone

    def delete_field(self, field: FieldDef) -> None:
        self.fields.pop(field.name, None)

    def get_template(self, name: str) -> TemplateDef | None:
        return self.templates.get(name)

    def save_template(self, template: TemplateDef) -> TemplateDef:
        self.templates[template.name] = template
        for page in self.pages:
            if page.template == template.name:
                for key in list(page.data):
                    if key not in template.fields:
                        del page.data[key]
        return template

    def delete_template(self, template: TemplateDef) -> None:
        self.templates.pop(template.name, None)

    def templates_using_field(self, field: FieldDef) -> list[TemplateDef]:
        return [t for t in self.templates.values() if field.name in t.fields]

    def find_pages(self, template_names: Sequence[str]) -> Iterable[PageRecord]:
        return [page for page in self.pages if page.template in template_names]

    def save_page(self, page: PageRecord, quiet: bool = True) -> None:
        self.saved_pages.append((page.id, quiet))

    def install_module(self, name: str) -> None:
        self.modules.add(name)

    def uninstall_module(self, name: str) -> None:
        self.modules.discard(name)


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before each test."""
    root_logger = logging.getLogger()
    original_handlers = root_logger.handlers[:]
    original_level = root_logger.level

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(logging.NOTSET)

    yield

    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    root_logger.setLevel(original_level)
    for handler in original_handlers:
        root_logger.addHandler(handler)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep CMS_MIGRATIONS_* variables of the developer's shell out of tests."""
    for name in list(os.environ):
        if name.startswith("CMS_MIGRATIONS_"):
            monkeypatch.delenv(name)


@pytest.fixture
def temp_workspace() -> Generator[Path, None, None]:
    """Create a temporary workspace directory."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def temp_log_file(temp_workspace) -> Path:
    """Provide a temporary log file path."""
    return temp_workspace / "logs" / "cms-migrations.log"


@pytest.fixture
def db() -> Generator[DatabaseManager, None, None]:
    """In-memory SQLite database manager."""
    manager = DatabaseManager(database_url="sqlite:///:memory:")
    yield manager
    manager.close()


@pytest.fixture
def file_db(temp_workspace) -> Generator[DatabaseManager, None, None]:
    """SQLite database manager backed by a file."""
    manager = DatabaseManager(database_url=f"sqlite:///{temp_workspace / 'cms.db'}")
    yield manager
    manager.close()


@pytest.fixture
def ledger(db) -> Ledger:
    return Ledger(db)


@pytest.fixture
def fake_schema() -> FakeContentSchema:
    return FakeContentSchema()


@pytest.fixture
def write_unit():
    """Write a migration unit file; bodies are Python statements."""

    def _write(
        directory: Path,
        identifier: str,
        description: str = "",
        update: str = "pass",
        downgrade: str = "pass",
        base: str = "MigrationUnit",
        class_name: str | None = None,
    ) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        source = UNIT_SOURCE.format(
            base=base,
            class_name=class_name or "Migration_" + identifier.replace("-", "_"),
            description=description,
            update=textwrap.indent(textwrap.dedent(update).strip(), " " * 8),
            downgrade=textwrap.indent(textwrap.dedent(downgrade).strip(), " " * 8),
        )
        path = directory / f"{identifier}.py"
        path.write_text(source)
        return path

    return _write
