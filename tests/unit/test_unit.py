"""Tests for the migration unit base classes."""

from unittest.mock import Mock

import pytest
from sqlalchemy.engine import Engine

from cms_migrations.core.exceptions import SchemaError
from cms_migrations.core.unit import (
    FieldMigration,
    MigrationContext,
    MigrationUnit,
    ModuleMigration,
    TemplateMigration,
    unit_kind,
)
from cms_migrations.schema.editor import SchemaEditor
from cms_migrations.schema.models import FieldDef, TemplateDef
from cms_migrations.utils.logging import ConfigurationError


class NoopUnit(MigrationUnit):
    description = "Nothing at all"

    def update(self) -> None:
        pass

    def downgrade(self) -> None:
        pass


class SummaryField(FieldMigration):
    field_name = "summary"
    field_type = "FieldtypeTextarea"

    def field_setup(self, field: FieldDef) -> None:
        field.label = "Summary"


class ArticleTemplate(TemplateMigration):
    template_name = "article"

    def template_setup(self, template: TemplateDef) -> None:
        template.fields.extend(["title", "summary"])


class FormsModule(ModuleMigration):
    module_name = "FormBuilder"


class TestMigrationUnit:
    def test_is_abstract(self):
        with pytest.raises(TypeError, match="Can't instantiate abstract class"):
            MigrationUnit()

    def test_defaults(self):
        unit = NoopUnit()

        assert unit.kind == "default"
        assert isinstance(unit.context, MigrationContext)
        assert str(unit) == "NoopUnit: Nothing at all"
        assert repr(unit) == "<NoopUnit(kind='default', description='Nothing at all')>"

    def test_missing_dependencies_raise(self):
        unit = NoopUnit()

        with pytest.raises(ConfigurationError, match="engine"):
            unit.engine
        with pytest.raises(ConfigurationError, match="content schema"):
            unit.schema
        with pytest.raises(ConfigurationError, match="snapshot"):
            unit.snapshots

    def test_dependencies_from_context(self, fake_schema):
        engine = Mock(spec=Engine)
        snapshots = Mock()
        unit = NoopUnit(MigrationContext(engine=engine, schema=fake_schema, snapshots=snapshots))

        assert unit.engine is engine
        assert unit.snapshots is snapshots
        assert isinstance(unit.schema, SchemaEditor)
        assert unit.schema is unit.schema
        assert unit.schema.schema is fake_schema

    def test_unit_kind(self):
        assert unit_kind(NoopUnit) == "default"
        assert unit_kind(SummaryField) == "field"
        assert unit_kind(object()) == "default"


class TestFieldMigration:
    def test_update_creates_field(self, fake_schema):
        SummaryField(MigrationContext(schema=fake_schema)).update()

        field = fake_schema.get_field("summary")
        assert field.type == "FieldtypeTextarea"
        assert field.label == "Summary"

    def test_downgrade_removes_field_from_templates(self, fake_schema):
        unit = SummaryField(MigrationContext(schema=fake_schema))
        unit.update()
        fake_schema.add_template("article", ["title", "summary"])

        unit.downgrade()

        assert fake_schema.get_field("summary") is None
        assert fake_schema.get_template("article").fields == ["title"]

    def test_existing_field_rejected(self, fake_schema):
        fake_schema.add_field("summary")

        with pytest.raises(SchemaError, match="candidate fieldnames"):
            SummaryField(MigrationContext(schema=fake_schema)).update()

    def test_name_required(self, fake_schema):
        class Unnamed(FieldMigration):
            field_type = "FieldtypeText"

        with pytest.raises(SchemaError, match="field_name"):
            Unnamed(MigrationContext(schema=fake_schema)).update()


class TestTemplateMigration:
    def test_update_and_downgrade(self, fake_schema):
        unit = ArticleTemplate(MigrationContext(schema=fake_schema))

        unit.update()
        assert fake_schema.get_template("article").fields == ["title", "summary"]

        unit.downgrade()
        assert fake_schema.get_template("article") is None

    def test_existing_template_rejected(self, fake_schema):
        fake_schema.add_template("article")

        with pytest.raises(SchemaError, match="already exists"):
            ArticleTemplate(MigrationContext(schema=fake_schema)).update()


class TestModuleMigration:
    def test_install_and_uninstall(self, fake_schema):
        unit = FormsModule(MigrationContext(schema=fake_schema))

        unit.update()
        assert "FormBuilder" in fake_schema.modules

        unit.downgrade()
        assert "FormBuilder" not in fake_schema.modules

    def test_name_required(self, fake_schema):
        with pytest.raises(SchemaError):
            ModuleMigration(MigrationContext(schema=fake_schema)).update()
