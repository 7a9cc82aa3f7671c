"""Tests for migration unit discovery and loading."""

from pathlib import Path
from unittest.mock import patch

import pytest

from cms_migrations.core.discovery import (
    DirectoryUnitStorage,
    UnitLocation,
    UnitRegistry,
    describe,
)
from cms_migrations.core.exceptions import (
    DuplicateEntryError,
    InvalidNameError,
    LoadError,
    Phase,
    StorageUnavailableError,
)
from cms_migrations.core.unit import FieldMigration, MigrationUnit

ID_A = "2024-01-01_10-00-30"
ID_B = "2024-01-02_10-00"


class NoopUnit(MigrationUnit):
    description = "Does nothing"

    def update(self) -> None:
        pass

    def downgrade(self) -> None:
        pass


class TestDirectoryUnitStorage:
    """Test file-based unit discovery."""

    def test_missing_directory_is_created(self, temp_workspace):
        storage = DirectoryUnitStorage(temp_workspace / "site" / "migrations")

        assert storage.list_units() == []
        assert storage.path.is_dir()

    @pytest.mark.parametrize("newest_first", [True, False])
    def test_lists_units_sorted(self, temp_workspace, write_unit, newest_first):
        directory = temp_workspace / "migrations"
        write_unit(directory, ID_B)
        write_unit(directory, ID_A)
        real_iterdir = Path.iterdir

        def fixed_order(path):
            return iter(sorted(real_iterdir(path), reverse=newest_first))

        with patch.object(Path, "iterdir", fixed_order):
            units = DirectoryUnitStorage(directory).list_units()

        assert [u.identifier for u in units] == [ID_A, ID_B]
        assert units[0] == UnitLocation(ID_A, str(directory / f"{ID_A}.py"))

    def test_ignores_unrelated_entries(self, temp_workspace, write_unit):
        directory = temp_workspace / "migrations"
        write_unit(directory, ID_A)
        (directory / "README.md").write_text("docs")
        (directory / "helpers.py").write_text("X = 1\n")
        (directory / "_private.py").write_text("X = 1\n")
        (directory / ".2024-01-05_00-00.py").write_text("X = 1\n")
        (directory / "2024-01-06_00-00.py").mkdir()

        units = DirectoryUnitStorage(directory).list_units()

        assert [u.identifier for u in units] == [ID_A]

    def test_rescans_on_every_call(self, temp_workspace, write_unit):
        directory = temp_workspace / "migrations"
        storage = DirectoryUnitStorage(directory)
        assert storage.list_units() == []

        write_unit(directory, ID_A)

        assert [u.identifier for u in storage.list_units()] == [ID_A]

    def test_unusable_path_raises(self, temp_workspace):
        blocker = temp_workspace / "not-a-dir"
        blocker.write_text("")

        with pytest.raises(StorageUnavailableError):
            DirectoryUnitStorage(blocker).list_units()

    def test_load_returns_unit_class(self, temp_workspace, write_unit):
        directory = temp_workspace / "migrations"
        write_unit(directory, ID_A, description="Add summary field")

        unit_class = DirectoryUnitStorage(directory).load(ID_A)

        assert unit_class.__name__ == "Migration_2024_01_01_10_00_30"
        assert issubclass(unit_class, MigrationUnit)
        assert unit_class.description == "Add summary field"

    def test_load_single_differently_named_class(self, temp_workspace, write_unit):
        directory = temp_workspace / "migrations"
        write_unit(directory, ID_A, class_name="AddSummary")

        unit_class = DirectoryUnitStorage(directory).load(ID_A)

        assert unit_class.__name__ == "AddSummary"

    def test_load_missing_file(self, temp_workspace):
        storage = DirectoryUnitStorage(temp_workspace)

        with pytest.raises(LoadError) as exc_info:
            storage.load(ID_A)

        assert exc_info.value.identifier == ID_A
        assert exc_info.value.phase == Phase.LOAD

    def test_load_invalid_identifier(self, temp_workspace):
        with pytest.raises(InvalidNameError):
            DirectoryUnitStorage(temp_workspace).load("latest")

    def test_load_file_without_unit_class(self, temp_workspace):
        (temp_workspace / f"{ID_A}.py").write_text("VALUE = 1\n")

        with pytest.raises(LoadError, match="does not define migration class"):
            DirectoryUnitStorage(temp_workspace).load(ID_A)

    def test_load_file_with_syntax_error(self, temp_workspace):
        (temp_workspace / f"{ID_A}.py").write_text("def broken(:\n")

        with pytest.raises(LoadError, match="Failed to import"):
            DirectoryUnitStorage(temp_workspace).load(ID_A)

    def test_load_abstract_unit_class(self, temp_workspace):
        (temp_workspace / f"{ID_A}.py").write_text(
            "from cms_migrations import MigrationUnit\n\n\n"
            "class Migration_2024_01_01_10_00_30(MigrationUnit):\n"
            "    def update(self):\n"
            "        pass\n"
        )

        with pytest.raises(LoadError, match="does not implement"):
            DirectoryUnitStorage(temp_workspace).load(ID_A)

    def test_exists(self, temp_workspace, write_unit):
        storage = DirectoryUnitStorage(temp_workspace)
        write_unit(temp_workspace, ID_A)

        assert storage.exists(ID_A)
        assert not storage.exists(ID_B)


class TestUnitRegistry:
    """Test in-code unit registration."""

    def test_register_and_list(self):
        registry = UnitRegistry()
        registry.register(ID_B, NoopUnit)
        registry.register(ID_A, NoopUnit)

        units = registry.list_units()

        assert [u.identifier for u in units] == [ID_A, ID_B]
        assert units[0].location == "registry:NoopUnit"
        assert len(registry) == 2
        assert ID_A in registry

    def test_register_returns_factory(self):
        registry = UnitRegistry()

        assert registry.register(ID_A, NoopUnit) is NoopUnit

    def test_duplicate_registration_raises(self):
        registry = UnitRegistry()
        registry.register(ID_A, NoopUnit)

        with pytest.raises(DuplicateEntryError) as exc_info:
            registry.register(ID_A, NoopUnit)

        assert exc_info.value.identifier == ID_A
        assert len(registry) == 1

    def test_invalid_identifier_rejected(self):
        with pytest.raises(InvalidNameError):
            UnitRegistry().register("first", NoopUnit)

    def test_load(self):
        registry = UnitRegistry()
        registry.register(ID_A, NoopUnit)

        assert registry.load(ID_A) is NoopUnit

    def test_load_unknown(self):
        with pytest.raises(LoadError) as exc_info:
            UnitRegistry().load(ID_A)

        assert exc_info.value.phase == Phase.LOAD


class TestDescribe:
    def test_describe_registry_unit(self):
        registry = UnitRegistry()
        registry.register(ID_A, NoopUnit)

        info = describe(registry, ID_A)

        assert info.identifier == ID_A
        assert info.description == "Does nothing"
        assert info.kind == "default"

    def test_describe_field_unit(self, temp_workspace, write_unit):
        write_unit(temp_workspace, ID_A, base="FieldMigration", description="New field")

        info = describe(DirectoryUnitStorage(temp_workspace), ID_A)

        assert info.kind == FieldMigration.kind
        assert info.description == "New field"
