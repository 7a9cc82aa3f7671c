"""Discovery of available migration units.

Two sources share one interface: ``DirectoryUnitStorage`` reads unit files
from a directory, ``UnitRegistry`` holds factories registered in code. Both
list units sorted by identifier and resolve an identifier to a factory that
builds the unit from a ``MigrationContext``.
"""

import importlib.util
import inspect
import sys
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from .exceptions import (
    DuplicateEntryError,
    LoadError,
    Phase,
    StorageUnavailableError,
)
from .logging_utils import discovery_logger
from .naming import (
    UNIT_FILE_SUFFIX,
    identifier_to_filename,
    identifier_to_unit_name,
    is_valid_identifier,
    validate_identifier,
)
from .unit import MigrationContext, MigrationUnit, unit_kind

UnitFactory = Callable[[MigrationContext], Any]


@dataclass(frozen=True)
class UnitLocation:
    """Where a discovered unit lives."""

    identifier: str
    location: str


@dataclass(frozen=True)
class UnitInfo:
    """Static description of a unit."""

    identifier: str
    description: str
    kind: str


class UnitSource(Protocol):
    def list_units(self) -> list[UnitLocation]: ...

    def load(self, identifier: str) -> UnitFactory: ...


def load_unit_class(path: Path, identifier: str) -> type[MigrationUnit]:
    """Import a unit file and return its migration class.

    The class named after the identifier wins; otherwise the file must define
    exactly one concrete MigrationUnit subclass.

    Raises:
        LoadError: If the file cannot be imported or defines no usable class.
    """
    unit_name = identifier_to_unit_name(identifier)
    module_name = f"_cms_migration_{unit_name}"

    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise LoadError(f"Cannot load {path}", identifier, Phase.LOAD)

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        sys.modules.pop(module_name, None)
        raise LoadError(f"Failed to import {path}: {e}", identifier, Phase.LOAD) from e

    candidate = getattr(module, unit_name, None)
    if candidate is None:
        found = [
            obj
            for _name, obj in inspect.getmembers(module, inspect.isclass)
            if issubclass(obj, MigrationUnit)
            and obj.__module__ == module_name
            and not inspect.isabstract(obj)
        ]
        if len(found) == 1:
            candidate = found[0]

    if not (inspect.isclass(candidate) and issubclass(candidate, MigrationUnit)):
        raise LoadError(
            f"{path.name} does not define migration class {unit_name}",
            identifier,
            Phase.LOAD,
        )
    if inspect.isabstract(candidate):
        raise LoadError(
            f"{candidate.__name__} does not implement update() and downgrade()",
            identifier,
            Phase.LOAD,
        )
    return candidate


class DirectoryUnitStorage:
    """Unit files named ``<identifier>.py`` in one directory.

    The directory is rescanned on every call, so files added while the
    process runs are picked up immediately.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path).expanduser()

    def ensure_path(self) -> None:
        """Create the directory if it does not exist yet."""
        try:
            self.path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailableError(
                f"Could not create migrations directory {self.path}: {e}"
            ) from e

    def list_units(self) -> list[UnitLocation]:
        self.ensure_path()
        try:
            entries = list(self.path.iterdir())
        except OSError as e:
            raise StorageUnavailableError(
                f"Could not read migrations directory {self.path}: {e}"
            ) from e

        units = []
        for entry in entries:
            if entry.name.startswith((".", "_")) or entry.suffix != UNIT_FILE_SUFFIX:
                continue
            if not entry.is_file():
                continue
            if not is_valid_identifier(entry.stem):
                discovery_logger.warning(
                    f"Ignoring {entry.name}: not named after a migration identifier",
                    path=str(entry),
                )
                continue
            units.append(UnitLocation(entry.stem, str(entry)))

        units.sort(key=lambda unit: unit.identifier)
        discovery_logger.debug(
            f"Discovered {len(units)} migration units", path=str(self.path)
        )
        return units

    def location_for(self, identifier: str) -> Path:
        return self.path / identifier_to_filename(identifier)

    def exists(self, identifier: str) -> bool:
        return self.location_for(identifier).is_file()

    def load(self, identifier: str) -> UnitFactory:
        validate_identifier(identifier)
        path = self.location_for(identifier)
        if not path.is_file():
            raise LoadError(f"No migration file at {path}", identifier, Phase.LOAD)
        return load_unit_class(path, identifier)


class UnitRegistry:
    """Migration units registered in code, keyed by identifier.

    Example:
        registry = UnitRegistry()
        registry.register("2024-03-01_09-15-00", LabelSummaryField)
    """

    def __init__(self) -> None:
        self._factories: dict[str, UnitFactory] = {}

    def register(self, identifier: str, factory: UnitFactory) -> UnitFactory:
        """Register a unit class or factory under an identifier.

        Raises:
            InvalidNameError: If the identifier is malformed.
            DuplicateEntryError: If the identifier is already registered.
        """
        validate_identifier(identifier)
        if identifier in self._factories:
            raise DuplicateEntryError(
                "A migration unit is already registered for this identifier",
                identifier=identifier,
            )
        self._factories[identifier] = factory
        return factory

    def list_units(self) -> list[UnitLocation]:
        return [
            UnitLocation(
                identifier,
                f"registry:{getattr(factory, '__qualname__', repr(factory))}",
            )
            for identifier, factory in sorted(self._factories.items())
        ]

    def load(self, identifier: str) -> UnitFactory:
        try:
            return self._factories[identifier]
        except KeyError:
            raise LoadError(
                "No migration unit registered for this identifier",
                identifier,
                Phase.LOAD,
            ) from None

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._factories

    def __len__(self) -> int:
        return len(self._factories)


def describe(source: UnitSource, identifier: str) -> UnitInfo:
    """Read description and kind of a unit without running it."""
    factory = source.load(identifier)
    return UnitInfo(
        identifier=identifier,
        description=getattr(factory, "description", "") or "",
        kind=unit_kind(factory),
    )
