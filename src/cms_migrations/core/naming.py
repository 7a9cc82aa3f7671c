"""Mapping between migration identifiers, unit names and file names.

An identifier is the creation time of a unit, ``YYYY-MM-DD_HH-MM`` with an
optional ``-SS`` seconds part. The unit name is the identifier turned into a
valid Python class name::

    2023-05-01_12-30-00  <->  Migration_2023_05_01_12_30_00

Changing this grammar invalidates every identifier already in a ledger.
"""

import re
from datetime import datetime

from .exceptions import InvalidNameError

UNIT_NAME_PREFIX = "Migration_"
UNIT_FILE_SUFFIX = ".py"
IDENTIFIER_FORMAT = "%Y-%m-%d_%H-%M-%S"

_IDENTIFIER_RE = re.compile(r"^\d{4}-\d{2}-\d{2}_\d{2}-\d{2}(?:-\d{2})?$")
_UNIT_NAME_RE = re.compile(
    r"^" + UNIT_NAME_PREFIX + r"(\d{4})_(\d{2})_(\d{2})_(\d{2})_(\d{2})(?:_(\d{2}))?$"
)


def is_valid_identifier(identifier: str) -> bool:
    """Check whether a string matches the identifier grammar."""
    return isinstance(identifier, str) and bool(_IDENTIFIER_RE.match(identifier))


def validate_identifier(identifier: str) -> str:
    """Return the identifier unchanged or raise InvalidNameError."""
    if not is_valid_identifier(identifier):
        raise InvalidNameError(
            f"'{identifier}' is not a migration identifier "
            "(expected YYYY-MM-DD_HH-MM or YYYY-MM-DD_HH-MM-SS)"
        )
    return identifier


def generate_identifier(moment: datetime) -> str:
    """Build the identifier for a unit created at ``moment``."""
    return moment.strftime(IDENTIFIER_FORMAT)


def identifier_to_unit_name(identifier: str) -> str:
    """Convert an identifier to the class name of its unit."""
    validate_identifier(identifier)
    return UNIT_NAME_PREFIX + identifier.replace("-", "_")


def unit_name_to_identifier(unit_name: str) -> str:
    """Convert a unit class name back to its identifier."""
    match = _UNIT_NAME_RE.match(unit_name) if isinstance(unit_name, str) else None
    if match is None:
        raise InvalidNameError(f"'{unit_name}' is not a migration unit name")

    year, month, day, hour, minute, second = match.groups()
    identifier = f"{year}-{month}-{day}_{hour}-{minute}"
    if second is not None:
        identifier += f"-{second}"
    return identifier


def identifier_to_filename(identifier: str) -> str:
    """File name a unit with this identifier is stored under."""
    return validate_identifier(identifier) + UNIT_FILE_SUFFIX


def identifier_from_filename(filename: str) -> str:
    """Extract and validate the identifier from a unit file name."""
    if not filename.endswith(UNIT_FILE_SUFFIX):
        raise InvalidNameError(f"'{filename}' is not a migration unit file")
    return validate_identifier(filename[: -len(UNIT_FILE_SUFFIX)])
