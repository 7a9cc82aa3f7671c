"""Tests for identifier, unit name and file name conversion."""

from datetime import datetime, timedelta

import pytest

from cms_migrations.core.exceptions import InvalidNameError
from cms_migrations.core.naming import (
    generate_identifier,
    identifier_from_filename,
    identifier_to_filename,
    identifier_to_unit_name,
    is_valid_identifier,
    unit_name_to_identifier,
    validate_identifier,
)


class TestIdentifierGrammar:
    """Test identifier validation."""

    @pytest.mark.parametrize(
        "identifier", ["2023-05-01_12-30", "2023-05-01_12-30-00", "1999-12-31_23-59-59"]
    )
    def test_valid_identifiers(self, identifier):
        assert is_valid_identifier(identifier)
        assert validate_identifier(identifier) == identifier

    @pytest.mark.parametrize(
        "identifier",
        [
            "",
            "2023-5-1_12-30",
            "2023-05-01 12-30",
            "2023-05-01_12-30-00-00",
            "2023_05_01_12_30",
            "Migration_2023_05_01_12_30",
            "2023-05-01_12-30.py",
            None,
        ],
    )
    def test_invalid_identifiers(self, identifier):
        assert not is_valid_identifier(identifier)
        with pytest.raises(InvalidNameError):
            validate_identifier(identifier)

    def test_generate_identifier_includes_seconds(self):
        assert generate_identifier(datetime(2023, 5, 1, 9, 5, 7)) == "2023-05-01_09-05-07"

    def test_lexicographic_order_is_chronological(self):
        moments = [
            datetime(2024, 1, 2, 0, 0, 0),
            datetime(2023, 12, 31, 23, 59, 59),
            datetime(2024, 1, 1, 10, 0, 0),
        ]
        identifiers = [generate_identifier(m) for m in moments]

        assert sorted(identifiers) == [generate_identifier(m) for m in sorted(moments)]


class TestUnitNames:
    """Test identifier <-> unit class name conversion."""

    def test_identifier_to_unit_name(self):
        assert (
            identifier_to_unit_name("2023-05-01_12-30-00")
            == "Migration_2023_05_01_12_30_00"
        )

    def test_identifier_without_seconds(self):
        assert identifier_to_unit_name("2023-05-01_12-30") == "Migration_2023_05_01_12_30"

    @pytest.mark.parametrize(
        "start",
        [
            datetime(1999, 12, 31, 23, 0, 0),
            datetime(2023, 5, 1, 0, 0, 0),
            datetime(2024, 2, 28, 22, 30, 45),
        ],
    )
    def test_unit_name_round_trip(self, start):
        for step in range(200):
            moment = start + timedelta(minutes=step * 37, seconds=step)
            identifier = generate_identifier(moment)

            assert unit_name_to_identifier(identifier_to_unit_name(identifier)) == identifier
            assert identifier_from_filename(identifier_to_filename(identifier)) == identifier

    def test_minute_only_round_trip(self):
        identifier = "2023-05-01_12-30"

        assert unit_name_to_identifier(identifier_to_unit_name(identifier)) == identifier

    def test_invalid_identifier_rejected(self):
        with pytest.raises(InvalidNameError):
            identifier_to_unit_name("yesterday")

    @pytest.mark.parametrize(
        "unit_name",
        [
            "Migration_2023_05_01",
            "migration_2023_05_01_12_30",
            "Migration_2023-05-01_12-30",
            "Migration_2023_05_01_12_30_00_00",
            "",
        ],
    )
    def test_invalid_unit_names(self, unit_name):
        with pytest.raises(InvalidNameError):
            unit_name_to_identifier(unit_name)


class TestFileNames:
    """Test identifier <-> file name conversion."""

    def test_identifier_to_filename(self):
        assert identifier_to_filename("2023-05-01_12-30-00") == "2023-05-01_12-30-00.py"

    def test_identifier_from_filename(self):
        assert identifier_from_filename("2023-05-01_12-30.py") == "2023-05-01_12-30"

    def test_wrong_suffix_rejected(self):
        with pytest.raises(InvalidNameError, match="not a migration unit file"):
            identifier_from_filename("2023-05-01_12-30.php")

    def test_invalid_stem_rejected(self):
        with pytest.raises(InvalidNameError):
            identifier_from_filename("helpers.py")
