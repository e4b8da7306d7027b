"""
Tests for scan code validation.

Tests:
- Exact, embedded and lowercase codes
- Codes belonging to another location
- Garbage and empty input
"""

import pytest

from ..engine_core.codes import SCAN_MESSAGES, ScanResult, owner_of, validate_code


class TestValidateCode:
    """Tests for validate_code."""

    def test_exact_code(self, catalog):
        """The printed token is accepted."""
        assert validate_code("SPOOKYHUNT_MAIN_LOBBY_2025", "main_lobby", catalog) == ScanResult.OK

    def test_short_code(self, catalog):
        """The table-tent code is accepted too."""
        assert validate_code("SERAM_SOUTH_LOBBY", "south_lobby", catalog) == ScanResult.OK

    def test_embedded_code(self, catalog):
        """A code wrapped in a URL still matches."""
        scanned = "https://example.com/scan?c=SPOOKYHUNT_EAST_DOME_2025&src=qr"
        assert validate_code(scanned, "east_dome", catalog) == ScanResult.OK

    def test_case_insensitive(self, catalog):
        """Lowercase payloads match."""
        assert validate_code("seram_u_walk", "u_walk", catalog) == ScanResult.OK

    def test_wrong_location(self, catalog):
        """Another location's code is WRONG_LOCATION."""
        assert validate_code("SERAM_MAIN_LOBBY", "south_lobby", catalog) == ScanResult.WRONG_LOCATION

    def test_invalid(self, catalog):
        """A string with no known code is INVALID."""
        assert validate_code("HELLO_WORLD", "main_lobby", catalog) == ScanResult.INVALID

    @pytest.mark.parametrize("scanned", ["", "   ", None])
    def test_empty(self, catalog, scanned):
        """Empty input is INVALID, never an error."""
        assert validate_code(scanned, "main_lobby", catalog) == ScanResult.INVALID

    def test_unknown_target(self, catalog):
        """An unknown target cannot be OK."""
        assert validate_code("SERAM_MAIN_LOBBY", "crypt", catalog) == ScanResult.WRONG_LOCATION
        assert validate_code("nothing", "crypt", catalog) == ScanResult.INVALID

    def test_every_result_has_a_message(self):
        """Each result has user-facing copy."""
        assert set(SCAN_MESSAGES) == set(ScanResult)


class TestCodeOwnership:
    """Each accepted code belongs to exactly one location."""

    def test_each_code_ok_only_at_its_owner(self, catalog):
        """A location's own code is OK there and WRONG_LOCATION everywhere else."""
        for loc in catalog:
            for code in loc.accepted_codes:
                for target in catalog:
                    expected = ScanResult.OK if target.id == loc.id else ScanResult.WRONG_LOCATION
                    assert validate_code(code, target.id, catalog) == expected

    def test_owner_of(self, catalog):
        """owner_of names the location whose code was scanned."""
        assert owner_of("xx SERAM_EAST_DOME xx", catalog) == "east_dome"
        assert owner_of("nothing here", catalog) is None
