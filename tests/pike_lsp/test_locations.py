import pytest
from dataclasses import dataclass

from src.pike_lsp.analysis.locations import parse_location
from src.pike_lsp.models import LocationRef


@dataclass
class LocationTestCase:
    """Data class representing a compound location and its parsed form."""
    name: str
    raw: str
    expected_path: str
    expected_line: int


test_cases = [
    LocationTestCase("path_with_line", "a/b/c.pike:43", "a/b/c.pike", 42),
    LocationTestCase("path_without_line", "a/b/c.pike", "a/b/c.pike", 0),
    LocationTestCase("windows_drive", "c:/windows/file.pike:7", "c:/windows/file.pike", 6),
    LocationTestCase("windows_drive_no_line", "c:/windows/file.pike", "c:/windows/file.pike", 0),
    LocationTestCase("line_zero_clamps", "file.pike:0", "file.pike", 0),
    LocationTestCase("line_one", "file.pike:1", "file.pike", 0),
    LocationTestCase("non_numeric_suffix", "module.pmod:create", "module.pmod:create", 0),
    LocationTestCase("empty_suffix", "file.pike:", "file.pike:", 0),
    LocationTestCase("signed_suffix", "file.pike:-3", "file.pike:-3", 0),
    LocationTestCase("unicode_digits", "file.pike:\u0663", "file.pike:\u0663", 0),
    LocationTestCase("uri", "file:///srv/roxen/mod.pike:12", "file:///srv/roxen/mod.pike", 11),
    LocationTestCase("empty", "", "", 0),
]


@pytest.mark.parametrize("test_case", test_cases, ids=lambda tc: tc.name)
def test_parse_location(test_case):
    result = parse_location(test_case.raw)
    assert result == LocationRef(test_case.expected_path, test_case.expected_line)


def test_line_is_never_negative():
    for raw in ["x:0", "x:1", "x:2", "x", ":"]:
        assert parse_location(raw).line >= 0
