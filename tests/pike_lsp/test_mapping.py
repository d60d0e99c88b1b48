"""
Tests for translating between embedded-content and document coordinates.
"""

import pytest

from src.pike_lsp.document import LineIndex
from src.pike_lsp.errors import LSPError
from src.pike_lsp.models import EmbeddedRegion, Position, Range
from src.pike_lsp.rxml.detector import detect
from src.pike_lsp.rxml.mapping import RegionMapper, mapping_for, to_content, to_document

SOURCE = 'int x;\nstring page = #"<set variable=\'var.a\'>1</set>\n<emit source=\'sql\'>&_.a;</emit>";\n'


@pytest.fixture
def region():
    regions = detect(SOURCE).regions
    assert len(regions) == 1
    return regions[0]


def test_mapping_for(region):
    mapping = mapping_for(region)
    assert mapping.document_start == region.start
    assert mapping.content_length == len(region.content)


def test_round_trip_over_content(region):
    for offset in range(region.length):
        document_offset = to_document(region, offset)
        assert SOURCE[document_offset] == region.content[offset]
        assert to_content(region, document_offset) == offset


def test_content_length_maps_to_region_end(region):
    assert to_document(region, region.length) == region.end


@pytest.mark.parametrize("offset", [-1, 10_000])
def test_out_of_range_content_offset_is_server_error(region, offset):
    with pytest.raises(LSPError) as excinfo:
        to_document(region, offset)
    assert excinfo.value.layer == "server"


def test_document_offsets_outside_region(region):
    assert to_content(region, region.start - 1) is None
    assert to_content(region, region.end) is None
    assert to_content(region, 0) is None


def test_single_line_region():
    region = EmbeddedRegion(start=4, end=9, content="<if/>", confidence=1.0)
    assert [to_document(region, offset) for offset in range(5)] == [4, 5, 6, 7, 8]
    assert to_content(region, 3) is None
    assert to_content(region, 4) == 0


class TestRegionMapper:

    def test_positions_across_lines(self, region):
        mapper = RegionMapper(region, LineIndex(SOURCE))
        emit_offset = region.content.index("<emit")

        content_position = LineIndex(region.content).position_at(emit_offset)
        assert content_position == Position(1, 0)
        assert mapper.position_to_document(content_position) == Position(2, 0)

        first = mapper.position_to_document(Position(0, 0))
        assert first == Position(1, SOURCE.split("\n")[1].index("<set"))

    def test_position_to_content(self, region):
        mapper = RegionMapper(region, LineIndex(SOURCE))
        assert mapper.position_to_content(Position(2, 1)) == Position(1, 1)
        assert mapper.position_to_content(Position(0, 0)) is None

    def test_range_to_document(self, region):
        mapper = RegionMapper(region, LineIndex(SOURCE))
        mapped = mapper.range_to_document(Range(Position(0, 1), Position(0, 4)))
        line = SOURCE.split("\n")[1]
        assert line[mapped.start.character:mapped.end.character] == "set"

    def test_document_range_includes_delimiters(self, region):
        mapper = RegionMapper(region, LineIndex(SOURCE))
        literal_range = mapper.document_range()
        assert literal_range.start == Position(1, SOURCE.split("\n")[1].index('#"'))
        assert literal_range.end == Position(2, SOURCE.split("\n")[2].index('";') + 1)
