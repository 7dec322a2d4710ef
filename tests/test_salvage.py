"""
Tests for regex salvage parsing.
"""

import logging

import pytest

from kmlscope.core.config import Settings
from kmlscope.core.parsers import ElementType, SalvageParser, salvage_parse


BROKEN_KML = """
<kml><Document>
  <Placemark>
    <name>Well</name>
    <description>Dug & lined</description>
    <Point><coordinates>10,20,5</coordinates></Point>
  </Placemark>
  <Placemark>
    <name>Fence</name>
    <LineString><coordinates>0,0 1,1 2,2</coordinates></LineString>
  </Placemark>
  <Placemark>
    <name>Pond</name>
    <Polygon><outerBoundaryIs><LinearRing>
      <coordinates>0,0 1,0 1,1 0,0</coordinates>
    </LinearRing></outerBoundaryIs></Polygon>
  </Placemark>
"""


class TestSalvageParser:
    """Tests for salvage extraction."""

    def test_extracts_all_kinds(self):
        """Test Point, LineString and Polygon blocks are recovered."""
        document = salvage_parse(BROKEN_KML)

        assert document.salvaged
        assert [e.type for e in document.elements] == [
            ElementType.POINT,
            ElementType.LINE_STRING,
            ElementType.POLYGON,
        ]

    def test_point_is_single_triple(self):
        """Test a salvaged Point carries one coordinate triple."""
        point = salvage_parse(BROKEN_KML).elements[0]

        assert point.coordinates == (10.0, 20.0, 5.0)
        assert point.name == "Well"
        assert point.description == "Dug & lined"

    def test_shapes(self):
        """Test LineString and Polygon coordinate shapes."""
        document = salvage_parse(BROKEN_KML)
        line, polygon = document.elements[1], document.elements[2]

        assert len(line.coordinates) == 3
        assert polygon.ring_count == 1
        assert len(polygon.coordinates[0]) == 4

    def test_no_metadata(self):
        """Test no length or area is computed."""
        for element in salvage_parse(BROKEN_KML).elements:
            assert element.metadata is None

    def test_default_style_is_shared(self):
        """Test every salvaged element gets the same default Style."""
        elements = salvage_parse(BROKEN_KML).elements

        assert elements[0].style is elements[1].style is elements[2].style
        assert elements[0].style.line_color == "#3700ff"
        assert elements[0].style.fill_color == "#42eedc"
        assert elements[0].style.fill_opacity == 0.2

    def test_custom_default_style(self):
        """Test the default style comes from settings."""
        settings = Settings(salvage_line_color="#FF0000", salvage_fill_opacity=0.5)

        style = SalvageParser(settings=settings).default_style()

        assert style.line_color == "#ff0000"
        assert style.fill_opacity == 0.5

    def test_geometry_priority(self):
        """Test Point wins over LineString within one block."""
        document = salvage_parse(
            "<Placemark><LineString><coordinates>0,0 1,1</coordinates></LineString>"
            "<Point><coordinates>3,4</coordinates></Point></Placemark>"
        )

        assert document.elements[0].type == ElementType.POINT
        assert document.elements[0].coordinates == (3.0, 4.0, 0.0)

    def test_block_without_coordinates_is_skipped(self):
        """Test a block with an empty geometry contributes nothing."""
        document = salvage_parse(
            "<Placemark><name>A</name><Point><coordinates> </coordinates></Point></Placemark>"
            "<Placemark><name>B</name></Placemark>"
            "<Placemark><name>C</name><Point><coordinates>1,1</coordinates></Point></Placemark>"
        )

        assert [e.name for e in document.elements] == ["C"]

    def test_garbage_coordinates_degrade(self):
        """Test unreadable tuples degrade to the origin triple."""
        document = salvage_parse(
            "<Placemark><LineString><coordinates>1,1 ?? 2,2</coordinates></LineString></Placemark>"
        )

        assert document.elements[0].coordinates[1] == (0.0, 0.0, 0.0)

    @pytest.mark.parametrize(
        "text",
        ["", "not xml at all", "<Placemark>", "<Placemark></Placemark>", "<<<>>>"],
    )
    def test_never_raises(self, text):
        """Test hopeless input yields an empty Document."""
        document = salvage_parse(text)

        assert document.elements == ()
        assert document.salvaged

    def test_extraction_count_is_logged(self, caplog):
        """Test the number of salvaged elements is logged."""
        with caplog.at_level(logging.INFO):
            salvage_parse(BROKEN_KML)

        assert "Fallback parsing extracted 3 elements" in caplog.text
