"""
Comprehensive tests for KML parsing functionality.

Tests cover:
- Input handling (str, bytes, Path)
- Document metadata
- Style resolution through the whole pipeline
- Namespace repair
- Fallback to salvage parsing
- Error handling
"""

import logging
import math
from pathlib import Path

import pytest

from kmlscope.core.errors import InvalidInputError
from kmlscope.core.parsers import (
    ElementType,
    KMLParser,
    ParseStatus,
    parse_kml_file,
    parse_kml_string,
)


# Test fixtures path
FIXTURES_DIR = Path(__file__).parent / "fixtures"
SIMPLE_KML = FIXTURES_DIR / "simple.kml"
COMPLEX_KML = FIXTURES_DIR / "complex.kml"
MALFORMED_KML = FIXTURES_DIR / "malformed.kml"

POINT_KML = """<?xml version="1.0" encoding="UTF-8"?>
<kml xmlns="http://www.opengis.net/kml/2.2">
    <Document>
        <name>Points</name>
        <Placemark>
            <name>X</name>
            <Point>
                <coordinates>10,20,5</coordinates>
            </Point>
        </Placemark>
    </Document>
</kml>
"""


class TestKMLParserBasic:
    """Tests for basic KML parsing."""

    def test_parse_simple_kml(self):
        """Test parsing of the simple fixture."""
        document = parse_kml_file(SIMPLE_KML)

        assert document.name == "Simple Test"
        assert document.description == "A single point for smoke tests"
        assert document.element_count == 1
        assert not document.salvaged

        point = document.elements[0]
        assert point.type == ElementType.POINT
        assert point.name == "Test Point"
        assert point.coordinates == (-122.084, 37.422, 0.0)

    def test_parse_string(self):
        """Test parsing KML text."""
        document = parse_kml_string(POINT_KML)

        assert document.name == "Points"
        assert document.elements[0].coordinates == (10.0, 20.0, 5.0)

    def test_parse_bytes(self):
        """Test parsing UTF-8 bytes."""
        document = KMLParser().parse(POINT_KML.encode("utf-8"))

        assert document.element_count == 1

    def test_parse_bytes_with_bom(self):
        """Test a byte order mark is tolerated."""
        document = KMLParser().parse(b"\xef\xbb\xbf" + POINT_KML.encode("utf-8"))

        assert document.element_count == 1
        assert not document.salvaged

    def test_parse_path(self):
        """Test parsing from a Path."""
        document = KMLParser().parse(SIMPLE_KML)

        assert document.name == "Simple Test"

    def test_leading_whitespace(self):
        """Test whitespace before the XML declaration is tolerated."""
        document = parse_kml_string("\n\n   " + POINT_KML)

        assert not document.salvaged
        assert document.element_count == 1

    def test_non_ascii_text(self):
        """Test names outside ASCII are preserved."""
        document = parse_kml_string(POINT_KML.replace("<name>X</name>", "<name>Café Ñandú</name>"))

        assert document.elements[0].name == "Café Ñandú"

    @pytest.mark.parametrize("encoding", ["ISO-8859-1", "UTF-16", "windows-1252"])
    def test_declared_encoding_ignored_for_text(self, encoding):
        """Test text input is used as-is whatever the declaration names."""
        content = POINT_KML.replace('encoding="UTF-8"', f'encoding="{encoding}"').replace(
            "<name>X</name>", "<name>Zürich</name>"
        ).replace("<name>Points</name>", "<name>Café</name>")

        document = parse_kml_string(content)

        assert not document.salvaged
        assert document.name == "Café"
        assert document.elements[0].name == "Zürich"

    def test_latin1_bytes(self):
        """Test bytes are decoded with the encoding their declaration names."""
        content = POINT_KML.replace('encoding="UTF-8"', 'encoding="ISO-8859-1"').replace(
            "<name>X</name>", "<name>Zürich</name>"
        )

        document = KMLParser().parse(content.encode("latin-1"))

        assert not document.salvaged
        assert document.elements[0].name == "Zürich"

    def test_utf16_bytes_with_bom(self):
        """Test UTF-16 bytes with a byte order mark."""
        content = POINT_KML.replace('encoding="UTF-8"', 'encoding="UTF-16"').replace(
            "<name>X</name>", "<name>Zürich</name>"
        )

        document = KMLParser().parse(content.encode("utf-16"))

        assert not document.salvaged
        assert document.name == "Points"
        assert document.elements[0].name == "Zürich"

    def test_unknown_declared_encoding_falls_back_to_utf8(self):
        """Test an unknown encoding name is read as UTF-8."""
        content = POINT_KML.replace('encoding="UTF-8"', 'encoding="x-made-up"').replace(
            "<name>X</name>", "<name>Zürich</name>"
        )

        document = KMLParser().parse(content.encode("utf-8"))

        assert document.elements[0].name == "Zürich"

    def test_antipodal_line_string_is_kept(self):
        """Test a LineString between antipodal points keeps its element and length."""
        content = """<kml xmlns="http://www.opengis.net/kml/2.2"><Document>
            <Placemark><name>L</name><LineString>
                <coordinates>0.0,0.42857142857142855,0 -180.0,-0.42857142857142855,0</coordinates>
            </LineString></Placemark>
            <Placemark><name>P</name><Point><coordinates>1,2,0</coordinates></Point></Placemark>
        </Document></kml>"""

        document = parse_kml_string(content)

        assert [e.name for e in document.elements] == ["L", "P"]
        assert document.elements[0].metadata.length_km == pytest.approx(math.pi * 6371.0)

    def test_parse_nonexistent_file(self):
        """Test parsing a file that does not exist."""
        with pytest.raises(FileNotFoundError):
            parse_kml_file(Path("/nonexistent/file.kml"))

    def test_parses_are_independent(self):
        """Test two parses share no elements or styles."""
        first = parse_kml_file(COMPLEX_KML)
        second = parse_kml_file(COMPLEX_KML)

        assert first.elements[1].style == second.elements[1].style
        assert first.elements[1].style is not second.elements[1].style
        assert {e.id for e in first.elements}.isdisjoint({e.id for e in second.elements})


class TestComplexDocument:
    """Tests for the complex fixture."""

    @pytest.fixture
    def document(self):
        return parse_kml_file(COMPLEX_KML)

    def test_metadata(self, document):
        """Test document name and CDATA description."""
        assert document.name == "Site Survey"
        assert document.description == "<b>Survey</b> of the north parcel"
        assert not document.salvaged

    def test_element_order_and_kinds(self, document):
        """Test every placemark with geometry yields one element, in order."""
        assert [e.name for e in document.elements] == [
            "Office",
            "Access Road",
            "Parcel",
            "Parcel Copy",
            "Orphan",
            "Campus (Multi)",
            "Inline",
        ]
        counts = document.count_by_type()
        assert counts[ElementType.POINT] == 3
        assert counts[ElementType.LINE_STRING] == 2
        assert counts[ElementType.POLYGON] == 2

    def test_icon_style_and_extended_data(self, document):
        """Test the Office point."""
        office = document.elements[0]

        assert office.coordinates == (-122.0841, 37.422, 12.5)
        assert office.style.icon_scale == 1.5
        assert office.style.icon_url.endswith("ylw-pushpin.png")
        assert office.extended_data == {"owner": "Operations"}

    def test_line_style(self, document):
        """Test the Access Road line."""
        road = document.elements[1]

        assert road.style.line_color == "#ff0000"
        assert road.style.line_width == 3.0
        assert len(road.coordinates) == 3
        assert road.metadata.length_km > 200

    def test_style_map_shares_style(self, document):
        """Test StyleMap and direct references resolve to one Style."""
        parcel = document.elements[2]
        parcel_copy = document.elements[3]

        assert parcel.style is parcel_copy.style
        assert parcel.style.fill_color == "#00ff00"
        assert parcel.style.fill_opacity == 0.5
        assert parcel.style.stroke_opacity == 0.0
        assert parcel.ring_count == 2
        assert parcel.metadata.area_km2 > 0

    def test_broken_style_map(self, document):
        """Test a StyleMap to an undefined style leaves the element unstyled."""
        orphan = document.elements[4]

        assert orphan.style is None
        assert orphan.coordinates == (5.0, 5.0, 0.0)

    def test_multi_geometry(self, document):
        """Test MultiGeometry keeps the Point child."""
        campus = document.elements[5]

        assert campus.type == ElementType.POINT
        assert campus.metadata is None

    def test_inline_style(self, document):
        """Test inline style wins over styleUrl."""
        inline = document.elements[6]

        assert inline.style.line_color == "#00ff00"
        assert inline.style.line_width == 5.0


class TestNamespaceTolerance:
    """Tests for missing roots and namespaces."""

    def test_missing_root(self):
        """Test a bare Document is parsed structurally."""
        document = parse_kml_string(
            "<Document><name>Bare</name>"
            "<Placemark><Point><coordinates>1,2</coordinates></Point></Placemark>"
            "</Document>"
        )

        assert document.name == "Bare"
        assert document.element_count == 1
        assert not document.salvaged

    def test_missing_root_after_declaration(self):
        """Test a bare Placemark after an XML declaration."""
        document = parse_kml_string(
            '<?xml version="1.0"?>\n'
            "<Placemark><Point><coordinates>1,2</coordinates></Point></Placemark>"
        )

        assert document.element_count == 1
        assert not document.salvaged
        assert document.name is None

    def test_no_namespace(self):
        """Test a root without any namespace."""
        document = parse_kml_string(
            "<kml><Document><Placemark><Point><coordinates>1,2</coordinates></Point></Placemark></Document></kml>"
        )

        assert document.element_count == 1
        assert not document.salvaged

    def test_legacy_namespace(self):
        """Test an older Google Earth namespace."""
        document = parse_kml_string(
            '<kml xmlns="http://earth.google.com/kml/2.1"><Document>'
            "<Placemark><Point><coordinates>1,2</coordinates></Point></Placemark>"
            "</Document></kml>"
        )

        assert document.element_count == 1
        assert not document.salvaged

    def test_undeclared_prefix(self):
        """Test gx: elements without a gx declaration."""
        document = parse_kml_string(
            '<kml xmlns="http://www.opengis.net/kml/2.2"><Document>'
            "<Placemark><gx:drawOrder>1</gx:drawOrder>"
            "<Point><coordinates>1,2</coordinates></Point></Placemark>"
            "</Document></kml>"
        )

        assert not document.salvaged
        assert document.element_count == 1


class TestStructuredStage:
    """Tests for the structured stage outcome."""

    def test_ok(self):
        """Test a good document returns OK with a Document."""
        outcome = KMLParser().parse_structured(POINT_KML)

        assert outcome.status == ParseStatus.OK
        assert not outcome.needs_salvage
        assert outcome.document.element_count == 1

    def test_broken_xml_needs_salvage(self):
        """Test unparseable XML returns NEEDS_SALVAGE with a reason."""
        outcome = KMLParser().parse_structured(MALFORMED_KML.read_text())

        assert outcome.needs_salvage
        assert outcome.document is None
        assert "invalid XML" in outcome.reason

    def test_no_elements_needs_salvage(self):
        """Test a well-formed document without placemarks returns NEEDS_SALVAGE."""
        outcome = KMLParser().parse_structured(
            '<kml xmlns="http://www.opengis.net/kml/2.2"><Document><name>Empty</name></Document></kml>'
        )

        assert outcome.status == ParseStatus.NEEDS_SALVAGE
        assert "no elements" in outcome.reason


class TestFallback:
    """Tests for fallback to salvage parsing."""

    def test_malformed_file_is_salvaged(self):
        """Test broken XML still yields elements."""
        document = parse_kml_file(MALFORMED_KML)

        assert document.salvaged
        assert [e.name for e in document.elements] == ["Well", "Fence & Gate", "Pond"]
        assert document.elements[0].coordinates == (10.0, 20.0, 5.0)

    def test_empty_document_falls_back_without_error(self):
        """Test zero placemarks gives an empty salvaged Document."""
        document = parse_kml_string(
            '<kml xmlns="http://www.opengis.net/kml/2.2"><Document><name>Empty</name></Document></kml>'
        )

        assert document.salvaged
        assert document.elements == ()

    def test_fallback_is_logged(self, caplog):
        """Test the fallback reason is logged."""
        with caplog.at_level(logging.WARNING):
            parse_kml_file(MALFORMED_KML)

        assert "Attempting fallback parsing method" in caplog.text


class TestErrorHandling:
    """Tests for invalid input."""

    @pytest.mark.parametrize("content", ["", "   \n\t"])
    def test_empty_content(self, content):
        """Test empty and blank text."""
        with pytest.raises(InvalidInputError) as exc_info:
            parse_kml_string(content)

        assert exc_info.value.error_code == "INVALID_INPUT"
        assert "empty" in exc_info.value.message

    def test_empty_bytes(self):
        """Test empty bytes."""
        with pytest.raises(InvalidInputError):
            KMLParser().parse(b"")

    @pytest.mark.parametrize("content", [None, 42, ["<kml/>"]])
    def test_not_text(self, content):
        """Test content that is not text."""
        with pytest.raises(InvalidInputError) as exc_info:
            KMLParser().parse(content)

        assert "not a string" in exc_info.value.message
