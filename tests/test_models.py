"""
Tests for file info models.
"""

import pytest
from pydantic import ValidationError

from kmlscope.core.parsers import Document, Element, ElementType
from kmlscope.models import FileInfo, FileType, classify_file_type, format_file_size


class TestClassifyFileType:
    """Tests for file kind tagging."""

    @pytest.mark.parametrize("filename", ["site.kmz", "SITE.KMZ", "a.b.Kmz"])
    def test_kmz(self, filename):
        """Test a .kmz suffix in any case."""
        assert classify_file_type(filename) == FileType.KMZ

    @pytest.mark.parametrize("filename", ["site.kml", "site.xml", "kmz", "site.kmz.bak", ""])
    def test_everything_else_is_kml(self, filename):
        """Test anything without a .kmz suffix."""
        assert classify_file_type(filename) == FileType.KML


class TestFormatFileSize:
    """Tests for human-readable sizes."""

    def test_bytes(self):
        """Test sizes under one kilobyte."""
        assert format_file_size(0) == "0 bytes"
        assert format_file_size(1023) == "1023 bytes"

    def test_kilobytes(self):
        """Test sizes under one megabyte."""
        assert format_file_size(1024) == "1.00 KB"
        assert format_file_size(1536) == "1.50 KB"

    def test_megabytes(self):
        """Test sizes of a megabyte or more."""
        assert format_file_size(1024 * 1024) == "1.00 MB"
        assert format_file_size(5 * 1024 * 1024 + 512 * 1024) == "5.50 MB"


class TestFileInfo:
    """Tests for the FileInfo summary."""

    def test_from_document(self):
        """Test counts and metadata come from the Document."""
        document = Document(
            name="Survey",
            description="North parcel",
            elements=(
                Element(type=ElementType.POINT, coordinates=(1.0, 2.0, 0.0)),
                Element(
                    type=ElementType.POLYGON,
                    coordinates=(((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 1.0, 0.0)),),
                ),
            ),
        )

        info = FileInfo.from_document("survey.KMZ", document, file_size=2048)

        assert info.file_type == FileType.KMZ
        assert info.document_name == "Survey"
        assert info.document_description == "North parcel"
        assert info.total_elements == 2
        assert info.point_count == 1
        assert info.line_string_count == 0
        assert info.polygon_count == 1
        assert info.formatted_size == "2.00 KB"
        assert not info.salvaged

    def test_explicit_file_type(self):
        """Test an explicit kind overrides the filename."""
        info = FileInfo.from_document("upload.bin", Document(), file_type=FileType.KMZ)

        assert info.file_type == FileType.KMZ

    def test_unknown_size(self):
        """Test formatted_size without a size."""
        info = FileInfo.from_document("a.kml", Document())

        assert info.file_size is None
        assert info.formatted_size is None

    def test_serialization_includes_formatted_size(self):
        """Test the computed field is dumped."""
        info = FileInfo(filename="a.kml", file_type=FileType.KML, file_size=10)

        data = info.model_dump()

        assert data["formatted_size"] == "10 bytes"
        assert data["file_type"] == FileType.KML

    def test_validation(self):
        """Test invalid values are rejected."""
        with pytest.raises(ValidationError):
            FileInfo(filename="", file_type=FileType.KML)
        with pytest.raises(ValidationError):
            FileInfo(filename="a.kml", file_type="geojson")
        with pytest.raises(ValidationError):
            FileInfo(filename="a.kml", file_type=FileType.KML, file_size=-1)
