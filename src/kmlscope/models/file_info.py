"""
Pydantic models describing a loaded KML/KMZ file.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from kmlscope.core.parsers.document import Document, ElementType


class FileType(str, Enum):
    """Supported input file kinds."""

    KML = "kml"
    KMZ = "kmz"


def classify_file_type(filename: str) -> FileType:
    """
    Classify a file by its name.

    A case-insensitive ".kmz" suffix means KMZ; everything else is KML.

    Examples:
        >>> classify_file_type("site.KMZ")
        <FileType.KMZ: 'kmz'>
        >>> classify_file_type("site.xml")
        <FileType.KML: 'kml'>
    """
    return FileType.KMZ if filename.lower().endswith(".kmz") else FileType.KML


def format_file_size(size_bytes: int) -> str:
    """Render a byte count as "N bytes", "x.xx KB" or "x.xx MB"."""
    if size_bytes < 1024:
        return f"{size_bytes} bytes"
    if size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.2f} KB"
    return f"{size_bytes / (1024 * 1024):.2f} MB"


class FileInfo(BaseModel):
    """
    Summary of a parsed file.

    Attributes:
        filename: Original filename
        file_type: KML or KMZ
        file_size: Size in bytes, when known
        document_name: Name of the parsed document
        document_description: Description of the parsed document
        total_elements: Number of extracted elements
        point_count: Number of Point elements
        line_string_count: Number of LineString elements
        polygon_count: Number of Polygon elements
        salvaged: Whether the salvage parser produced the document
    """

    filename: str = Field(..., description="Original filename", min_length=1)
    file_type: FileType = Field(..., description="Kind of file")
    file_size: Optional[int] = Field(None, description="File size in bytes", ge=0)
    document_name: Optional[str] = Field(None, description="Document name")
    document_description: Optional[str] = Field(None, description="Document description")
    total_elements: int = Field(0, description="Number of elements", ge=0)
    point_count: int = Field(0, ge=0)
    line_string_count: int = Field(0, ge=0)
    polygon_count: int = Field(0, ge=0)
    salvaged: bool = Field(False, description="Produced by the salvage parser")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "filename": "survey.kmz",
                "file_type": "kmz",
                "file_size": 20480,
                "document_name": "Site survey",
                "total_elements": 3,
                "point_count": 1,
                "line_string_count": 1,
                "polygon_count": 1,
                "salvaged": False,
            }
        }
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def formatted_size(self) -> Optional[str]:
        """Human-readable file size."""
        if self.file_size is None:
            return None
        return format_file_size(self.file_size)

    @classmethod
    def from_document(
        cls,
        filename: str,
        document: Document,
        file_size: Optional[int] = None,
        file_type: Optional[FileType] = None,
    ) -> "FileInfo":
        """
        Summarize a parsed Document.

        Args:
            filename: Original filename
            document: Parsed document
            file_size: Size in bytes, when known
            file_type: Kind of file; classified from filename when omitted

        Returns:
            FileInfo
        """
        counts = document.count_by_type()
        return cls(
            filename=filename,
            file_type=file_type or classify_file_type(filename),
            file_size=file_size,
            document_name=document.name,
            document_description=document.description,
            total_elements=document.element_count,
            point_count=counts[ElementType.POINT],
            line_string_count=counts[ElementType.LINE_STRING],
            polygon_count=counts[ElementType.POLYGON],
            salvaged=document.salvaged,
        )
