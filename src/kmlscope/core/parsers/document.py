"""
In-memory document model produced by the KML parsers.

A Document and its Elements are built once per parse call and never mutated
afterwards. Styles are shared by reference: every Element whose style traces
back to the same identifier holds the very same Style instance.
"""

import types
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from shapely.geometry import LineString, Point, Polygon
from shapely.geometry.base import BaseGeometry

from kmlscope.core.errors import GeometryError

Coordinate = Tuple[float, float, float]
Ring = Tuple[Coordinate, ...]
Coordinates = Union[Coordinate, Tuple[Coordinate, ...], Tuple[Ring, ...]]


class ElementType(str, Enum):
    """Geometry kinds an Element can carry."""

    POINT = "Point"
    LINE_STRING = "LineString"
    POLYGON = "Polygon"


@dataclass(frozen=True)
class Style:
    """
    Rendering hints resolved from KML Style definitions.

    Attributes:
        line_color: Line color as #rrggbb
        line_width: Line width
        fill_color: Polygon fill color as #rrggbb
        fill_opacity: Polygon fill opacity (0-1)
        stroke_opacity: Polygon outline opacity (0-1)
        icon_url: Icon image reference
        icon_scale: Icon scale factor
    """

    line_color: Optional[str] = None
    line_width: Optional[float] = None
    fill_color: Optional[str] = None
    fill_opacity: Optional[float] = None
    stroke_opacity: Optional[float] = None
    icon_url: Optional[str] = None
    icon_scale: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert Style to a dictionary of the fields that are set."""
        return {
            key: value
            for key, value in (
                ("line_color", self.line_color),
                ("line_width", self.line_width),
                ("fill_color", self.fill_color),
                ("fill_opacity", self.fill_opacity),
                ("stroke_opacity", self.stroke_opacity),
                ("icon_url", self.icon_url),
                ("icon_scale", self.icon_scale),
            )
            if value is not None
        }


@dataclass(frozen=True)
class ElementMetadata:
    """Derived metrics: geodesic length for lines, approximate area for polygons."""

    length_km: Optional[float] = None
    area_km2: Optional[float] = None


def new_element_id() -> str:
    """Generate a process-unique opaque element identifier."""
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Element:
    """
    A single geographic feature.

    Attributes:
        type: Geometry kind
        coordinates: (lng, lat, alt) for a Point, a tuple of triples for a
            LineString, a tuple of rings for a Polygon (ring 0 is the outer
            boundary, the rest are holes)
        name: Feature name
        description: Free text, possibly containing markup
        style: Resolved style, shared with other Elements using the same id
        extended_data: Read-only ExtendedData key/value pairs, None when empty
        metadata: Derived length or area, None for Points
        id: Opaque identifier, unique within the process
    """

    type: ElementType
    coordinates: Coordinates
    name: Optional[str] = None
    description: Optional[str] = None
    style: Optional[Style] = None
    extended_data: Optional[Mapping[str, str]] = None
    metadata: Optional[ElementMetadata] = None
    id: str = field(default_factory=new_element_id)

    def __post_init__(self) -> None:
        """Check the coordinate shape matches the geometry kind and freeze extended data."""
        if self.type == ElementType.POINT:
            if len(self.coordinates) != 3:
                raise ValueError("Point coordinates must be a single (lng, lat, alt) triple")
        elif not self.coordinates:
            raise ValueError(f"{self.type.value} coordinates must not be empty")

        if self.extended_data is not None:
            object.__setattr__(
                self, "extended_data", types.MappingProxyType(dict(self.extended_data))
            )

    @property
    def point_count(self) -> int:
        """Total number of coordinate triples across the geometry."""
        if self.type == ElementType.POINT:
            return 1
        if self.type == ElementType.LINE_STRING:
            return len(self.coordinates)
        return sum(len(ring) for ring in self.coordinates)

    @property
    def ring_count(self) -> int:
        """Number of polygon rings; 0 for Points and LineStrings."""
        return len(self.coordinates) if self.type == ElementType.POLYGON else 0

    def to_shapely(self) -> BaseGeometry:
        """
        Convert the element to a shapely geometry.

        Returns:
            Point, LineString or Polygon (with holes)

        Raises:
            GeometryError: If there are too few points for the geometry kind
        """
        if self.type == ElementType.POINT:
            return Point(self.coordinates)

        if self.type == ElementType.LINE_STRING:
            if len(self.coordinates) < 2:
                raise GeometryError(
                    f"LineString must have at least 2 coordinates, got {len(self.coordinates)}",
                    geometry_type=self.type.value,
                )
            return LineString(self.coordinates)

        shell, *holes = self.coordinates
        if len(shell) < 3:
            raise GeometryError(
                f"Polygon outer boundary must have at least 3 coordinates, got {len(shell)}",
                geometry_type=self.type.value,
            )
        return Polygon(shell, [hole for hole in holes if len(hole) >= 3] or None)

    def to_dict(self) -> Dict[str, Any]:
        """Convert Element to dictionary representation."""
        data: Dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "name": self.name,
            "description": self.description,
            "coordinates": _to_lists(self.coordinates),
        }
        if self.style is not None:
            data["style"] = self.style.to_dict()
        if self.extended_data:
            data["extended_data"] = dict(self.extended_data)
        if self.metadata is not None:
            if self.metadata.length_km is not None:
                data["length_km"] = self.metadata.length_km
            if self.metadata.area_km2 is not None:
                data["area_km2"] = self.metadata.area_km2
        return data


@dataclass(frozen=True)
class Document:
    """
    Result of parsing one KML document.

    Attributes:
        name: Document name
        description: Document description
        elements: Extracted elements in document order
        salvaged: Whether the regex salvage parser produced this document
    """

    name: Optional[str] = None
    description: Optional[str] = None
    elements: Tuple[Element, ...] = ()
    salvaged: bool = False

    @property
    def element_count(self) -> int:
        """Get total number of elements."""
        return len(self.elements)

    def get_elements_by_type(self, element_type: ElementType) -> List[Element]:
        """Get elements filtered by geometry kind."""
        return [e for e in self.elements if e.type == element_type]

    def count_by_type(self) -> Dict[ElementType, int]:
        """Count elements per geometry kind, including kinds with zero elements."""
        counts = {element_type: 0 for element_type in ElementType}
        for element in self.elements:
            counts[element.type] += 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        """Convert Document to dictionary representation."""
        return {
            "name": self.name,
            "description": self.description,
            "salvaged": self.salvaged,
            "elements": [element.to_dict() for element in self.elements],
        }


def _to_lists(value: Any) -> Any:
    if isinstance(value, tuple):
        return [_to_lists(item) for item in value]
    return value
