"""
Placemark geometry extraction.

Walks every Placemark in a parsed tree and turns it into at most one
Element. Geometry children are tried in a fixed order (Point, LineString,
Polygon, MultiGeometry) and the first one present decides the element kind.
A MultiGeometry contributes only its first Point, LineString or Polygon.
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Dict, List, Optional

from .coordinates import parse_kml_coordinates
from .document import Coordinates, Element, ElementMetadata, ElementType, Style
from .metrics import line_length, polygon_area
from .styles import StyleResolver, StyleTable
from .xml_helpers import child_text, find_child, find_children, iter_descendants, text_content

logger = logging.getLogger(__name__)

GEOMETRY_PRIORITY = ("Point", "LineString", "Polygon", "MultiGeometry")
MULTI_GEOMETRY_PRIORITY = ("Point", "LineString", "Polygon")
MULTI_NAME_SUFFIX = " (Multi)"


@dataclass(frozen=True)
class ParsedGeometry:
    """
    Geometry read from a single geometry element.

    Attributes:
        geometry_type: Kind of geometry
        coordinates: Coordinates shaped for the kind
        metadata: Derived length or area, if computed
    """

    geometry_type: ElementType
    coordinates: Coordinates
    metadata: Optional[ElementMetadata] = None


class GeometryExtractor:
    """
    Extract Elements from Placemarks.

    Handles:
    - Name, description and ExtendedData
    - Inline styles and styleUrl references into the style table
    - Point, LineString, Polygon (with holes) and MultiGeometry
    - Length and area metrics
    """

    def __init__(self, style_resolver: Optional[StyleResolver] = None) -> None:
        """
        Initialize geometry extractor.

        Args:
            style_resolver: Resolver used to build inline styles
        """
        self.style_resolver = style_resolver or StyleResolver()

    def extract(self, root: ET.Element, styles: StyleTable) -> List[Element]:
        """
        Extract elements from every Placemark in the tree.

        A Placemark that fails to parse is logged and skipped.

        Args:
            root: XML root element
            styles: Style table for this document

        Returns:
            Elements in document order
        """
        elements: List[Element] = []

        for index, placemark in enumerate(iter_descendants(root, "Placemark")):
            try:
                element = self.extract_placemark(placemark, styles)
            except Exception as e:
                logger.warning(f"Failed to parse placemark {index}: {e}")
                continue

            if element is not None:
                elements.append(element)

        logger.debug(f"Extracted {len(elements)} elements")
        return elements

    def extract_placemark(
        self, placemark: ET.Element, styles: StyleTable
    ) -> Optional[Element]:
        """
        Extract a single Placemark.

        Args:
            placemark: Placemark XML element
            styles: Style table for this document

        Returns:
            Element, or None when the Placemark has no usable geometry
        """
        name = child_text(placemark, "name")
        description = child_text(placemark, "description")
        style = self._resolve_style(placemark, styles)
        extended_data = self._parse_extended_data(placemark) or None

        for geometry_name in GEOMETRY_PRIORITY:
            geometry_elem = find_child(placemark, geometry_name)
            if geometry_elem is None:
                continue

            if geometry_name == "MultiGeometry":
                parsed = self._parse_multi_geometry(geometry_elem)
                if parsed is not None and name:
                    name = f"{name}{MULTI_NAME_SUFFIX}"
            else:
                parsed = self._parse_geometry_element(geometry_elem, geometry_name)

            if parsed is None:
                return None

            return Element(
                type=parsed.geometry_type,
                coordinates=parsed.coordinates,
                name=name,
                description=description,
                style=style,
                extended_data=extended_data,
                metadata=parsed.metadata,
            )

        return None

    def _parse_geometry_element(
        self, element: ET.Element, geometry_name: str, with_metrics: bool = True
    ) -> Optional[ParsedGeometry]:
        """
        Parse a Point, LineString or Polygon element.

        Args:
            element: Geometry XML element
            geometry_name: Local tag name of the element
            with_metrics: Whether to compute length/area and read holes

        Returns:
            ParsedGeometry, or None when there are no coordinates
        """
        if geometry_name == "Point":
            coordinates = parse_kml_coordinates(child_text(element, "coordinates"))
            if not coordinates:
                return None
            return ParsedGeometry(ElementType.POINT, coordinates[0])

        if geometry_name == "LineString":
            coordinates = parse_kml_coordinates(child_text(element, "coordinates"))
            if not coordinates:
                return None
            metadata = ElementMetadata(length_km=line_length(coordinates)) if with_metrics else None
            return ParsedGeometry(ElementType.LINE_STRING, tuple(coordinates), metadata)

        outer = parse_kml_coordinates(
            child_text(element, "outerBoundaryIs/LinearRing/coordinates")
        )
        if not outer:
            return None

        rings = [tuple(outer)]
        if not with_metrics:
            return ParsedGeometry(ElementType.POLYGON, tuple(rings))

        for inner in find_children(element, "innerBoundaryIs/LinearRing/coordinates"):
            ring = parse_kml_coordinates(text_content(inner))
            if ring:
                rings.append(tuple(ring))

        metadata = ElementMetadata(area_km2=polygon_area(outer))
        return ParsedGeometry(ElementType.POLYGON, tuple(rings), metadata)

    def _parse_multi_geometry(self, element: ET.Element) -> Optional[ParsedGeometry]:
        # Only the first child geometry is kept; metrics and holes are not read
        for child_name in MULTI_GEOMETRY_PRIORITY:
            child = find_child(element, child_name)
            if child is not None:
                return self._parse_geometry_element(child, child_name, with_metrics=False)
        return None

    def _resolve_style(self, placemark: ET.Element, styles: StyleTable) -> Optional[Style]:
        inline = find_child(placemark, "Style")
        if inline is not None:
            return self.style_resolver.build_style(inline)

        style_url = child_text(placemark, "styleUrl")
        if style_url and style_url.startswith("#"):
            return styles.get(style_url[1:])
        return None

    def _parse_extended_data(self, placemark: ET.Element) -> Dict[str, str]:
        """
        Parse ExtendedData/Data pairs.

        Args:
            placemark: Placemark XML element

        Returns:
            Mapping of Data name to value text; entries without a value are skipped
        """
        properties: Dict[str, str] = {}
        for data in find_children(placemark, "ExtendedData/Data"):
            name = data.get("name")
            value = child_text(data, "value")
            if name and value:
                properties[name] = value
        return properties
