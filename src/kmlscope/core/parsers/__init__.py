"""
KML/KMZ parsing module for kmlscope.

Turns KML text, or the main document inside a KMZ archive, into an
immutable Document of Point, LineString and Polygon elements. Damaged input
is repaired where possible and salvaged with regular expressions otherwise.
"""

from .colors import DEFAULT_COLOR, kml_color_to_hex
from .coordinates import (
    format_coordinate,
    format_location,
    parse_coordinate_tuple,
    parse_kml_coordinates,
)
from .document import Document, Element, ElementMetadata, ElementType, Style
from .geometry import GeometryExtractor, ParsedGeometry
from .kml_parser import (
    KMLParser,
    ParseStatus,
    StructuredParseOutcome,
    parse_kml_file,
    parse_kml_string,
)
from .kmz_parser import KMZArchive, KMZParser, parse_kmz_async, parse_kmz_file
from .metrics import haversine_distance, line_length, polygon_area
from .namespaces import repair_namespaces
from .salvage import SalvageParser, salvage_parse
from .styles import StyleResolver, resolve_styles

__all__ = [
    # Model
    "Document",
    "Element",
    "ElementMetadata",
    "ElementType",
    "Style",
    # Primitives
    "DEFAULT_COLOR",
    "kml_color_to_hex",
    "format_coordinate",
    "format_location",
    "parse_coordinate_tuple",
    "parse_kml_coordinates",
    "haversine_distance",
    "line_length",
    "polygon_area",
    # KML
    "GeometryExtractor",
    "ParsedGeometry",
    "StyleResolver",
    "resolve_styles",
    "repair_namespaces",
    "KMLParser",
    "ParseStatus",
    "StructuredParseOutcome",
    "parse_kml_file",
    "parse_kml_string",
    "SalvageParser",
    "salvage_parse",
    # KMZ
    "KMZArchive",
    "KMZParser",
    "parse_kmz_async",
    "parse_kmz_file",
]
