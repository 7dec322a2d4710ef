"""
Regex-based salvage parsing for KML that defeats the XML parser.

Scans raw text for <Placemark> blocks and pulls out the name, description
and the first Point, LineString or Polygon coordinates of each. No styles
are resolved and no metrics are computed; every salvaged element shares one
fixed default style. Salvage never raises: the worst case is an empty
Document.
"""

import logging
import re
from typing import List, Optional

from kmlscope.core.config import Settings, settings as default_settings

from .coordinates import parse_kml_coordinates
from .document import Document, Element, ElementType, Style

logger = logging.getLogger(__name__)

PLACEMARK_PATTERN = re.compile(r"<Placemark[^>]*>([\s\S]*?)</Placemark>")
NAME_PATTERN = re.compile(r"<name[^>]*>([\s\S]*?)</name>")
DESCRIPTION_PATTERN = re.compile(r"<description[^>]*>([\s\S]*?)</description>")
COORDINATES_PATTERN = re.compile(r"<coordinates[^>]*>([\s\S]*?)</coordinates>")

# Tried in order; the first geometry found in a block wins
GEOMETRY_PATTERNS = (
    (ElementType.POINT, re.compile(r"<Point[^>]*>([\s\S]*?)</Point>")),
    (ElementType.LINE_STRING, re.compile(r"<LineString[^>]*>([\s\S]*?)</LineString>")),
    (ElementType.POLYGON, re.compile(r"<Polygon[^>]*>([\s\S]*?)</Polygon>")),
)


class SalvageParser:
    """Best-effort extraction of Placemarks from malformed KML text."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """
        Initialize salvage parser.

        Args:
            settings: Settings providing the default salvage style
        """
        self.settings = settings or default_settings

    def default_style(self) -> Style:
        """Style applied to every salvaged element."""
        return Style(
            line_color=self.settings.salvage_line_color,
            fill_color=self.settings.salvage_fill_color,
            fill_opacity=self.settings.salvage_fill_opacity,
        )

    def parse(self, kml_text: str) -> Document:
        """
        Salvage elements from raw KML text.

        Args:
            kml_text: The text that could not be parsed structurally

        Returns:
            Document flagged as salvaged, possibly with no elements
        """
        style = self.default_style()
        elements: List[Element] = []

        for index, match in enumerate(PLACEMARK_PATTERN.finditer(kml_text)):
            try:
                element = self._parse_block(match.group(1), style)
            except Exception as e:
                logger.warning(f"Failed to salvage placemark {index}: {e}")
                continue
            if element is not None:
                elements.append(element)

        logger.info(f"Fallback parsing extracted {len(elements)} elements")
        return Document(elements=tuple(elements), salvaged=True)

    def _parse_block(self, block: str, style: Style) -> Optional[Element]:
        name = _first_group(NAME_PATTERN, block)
        description = _first_group(DESCRIPTION_PATTERN, block)

        for element_type, pattern in GEOMETRY_PATTERNS:
            geometry = pattern.search(block)
            if geometry is None:
                continue

            coordinates = parse_kml_coordinates(_first_group(COORDINATES_PATTERN, geometry.group(1)))
            if not coordinates:
                return None

            if element_type == ElementType.POINT:
                shaped = coordinates[0]
            elif element_type == ElementType.LINE_STRING:
                shaped = tuple(coordinates)
            else:
                shaped = (tuple(coordinates),)

            return Element(
                type=element_type,
                coordinates=shaped,
                name=name,
                description=description,
                style=style,
            )

        return None


def _first_group(pattern: "re.Pattern[str]", text: str) -> Optional[str]:
    match = pattern.search(text)
    if match is None:
        return None
    return match.group(1).strip() or None


def salvage_parse(kml_text: str, settings: Optional[Settings] = None) -> Document:
    """
    Convenience function to salvage a malformed KML string.

    Args:
        kml_text: Raw KML text
        settings: Optional settings for the default style

    Returns:
        Salvaged Document
    """
    return SalvageParser(settings=settings).parse(kml_text)
