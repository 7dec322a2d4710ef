"""
KML Style and StyleMap resolution.

Builds a per-parse style table mapping style ids to Style values. StyleMap
ids are aliased to the Style their "normal" pair points at, so both ids
resolve to the identical Style instance.
"""

import logging
import xml.etree.ElementTree as ET
from typing import Dict, Optional

from .colors import kml_color_to_hex
from .coordinates import parse_number
from .document import Style
from .xml_helpers import child_text, find_child, find_children, iter_descendants

logger = logging.getLogger(__name__)

StyleTable = Dict[str, Style]

# PolyStyle fill/outline are boolean flags; these are the opacities they map to
FILL_OPACITY_ON = 0.5
FILL_OPACITY_OFF = 0.0
OUTLINE_OPACITY_ON = 1.0
OUTLINE_OPACITY_OFF = 0.0


class StyleResolver:
    """
    Resolve Style and StyleMap definitions into a style table.

    Handles:
    - LineStyle color and width
    - PolyStyle color and fill/outline flags
    - IconStyle scale and icon href
    - StyleMap "normal" pairs referencing a local "#id"
    """

    def resolve(self, root: ET.Element) -> StyleTable:
        """
        Build the style table for a parsed document.

        Styles without an id, StyleMaps without an id and StyleMaps whose
        normal style cannot be found are skipped.

        Args:
            root: XML root element

        Returns:
            Mapping of style id to Style
        """
        styles: StyleTable = {}

        for style_elem in iter_descendants(root, "Style"):
            style_id = style_elem.get("id")
            if not style_id:
                continue
            try:
                styles[style_id] = self.build_style(style_elem)
            except Exception as e:
                logger.warning(f"Failed to parse style '{style_id}': {e}")

        for style_map in iter_descendants(root, "StyleMap"):
            map_id = style_map.get("id")
            if not map_id:
                continue

            style_url = self._normal_style_url(style_map)
            if not style_url or not style_url.startswith("#"):
                continue

            referenced = styles.get(style_url[1:])
            if referenced is None:
                logger.debug(f"StyleMap '{map_id}' references unknown style {style_url}")
                continue

            styles[map_id] = referenced

        logger.debug(f"Resolved {len(styles)} style ids")
        return styles

    def build_style(self, style_elem: ET.Element) -> Style:
        """
        Build a Style from a <Style> element.

        Args:
            style_elem: Style XML element

        Returns:
            Style with every field found in the element
        """
        line_color: Optional[str] = None
        line_width: Optional[float] = None
        fill_color: Optional[str] = None
        fill_opacity: Optional[float] = None
        stroke_opacity: Optional[float] = None
        icon_url: Optional[str] = None
        icon_scale: Optional[float] = None

        line_style = find_child(style_elem, "LineStyle")
        if line_style is not None:
            color = child_text(line_style, "color")
            width = child_text(line_style, "width")
            if color:
                line_color = kml_color_to_hex(color)
            if width:
                line_width = parse_number(width)

        poly_style = find_child(style_elem, "PolyStyle")
        if poly_style is not None:
            color = child_text(poly_style, "color")
            fill = child_text(poly_style, "fill")
            outline = child_text(poly_style, "outline")
            if color:
                fill_color = kml_color_to_hex(color)
            if fill:
                fill_opacity = FILL_OPACITY_ON if fill == "1" else FILL_OPACITY_OFF
            if outline:
                stroke_opacity = OUTLINE_OPACITY_ON if outline == "1" else OUTLINE_OPACITY_OFF

        icon_style = find_child(style_elem, "IconStyle")
        if icon_style is not None:
            scale = child_text(icon_style, "scale")
            href = child_text(icon_style, "Icon/href")
            if scale:
                icon_scale = parse_number(scale)
            if href:
                icon_url = href

        return Style(
            line_color=line_color,
            line_width=line_width,
            fill_color=fill_color,
            fill_opacity=fill_opacity,
            stroke_opacity=stroke_opacity,
            icon_url=icon_url,
            icon_scale=icon_scale,
        )

    @staticmethod
    def _normal_style_url(style_map: ET.Element) -> Optional[str]:
        for pair in find_children(style_map, "Pair"):
            if child_text(pair, "key") == "normal":
                return child_text(pair, "styleUrl")
        return None


def resolve_styles(root: ET.Element) -> StyleTable:
    """
    Convenience function to build a style table.

    Args:
        root: XML root element

    Returns:
        Mapping of style id to Style
    """
    return StyleResolver().resolve(root)
