"""
KML color conversion.

KML packs colors as eight hex digits in alpha, blue, green, red order
("aabbggrr"). Display colors are "#rrggbb"; the alpha channel is dropped.
"""

from typing import Optional

DEFAULT_COLOR = "#3700ff"


def kml_color_to_hex(kml_color: Optional[str]) -> str:
    """
    Convert a KML aabbggrr color to #rrggbb.

    Anything that is not exactly eight characters yields DEFAULT_COLOR.

    Examples:
        >>> kml_color_to_hex("ff0000ff")
        '#ff0000'
        >>> kml_color_to_hex("801400aa")
        '#aa0014'
    """
    if not kml_color or len(kml_color) != 8:
        return DEFAULT_COLOR

    blue = kml_color[2:4]
    green = kml_color[4:6]
    red = kml_color[6:8]

    return f"#{red}{green}{blue}"
