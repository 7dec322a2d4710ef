"""
KML coordinate string tokenizer.

KML coordinates are "lon,lat[,alt]" tuples separated by whitespace. Real
files put spaces after commas, wrap tuples over several lines and
occasionally contain junk, so tokenizing never raises: a tuple that cannot
be read degrades to (0, 0, 0) and the rest of the sequence is kept.
"""

import logging
import re
from typing import List, Optional

from .document import Coordinate

logger = logging.getLogger(__name__)

DEGRADED_COORDINATE: Coordinate = (0.0, 0.0, 0.0)

_WHITESPACE = re.compile(r"\s+")
_SPACE_AFTER_COMMA = re.compile(r",\s+")
# Leading numeric prefix, the same amount a lenient float reader would accept
_NUMBER_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?|inf(?:inity)?)", re.IGNORECASE)


def parse_number(text: Optional[str]) -> Optional[float]:
    """
    Read a leading number from text, ignoring trailing garbage.

    Returns None when no number can be read, e.g. "abc" or "".

    Examples:
        >>> parse_number("12.5m")
        12.5
        >>> parse_number("x") is None
        True
    """
    if text is None:
        return None
    match = _NUMBER_PREFIX.match(text.strip())
    if not match:
        return None
    return float(match.group(0))


def parse_coordinate_tuple(token: str) -> Coordinate:
    """
    Parse one "lon,lat[,alt]" token.

    A missing altitude is 0. An unreadable longitude or latitude degrades
    the whole tuple to (0, 0, 0); an unreadable altitude also degrades it.
    """
    parts = token.split(",")
    lng = parse_number(parts[0])
    lat = parse_number(parts[1]) if len(parts) > 1 else None
    alt = parse_number(parts[2]) if len(parts) > 2 else 0.0

    if lng is None or lat is None:
        logger.warning(f"Invalid coordinate: {token}")
        return DEGRADED_COORDINATE
    if alt is None:
        logger.warning(f"Invalid altitude in coordinate: {token}")
        return DEGRADED_COORDINATE

    return (lng, lat, alt)


def parse_kml_coordinates(coord_string: Optional[str]) -> List[Coordinate]:
    """
    Parse a KML coordinate string into (lon, lat, alt) triples.

    Args:
        coord_string: Raw text of a <coordinates> element, may be None

    Returns:
        Ordered list of triples; empty for absent or blank input

    Examples:
        >>> parse_kml_coordinates("-122.08,37.42,10 -122.09,37.43")
        [(-122.08, 37.42, 10.0), (-122.09, 37.43, 0.0)]

        >>> parse_kml_coordinates("1, 2, 3")
        [(1.0, 2.0, 3.0)]
    """
    if not coord_string:
        return []

    cleaned = _WHITESPACE.sub(" ", coord_string.strip())
    cleaned = _SPACE_AFTER_COMMA.sub(",", cleaned)

    return [parse_coordinate_tuple(token) for token in cleaned.split(" ") if token]


def format_coordinate(coordinate: Coordinate, precision: int = 6) -> str:
    """Render a triple back to KML "lon,lat,alt" text with fixed precision."""
    return ",".join(f"{value:.{precision}f}" for value in coordinate)


def format_location(coordinate: Coordinate) -> str:
    """
    Render a triple as a human-readable "lat, lng" location.

    Altitude is appended in metres when it is non-zero.

    Examples:
        >>> format_location((-122.084, 37.422, 0.0))
        '37.422000, -122.084000'
    """
    lng, lat, alt = coordinate
    location = f"{lat:.6f}, {lng:.6f}"
    if alt:
        location += f", {alt:.2f}m"
    return location
