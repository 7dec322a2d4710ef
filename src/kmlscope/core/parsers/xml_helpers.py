"""
Namespace-agnostic ElementTree lookups.

KML in the wild uses the 2.2 namespace, older Google namespaces or none at
all. Every lookup here matches on the local tag name via the "{*}" wildcard,
so callers never need to know which namespace a file declared.
"""

import xml.etree.ElementTree as ET
from typing import Iterator, List, Optional


def local_name(tag: str) -> str:
    """Strip a "{namespace}" prefix from a tag."""
    return tag.rsplit("}", 1)[-1]


def find_child(element: ET.Element, path: str) -> Optional[ET.Element]:
    """
    Find the first element matching a slash-separated path of local names.

    Example:
        find_child(polygon, "outerBoundaryIs/LinearRing/coordinates")
    """
    return element.find(_wildcard(path))


def find_children(element: ET.Element, path: str) -> List[ET.Element]:
    """Find all elements matching a slash-separated path of local names."""
    return element.findall(_wildcard(path))


def iter_descendants(element: ET.Element, name: str) -> Iterator[ET.Element]:
    """Iterate over all descendants with the given local name, in document order."""
    return element.iterfind(f".//{{*}}{name}")


def text_content(element: Optional[ET.Element]) -> Optional[str]:
    """
    Get the stripped text of an element and all its descendants.

    Returns None for a missing element or blank text.
    """
    if element is None:
        return None
    text = "".join(element.itertext()).strip()
    return text or None


def child_text(element: ET.Element, path: str) -> Optional[str]:
    """Get the text content of the first element matching path."""
    return text_content(find_child(element, path))


def _wildcard(path: str) -> str:
    return "/".join(f"{{*}}{part}" for part in path.split("/"))
