"""
Textual namespace repair for KML documents.

Many exported files use prefixes such as gx: without declaring them, or
leave out the <kml> root entirely. Both make an XML parser reject the whole
file, so the fix is applied to the raw text before parsing: missing
declarations are added to the opening <kml> tag, and a document without a
root tag is wrapped in one. Applying the repair twice gives the same text
as applying it once.
"""

import logging
import re
from typing import Tuple

logger = logging.getLogger(__name__)

KML_NAMESPACE = "http://www.opengis.net/kml/2.2"

# Declarations commonly missing from exported files, in insertion order
KML_NAMESPACES: Tuple[Tuple[str, str], ...] = (
    ("xmlns", KML_NAMESPACE),
    ("xmlns:xsi", "http://www.w3.org/2001/XMLSchema-instance"),
    ("xmlns:gx", "http://www.google.com/kml/ext/2.2"),
    ("xmlns:atom", "http://www.w3.org/2005/Atom"),
    ("xmlns:kml", KML_NAMESPACE),
)

_ROOT_TAG = re.compile(r"<kml(?=[\s/>])[^>]*>")
_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")


def _declaration(attribute: str, uri: str) -> str:
    return f'{attribute}="{uri}"'


def has_declaration(tag: str, attribute: str) -> bool:
    """Check whether an opening tag already declares the given xmlns attribute."""
    return re.search(rf"\s{re.escape(attribute)}\s*=", tag) is not None


def wrap_in_root(text: str) -> str:
    """
    Wrap text in a synthetic <kml> root carrying the known declarations.

    An XML declaration, if present, stays in front of the new root.
    """
    declarations = " ".join(_declaration(attribute, uri) for attribute, uri in KML_NAMESPACES)
    prolog = ""
    match = _XML_DECLARATION.match(text)
    if match:
        prolog = match.group(0).lstrip()
        text = text[match.end():]
    return f"{prolog}<kml {declarations}>{text}</kml>"


def add_missing_namespaces(text: str) -> str:
    """
    Add any missing well-known declarations to the opening <kml> tag.

    All other attributes and all content are left untouched.
    """
    match = _ROOT_TAG.search(text)
    if match is None:
        return text

    tag = match.group(0)
    missing = [
        _declaration(attribute, uri)
        for attribute, uri in KML_NAMESPACES
        if not has_declaration(tag, attribute)
    ]
    if not missing:
        return text

    insertion = " " + " ".join(missing)
    if tag.endswith("/>"):
        repaired = tag[:-2].rstrip() + insertion + "/>"
    else:
        repaired = tag[:-1].rstrip() + insertion + ">"

    logger.debug(f"Adding missing namespaces to KML root element: {', '.join(missing)}")
    return text[: match.start()] + repaired + text[match.end():]


def repair_namespaces(text: str) -> str:
    """
    Make KML text parseable with respect to root element and namespaces.

    Args:
        text: Raw KML text

    Returns:
        Repaired text
    """
    if _ROOT_TAG.search(text) is None:
        logger.warning("No <kml> root element found, wrapping content")
        return wrap_in_root(text)
    return add_missing_namespaces(text)
