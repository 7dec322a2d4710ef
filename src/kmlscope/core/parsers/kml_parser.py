"""
KML parsing module.

Parsing runs in two stages. The structured stage repairs namespaces, parses
the XML, resolves styles and extracts elements. It reports either a
finished Document or that salvage is needed: when the XML is broken, or
when it parses but yields no elements at all. The salvage stage then
extracts what it can with regular expressions.
"""

import codecs
import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Union

from kmlscope.core.config import Settings, settings as default_settings
from kmlscope.core.errors import InvalidInputError
from kmlscope.utils.logging import PerformanceTimer

from .document import Document
from .geometry import GeometryExtractor
from .namespaces import repair_namespaces
from .salvage import SalvageParser
from .styles import StyleResolver
from .xml_helpers import child_text, iter_descendants, local_name

logger = logging.getLogger(__name__)

KMLContent = Union[str, bytes, Path]


class ParseStatus(str, Enum):
    """Result of the structured parsing stage."""

    OK = "ok"
    NEEDS_SALVAGE = "needs_salvage"


@dataclass(frozen=True)
class StructuredParseOutcome:
    """
    Tagged result of the structured parsing stage.

    Attributes:
        status: Whether the Document is usable or salvage is needed
        document: The parsed Document when status is OK
        reason: Why salvage is needed
    """

    status: ParseStatus
    document: Optional[Document] = None
    reason: Optional[str] = None

    @property
    def needs_salvage(self) -> bool:
        """Whether the salvage parser should run."""
        return self.status == ParseStatus.NEEDS_SALVAGE


# Encoding named in an XML declaration, read from the ASCII-compatible prefix
XML_ENCODING_PATTERN = re.compile(rb"""^\s*<\?xml[^>]*?encoding\s*=\s*["']([A-Za-z0-9._-]+)["']""")

BOM_ENCODINGS = (
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF32_LE, "utf-32"),
    (codecs.BOM_UTF32_BE, "utf-32"),
    (codecs.BOM_UTF16_LE, "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16"),
)


def detect_kml_encoding(data: bytes) -> str:
    """
    Pick the codec for raw KML bytes.

    A byte order mark wins, then the encoding named in the XML declaration,
    then UTF-8. A declared UTF-16 or UTF-32 encoding is ignored when the
    declaration itself was readable as ASCII, since the bytes cannot be
    in that encoding.

    Args:
        data: Raw KML bytes

    Returns:
        Codec name usable with bytes.decode
    """
    for bom, encoding in BOM_ENCODINGS:
        if data.startswith(bom):
            return encoding

    match = XML_ENCODING_PATTERN.match(data[:512])
    if match is None:
        return "utf-8"

    declared = match.group(1).decode("ascii")
    try:
        codec = codecs.lookup(declared)
    except LookupError:
        logger.warning(f"Unknown encoding in XML declaration: {declared}, using UTF-8")
        return "utf-8"

    if codec.name.startswith(("utf-16", "utf-32")):
        return "utf-8"
    return codec.name


def decode_kml_bytes(data: bytes) -> str:
    """Decode raw KML bytes, replacing undecodable sequences."""
    return data.decode(detect_kml_encoding(data), errors="replace")


def read_kml_text(kml_content: KMLContent) -> str:
    """
    Normalize KML input to text.

    Args:
        kml_content: KML content as string, bytes, or file path

    Returns:
        KML text

    Raises:
        InvalidInputError: If the content is not text or is empty
        FileNotFoundError: If a path does not exist
    """
    if isinstance(kml_content, Path):
        kml_content = kml_content.read_bytes()

    if isinstance(kml_content, (bytes, bytearray)):
        kml_content = decode_kml_bytes(bytes(kml_content))

    if not isinstance(kml_content, str):
        raise InvalidInputError(
            "Invalid KML content: not a string",
            input_type=type(kml_content).__name__,
        )

    if not kml_content.strip():
        raise InvalidInputError("Invalid KML content: empty")

    # An XML declaration is only valid at the very start of the text
    return kml_content.lstrip("\ufeff").lstrip()


class KMLParser:
    """
    Parse KML documents into the Document model.

    Handles:
    - Missing root elements and namespace declarations
    - Style, StyleMap and styleUrl resolution
    - Placemarks with Point, LineString, Polygon and MultiGeometry
    - Extended data
    - Fallback to regex salvage for malformed or unproductive XML
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """
        Initialize KML parser.

        Args:
            settings: Settings to use instead of the global instance
        """
        self.settings = settings or default_settings
        self.style_resolver = StyleResolver()
        self.geometry_extractor = GeometryExtractor(self.style_resolver)
        self.salvage_parser = SalvageParser(settings=self.settings)

    def parse(self, kml_content: KMLContent) -> Document:
        """
        Parse KML content.

        Args:
            kml_content: KML content as string, bytes, or file path

        Returns:
            The best Document obtainable from the content

        Raises:
            InvalidInputError: If the content is empty or not text
        """
        kml_text = read_kml_text(kml_content)

        with PerformanceTimer("kml_parse"):
            outcome = self.parse_structured(kml_text)
            if not outcome.needs_salvage and outcome.document is not None:
                return outcome.document

            logger.warning(f"Attempting fallback parsing method: {outcome.reason}")
            return self.salvage_parser.parse(kml_text)

    def parse_structured(self, kml_text: str) -> StructuredParseOutcome:
        """
        Run the structured parsing stage.

        Args:
            kml_text: Raw KML text

        Returns:
            OK with a Document, or NEEDS_SALVAGE with a reason
        """
        repaired = repair_namespaces(kml_text)

        try:
            # Text input, so expat ignores the declared encoding
            root = ET.fromstring(repaired)
        except ET.ParseError as e:
            logger.error(f"XML parsing error: {e}")
            return StructuredParseOutcome(
                status=ParseStatus.NEEDS_SALVAGE,
                reason=f"invalid XML structure: {e}",
            )

        if local_name(root.tag) != "kml":
            logger.warning("Missing <kml> root element, attempting to continue anyway")

        name, description = self._parse_document_info(root)
        styles = self.style_resolver.resolve(root)
        elements = self.geometry_extractor.extract(root, styles)

        if not elements:
            return StructuredParseOutcome(
                status=ParseStatus.NEEDS_SALVAGE,
                reason="no elements found in structured parse",
            )

        return StructuredParseOutcome(
            status=ParseStatus.OK,
            document=Document(
                name=name,
                description=description,
                elements=tuple(elements),
            ),
        )

    def _parse_document_info(self, root: ET.Element) -> Tuple[Optional[str], Optional[str]]:
        """
        Read name and description from the first Document element.

        Args:
            root: XML root element

        Returns:
            Tuple of (name, description), either may be None
        """
        if local_name(root.tag) == "Document":
            document = root
        else:
            document = next(iter_descendants(root, "Document"), None)

        if document is None:
            return None, None

        return child_text(document, "name"), child_text(document, "description")


def parse_kml_file(file_path: Union[str, Path], settings: Optional[Settings] = None) -> Document:
    """
    Convenience function to parse a KML file.

    Args:
        file_path: Path to KML file
        settings: Optional settings

    Returns:
        Document
    """
    return KMLParser(settings=settings).parse(Path(file_path))


def parse_kml_string(kml_content: str, settings: Optional[Settings] = None) -> Document:
    """
    Convenience function to parse KML string content.

    Args:
        kml_content: KML content as string
        settings: Optional settings

    Returns:
        Document
    """
    return KMLParser(settings=settings).parse(kml_content)
