"""
KMZ parsing module.

Extracts and parses the main KML document from a KMZ (zipped KML) archive
and collects embedded images as data URIs.
"""

import asyncio
import base64
import io
import logging
import mimetypes
import zipfile
import zlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional, Union

from kmlscope.core.config import Settings, settings as default_settings
from kmlscope.core.errors import ContainerError, NoKMLFoundError
from kmlscope.utils.logging import log_async_performance

from .document import Document
from .kml_parser import KMLParser, decode_kml_bytes

logger = logging.getLogger(__name__)

KMZSource = Union[str, Path, bytes, BinaryIO]

# Errors zipfile raises while inflating a single entry
ENTRY_READ_ERRORS = (zipfile.BadZipFile, zlib.error, RuntimeError, NotImplementedError, OSError)


@dataclass(frozen=True)
class KMZArchive:
    """
    Contents unpacked from a KMZ archive.

    Attributes:
        kml_name: Archive entry the KML document was read from
        kml_content: Decoded KML text
        resources: Image entry name mapped to a data URI
    """

    kml_name: str
    kml_content: str
    resources: Dict[str, str] = field(default_factory=dict)


class KMZParser:
    """
    Parse KMZ archives by extracting and parsing the contained KML.

    Handles:
    - Main KML selection (doc.kml, else the first .kml entry)
    - Archive size limits
    - Embedded image resources
    """

    MAIN_KML_NAME = "doc.kml"

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """
        Initialize KMZ parser.

        Args:
            settings: Settings to use instead of the global instance
        """
        self.settings = settings or default_settings

    def parse(self, source: KMZSource) -> Document:
        """
        Parse a KMZ archive.

        Args:
            source: Path to the archive, its raw bytes, or a binary file object

        Returns:
            Document parsed from the main KML entry

        Raises:
            ContainerError: If the archive is invalid or too large
            NoKMLFoundError: If the archive contains no KML entry
            InvalidInputError: If the KML entry is empty
            FileNotFoundError: If a path does not exist
        """
        archive = self.unpack(source)
        return KMLParser(settings=self.settings).parse(archive.kml_content)

    async def parse_async(self, source: KMZSource) -> Document:
        """
        Parse a KMZ archive in a worker thread.

        Unpacking completes before the KML is parsed, exactly as in parse().
        """
        return await asyncio.to_thread(self.parse, source)

    def unpack(self, source: KMZSource) -> KMZArchive:
        """
        Extract the main KML document and image resources.

        Args:
            source: Path to the archive, its raw bytes, or a binary file object

        Returns:
            KMZArchive with decoded KML text and image data URIs
        """
        archive_name = self._source_name(source)
        zf = self._open_archive(source, archive_name)

        with zf:
            self._check_uncompressed_size(zf, archive_name)

            main_kml = self._find_main_kml(zf, archive_name)
            logger.info(f"Extracting KML file: {main_kml.filename}")

            try:
                kml_content = decode_kml_bytes(zf.read(main_kml))
            except ENTRY_READ_ERRORS as e:
                logger.error(f"Failed to extract KML content: {e}")
                raise ContainerError(
                    "Failed to extract KML content from KMZ file",
                    archive_name=archive_name,
                    details={"entry": main_kml.filename, "reason": str(e)},
                ) from e

            resources = self._extract_images(zf)

        return KMZArchive(
            kml_name=main_kml.filename,
            kml_content=kml_content,
            resources=resources,
        )

    def list_contents(self, source: KMZSource) -> Dict[str, Any]:
        """
        List all files in a KMZ archive without extracting them.

        Args:
            source: Path to the archive, its raw bytes, or a binary file object

        Returns:
            Dictionary with kml, image and other entries and totals
        """
        archive_name = self._source_name(source)
        contents: Dict[str, Any] = {
            "kml_files": [],
            "image_files": [],
            "other_files": [],
            "total_files": 0,
            "total_size": 0,
        }

        with self._open_archive(source, archive_name) as zf:
            for file_info in zf.infolist():
                if file_info.is_dir():
                    continue

                entry = {"name": file_info.filename, "size": file_info.file_size}
                contents["total_files"] += 1
                contents["total_size"] += file_info.file_size

                if file_info.filename.lower().endswith(".kml"):
                    contents["kml_files"].append(entry)
                elif self._is_image(file_info.filename):
                    contents["image_files"].append(entry)
                else:
                    contents["other_files"].append(entry)

        return contents

    def _open_archive(self, source: KMZSource, archive_name: str) -> zipfile.ZipFile:
        """
        Open the source as a ZIP archive, enforcing the archive size limit.

        Raises:
            ContainerError: If the source is too large or not a ZIP archive
            FileNotFoundError: If a path does not exist
        """
        if isinstance(source, str):
            source = Path(source)

        if isinstance(source, Path):
            if not source.exists():
                raise FileNotFoundError(f"KMZ file not found: {source}")
            archive_size: Optional[int] = source.stat().st_size
            handle: Union[Path, BinaryIO] = source
        elif isinstance(source, (bytes, bytearray)):
            archive_size = len(source)
            handle = io.BytesIO(source)
        else:
            archive_size = None
            handle = source

        if archive_size is not None and archive_size > self.settings.max_archive_size_bytes:
            raise ContainerError(
                f"KMZ file too large: {archive_size} bytes "
                f"(max {self.settings.max_archive_size_bytes} bytes)",
                archive_name=archive_name,
            )

        try:
            return zipfile.ZipFile(handle, "r")
        except zipfile.BadZipFile as e:
            logger.error(f"Failed to load KMZ as ZIP: {e}")
            raise ContainerError(
                "Invalid KMZ file: Not a valid ZIP archive",
                archive_name=archive_name,
            ) from e

    def _check_uncompressed_size(self, zf: zipfile.ZipFile, archive_name: str) -> None:
        total_size = sum(info.file_size for info in zf.infolist())
        if total_size > self.settings.max_uncompressed_size_bytes:
            raise ContainerError(
                f"Uncompressed size too large: {total_size} bytes "
                f"(max {self.settings.max_uncompressed_size_bytes} bytes)",
                archive_name=archive_name,
            )

    def _find_main_kml(self, zf: zipfile.ZipFile, archive_name: str) -> zipfile.ZipInfo:
        """
        Locate the main KML entry.

        Priority:
        1. An entry named exactly doc.kml (KML convention)
        2. The first non-directory entry ending in .kml, in stored order

        Raises:
            NoKMLFoundError: If neither exists
        """
        entries = zf.infolist()

        for info in entries:
            if info.filename == self.MAIN_KML_NAME:
                return info

        kml_entries: List[zipfile.ZipInfo] = [
            info
            for info in entries
            if not info.is_dir() and info.filename.lower().endswith(".kml")
        ]
        logger.debug(f"KML files found in archive: {[info.filename for info in kml_entries]}")

        if not kml_entries:
            raise NoKMLFoundError(
                archive_name=archive_name,
                entries=[info.filename for info in entries],
            )

        logger.info(f"No doc.kml found, using first KML file: {kml_entries[0].filename}")
        return kml_entries[0]

    def _extract_images(self, zf: zipfile.ZipFile) -> Dict[str, str]:
        """
        Read image entries into data URIs.

        An image that fails to extract is logged and left out.
        """
        resources: Dict[str, str] = {}

        for info in zf.infolist():
            if info.is_dir() or not self._is_image(info.filename):
                continue

            try:
                data = zf.read(info)
            except ENTRY_READ_ERRORS as e:
                logger.warning(f"Failed to extract image {info.filename}: {e}")
                continue

            mime_type = mimetypes.guess_type(info.filename)[0] or "application/octet-stream"
            encoded = base64.b64encode(data).decode("ascii")
            resources[info.filename] = f"data:{mime_type};base64,{encoded}"

        if resources:
            logger.debug(f"Image files found in archive: {list(resources)}")
        return resources

    def _is_image(self, filename: str) -> bool:
        return filename.lower().endswith(tuple(ext.lower() for ext in self.settings.image_extensions))

    @staticmethod
    def _source_name(source: KMZSource) -> str:
        if isinstance(source, (str, Path)):
            return Path(source).name
        if isinstance(source, (bytes, bytearray)):
            return "<bytes>"
        return str(getattr(source, "name", "<stream>"))


def parse_kmz_file(file_path: Union[str, Path], settings: Optional[Settings] = None) -> Document:
    """
    Convenience function to parse a KMZ file.

    Args:
        file_path: Path to KMZ file
        settings: Optional settings

    Returns:
        Document
    """
    return KMZParser(settings=settings).parse(Path(file_path))


@log_async_performance()
async def parse_kmz_async(source: KMZSource, settings: Optional[Settings] = None) -> Document:
    """
    Convenience coroutine to parse a KMZ archive without blocking the event loop.

    Args:
        source: Path to the archive, its raw bytes, or a binary file object
        settings: Optional settings

    Returns:
        Document
    """
    return await KMZParser(settings=settings).parse_async(source)
