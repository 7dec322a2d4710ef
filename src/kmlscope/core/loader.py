"""
Load a KML or KMZ file from disk.

The file kind is decided from the name alone and the matching parser is
run. Nothing is parsed until the whole file has been read.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Union

from kmlscope.core.config import Settings, settings as default_settings
from kmlscope.core.parsers.document import Document
from kmlscope.core.parsers.kml_parser import KMLParser
from kmlscope.core.parsers.kmz_parser import KMZParser
from kmlscope.models.file_info import FileInfo, FileType, classify_file_type
from kmlscope.utils.logging import log_async_performance

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadedFile:
    """
    A parsed file together with what is known about it.

    Attributes:
        filename: File name without directories
        file_size: Size in bytes
        file_type: KML or KMZ
        document: Parsed document
        resources: Image data URIs from a KMZ archive; empty for KML
    """

    filename: str
    file_size: int
    file_type: FileType
    document: Document
    resources: Dict[str, str] = field(default_factory=dict)

    @property
    def info(self) -> FileInfo:
        """Summary of the file and its document."""
        return FileInfo.from_document(
            self.filename,
            self.document,
            file_size=self.file_size,
            file_type=self.file_type,
        )


def load_file(file_path: Union[str, Path], settings: Optional[Settings] = None) -> LoadedFile:
    """
    Read and parse a KML or KMZ file.

    Args:
        file_path: Path to the file
        settings: Optional settings

    Returns:
        LoadedFile

    Raises:
        FileNotFoundError: If the file does not exist
        InvalidInputError: If a KML file is empty
        ContainerError: If a KMZ file is invalid
    """
    settings = settings or default_settings
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    data = file_path.read_bytes()
    file_type = classify_file_type(file_path.name)
    logger.info(f"Loading {file_type.value.upper()} file: {file_path.name} ({len(data)} bytes)")

    if file_type == FileType.KMZ:
        parser = KMZParser(settings=settings)
        archive = parser.unpack(data)
        document = KMLParser(settings=settings).parse(archive.kml_content)
        resources = dict(archive.resources)
    else:
        document = KMLParser(settings=settings).parse(data)
        resources = {}

    return LoadedFile(
        filename=file_path.name,
        file_size=len(data),
        file_type=file_type,
        document=document,
        resources=resources,
    )


@log_async_performance()
async def load_file_async(
    file_path: Union[str, Path], settings: Optional[Settings] = None
) -> LoadedFile:
    """
    Read and parse a KML or KMZ file in a worker thread.

    Args:
        file_path: Path to the file
        settings: Optional settings

    Returns:
        LoadedFile
    """
    return await asyncio.to_thread(load_file, file_path, settings)
