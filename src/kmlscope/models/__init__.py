"""
Data models and schemas.
"""

from .file_info import FileInfo, FileType, classify_file_type, format_file_size

__all__ = [
    "FileInfo",
    "FileType",
    "classify_file_type",
    "format_file_size",
]
