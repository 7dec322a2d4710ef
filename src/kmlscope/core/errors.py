"""
Custom exception hierarchy for kmlscope.

Only failures that leave nothing to parse reach the caller: empty input,
a broken container or a container without a KML document. Finer-grained
problems (a bad placemark, a bad style, a bad coordinate tuple) are logged
and absorbed by the parsers.
"""

from typing import Any, Dict, List, Optional


class KmlScopeException(Exception):
    """
    Base exception for all kmlscope-specific errors.

    Attributes:
        error_code: String identifier for the error type
        message: User-friendly error message
        details: Technical details for logging/debugging
        suggestions: Optional list of resolution suggestions
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize KmlScopeException.

        Args:
            message: User-friendly error message
            error_code: String identifier for the error type
            details: Technical details for logging
            suggestions: List of suggestions for resolution
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.suggestions = suggestions or []

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to a dictionary.

        Returns:
            Dictionary representation of the error
        """
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "suggestions": self.suggestions,
        }

    def __str__(self) -> str:
        """String representation of the exception."""
        return f"{self.error_code}: {self.message}"

    def __repr__(self) -> str:
        """Detailed string representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"error_code='{self.error_code}', "
            f"message='{self.message}')"
        )


class InvalidInputError(KmlScopeException):
    """
    Raised when the document text is absent, empty or not text.

    There is nothing to salvage in this case, so no fallback is attempted.
    """

    def __init__(
        self,
        message: str,
        input_type: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize InvalidInputError.

        Args:
            message: User-friendly error message
            input_type: Name of the type that was received
            details: Technical details about the input
            suggestions: List of suggestions for fixing the input
        """
        error_details = dict(details or {})
        if input_type:
            error_details["input_type"] = input_type

        super().__init__(
            message=message,
            error_code="INVALID_INPUT",
            details=error_details,
            suggestions=suggestions or ["Provide non-empty KML text"],
        )


class ContainerError(KmlScopeException):
    """
    Raised when a KMZ container cannot be opened or read.

    Used for non-ZIP input, corrupt archives and archives that exceed the
    configured size limits. There is no salvage path for these failures.
    """

    def __init__(
        self,
        message: str,
        archive_name: Optional[str] = None,
        error_code: str = "CONTAINER_ERROR",
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize ContainerError.

        Args:
            message: User-friendly error message
            archive_name: Name of the archive being unpacked
            error_code: Specific container error code
            details: Technical details about the container failure
            suggestions: List of suggestions for fixing the archive
        """
        error_details = dict(details or {})
        if archive_name:
            error_details["archive_name"] = archive_name

        default_suggestions = [
            "Verify the file is a valid KMZ (ZIP) archive",
            "Try re-exporting the file from Google Earth",
        ]

        super().__init__(
            message=message,
            error_code=error_code,
            details=error_details,
            suggestions=suggestions or default_suggestions,
        )


class NoKMLFoundError(ContainerError):
    """Raised when a KMZ archive contains no KML document."""

    def __init__(
        self,
        message: str = "No KML file found in the KMZ archive",
        archive_name: Optional[str] = None,
        entries: Optional[List[str]] = None,
    ):
        """
        Initialize NoKMLFoundError.

        Args:
            message: User-friendly error message
            archive_name: Name of the archive being unpacked
            entries: Entry names that were present in the archive
        """
        details: Dict[str, Any] = {}
        if entries is not None:
            details["entries"] = entries

        super().__init__(
            message=message,
            archive_name=archive_name,
            error_code="NO_KML_FOUND",
            details=details,
            suggestions=["Make sure the archive contains a doc.kml or another .kml file"],
        )


class GeometryError(KmlScopeException):
    """
    Raised when an element cannot be converted to a shapely geometry.

    Parsing itself never raises this; it only comes from interop helpers.
    """

    def __init__(
        self,
        message: str,
        geometry_type: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize GeometryError.

        Args:
            message: User-friendly error message
            geometry_type: Type of geometry that caused the error
            details: Technical details about the geometry error
            suggestions: List of suggestions for fixing the geometry
        """
        error_details = dict(details or {})
        if geometry_type:
            error_details["geometry_type"] = geometry_type

        super().__init__(
            message=message,
            error_code="GEOMETRY_ERROR",
            details=error_details,
            suggestions=suggestions or ["Verify geometry coordinates are valid"],
        )


class ConfigurationError(KmlScopeException):
    """
    Raised when application configuration is invalid.

    Used for missing environment variables, invalid settings, or
    configuration validation failures.
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize ConfigurationError.

        Args:
            message: User-friendly error message
            config_key: Configuration key that is invalid
            details: Technical details about the configuration error
            suggestions: List of suggestions for resolution
        """
        error_details = dict(details or {})
        if config_key:
            error_details["config_key"] = config_key

        default_suggestions = [
            "Check KMLSCOPE_* environment variables are set correctly",
            "Verify .env file syntax",
        ]

        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            details=error_details,
            suggestions=suggestions or default_suggestions,
        )
