"""
Custom exception hierarchy for the photo importer.

Only InvalidRootError is allowed to abort a run; everything else is
raised for a single file and turned into a per-file outcome.
"""


class PhotoImporterError(Exception):
    """Base exception for all photo importer errors."""
    pass


class InvalidRootError(PhotoImporterError):
    """Raised when the source or destination root is missing or not a directory."""
    pass


class UnreadableDirectoryError(PhotoImporterError):
    """Raised when a directory cannot be listed."""
    pass


class MetadataExtractionError(PhotoImporterError):
    """Raised when metadata cannot be extracted from a file."""
    pass


class DateParseError(PhotoImporterError):
    """Raised when a date tag does not hold a usable YYYY:MM:DD HH:MM:SS value."""
    pass


class FileHashError(PhotoImporterError):
    """Raised when file hashing fails."""
    pass


class FileOperationError(PhotoImporterError):
    """Raised when file copy/move operations fail."""
    pass
