"""
Custom exception hierarchy for the footage analyzer.

Only AnalysisError crosses the public boundary; the others are raised and
absorbed inside a single stage of the pipeline.
"""


class FootageAnalyzerError(Exception):
    """Base exception for all footage analyzer errors."""
    pass


class AnalysisError(FootageAnalyzerError):
    """Raised when a whole analysis run cannot complete (e.g. unreadable root)."""
    pass


class SidecarParseError(FootageAnalyzerError):
    """Raised when a descriptor file is not well-formed XML."""
    pass


class MetadataExtractionError(FootageAnalyzerError):
    """Raised when embedded metadata cannot be extracted from a file."""
    pass


class RegistryConflictError(FootageAnalyzerError):
    """Raised when two descriptors claim the same serial or video path under the 'reject' policy."""
    pass
