"""
Exceptions raised at the edges of the pipeline.

The layout core never raises; these cover input dispatch and the
extraction adapters.
"""

from typing import List, Tuple


class MdreconError(Exception):
    """Base class for all mdrecon errors."""


class UnsupportedFormatError(MdreconError):
    """No adapter accepts the given input."""

    def __init__(self, message: str = "No converter found for the given input"):
        super().__init__(message)


class FileConversionError(MdreconError):
    """An adapter accepted the input but failed while converting it."""

    def __init__(self, message: str, attempts: List[Tuple[str, Exception]] = None):
        super().__init__(message)
        self.attempts = attempts or []


class MissingDependencyError(MdreconError, ImportError):
    """An optional library needed for this input is not installed."""

    def __init__(self, dependency: str, message: str = None):
        super().__init__(message or f"Missing dependency: {dependency}")
        self.dependency = dependency
