"""
Error types for the Control-M Migration Analyzer.

Fatal failures are raised as subclasses of ControlMAnalysisError so the CLI and
the query server can report them uniformly. Per-entity mapping defects inside a
catalog are not raised: the parser logs them and drops the entity.
"""

from pathlib import Path
from typing import Optional, Tuple, Union


class ControlMAnalysisError(Exception):
    """Base class for all analyzer errors."""


class CatalogIOError(ControlMAnalysisError):
    """Opening, reading or writing a file failed."""

    def __init__(self, path: Union[str, Path], message: str):
        self.path = str(path)
        super().__init__(f"{self.path}: {message}")


class CatalogParseError(ControlMAnalysisError):
    """The catalog is not well-formed XML."""

    def __init__(self, path: Optional[Union[str, Path]], message: str,
                 position: Optional[Tuple[int, int]] = None):
        self.path = str(path) if path is not None else None
        self.position = position
        location = self.path or "<memory>"
        if position:
            location += f" (line {position[0]}, column {position[1]})"
        super().__init__(f"Failed to parse {location}: {message}")


class CatalogStoreError(ControlMAnalysisError):
    """A catalog database operation failed."""
