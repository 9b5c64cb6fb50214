# poifinder/core/errors.py
from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from ..providers.base import POISource
    from .workflow_types import SourceFailure


class POIFinderError(Exception):
    """Base class for every error raised by poifinder."""


class InvalidCoordinate(POIFinderError, ValueError):
    """A latitude/longitude outside the valid range. Input error, never retried."""

    def __init__(self, message: str, *, latitude: Optional[float] = None, longitude: Optional[float] = None):
        super().__init__(message)
        self.latitude = latitude
        self.longitude = longitude


class AdapterError(POIFinderError):
    """A single source adapter failed for one call."""

    def __init__(self, source: "POISource", message: str):
        super().__init__(f"{source.value}: {message}")
        self.source = source
        self.message = message


class AdapterTimeout(AdapterError):
    pass


class AdapterNetworkError(AdapterError):
    def __init__(self, source: "POISource", message: str, status_code: Optional[int] = None):
        super().__init__(source, message)
        self.status_code = status_code


class AdapterParseError(AdapterError):
    pass


class AllSourcesFailed(POIFinderError):
    """Every enabled adapter failed; `failures` holds one entry per source."""

    def __init__(self, failures: List["SourceFailure"]):
        causes = "; ".join(str(f.error) for f in failures)
        super().__init__(f"all {len(failures)} sources failed: {causes}")
        self.failures = list(failures)

    @property
    def causes(self) -> List[Exception]:
        return [f.error for f in self.failures]
