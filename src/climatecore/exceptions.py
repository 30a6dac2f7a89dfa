"""climatecore exception hierarchy.

All exceptions follow a three-part message pattern: what failed,
likely cause, and suggested fix. Errors that concern a unit of work
(a month, a region) carry that unit as attributes so callers can render
a precise message without re-deriving it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from climatecore.results import BoundingBox


class ClimateCoreError(Exception):
    """Base exception for all climatecore errors.

    Args:
        what: Description of what failed.
        cause: Likely cause of the failure.
        fix: Suggested action to resolve the issue.

    Example:
        >>> raise ClimateCoreError(
        ...     what="Operation failed",
        ...     cause="Unexpected internal state",
        ...     fix="Please report this issue",
        ... )
    """

    def __init__(
        self,
        what: str,
        cause: str = "",
        fix: str = "",
    ) -> None:
        """Initialize with structured error context.

        Args:
            what: Description of what failed.
            cause: Likely cause of the failure.
            fix: Suggested action to resolve the issue.
        """
        self.what = what
        self.cause = cause
        self.fix = fix
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Build the multi-line error message from parts.

        Returns:
            Formatted message with optional Cause and Fix lines.
        """
        parts = [self.what]
        if self.cause:
            parts.append(f"Cause: {self.cause}")
        if self.fix:
            parts.append(f"Fix: {self.fix}")
        return "\n".join(parts)


class ConfigurationError(ClimateCoreError):
    """Raised when a configuration file cannot be read or parsed.

    Example:
        >>> raise ConfigurationError(
        ...     what="Cannot read configuration file",
        ...     cause="File not found: ~/.climatecore/config.json",
        ...     fix="Create the file or unset CLIMATECORE_CONFIG",
        ... )
    """


class ValidationError(ClimateCoreError):
    """Raised for malformed input.

    Covers mismatched lengths, unordered timestamps, invalid bounding
    boxes, invalid percentile levels and non-positive animation speeds.
    Never raised for conditions with a documented fallback (for example a
    zero-variance trend).

    Example:
        >>> raise ValidationError(
        ...     what="Invalid animation speed: 0",
        ...     cause="Speed must be greater than 0",
        ...     fix="Pass a positive number of steps per second",
        ... )
    """


class InsufficientDataError(ClimateCoreError):
    """Raised when too few valid samples remain for a statistic.

    Args:
        what: Description of what failed.
        cause: Likely cause of the failure.
        fix: Suggested action to resolve the issue.
        sample_count: Number of valid samples that were available.
        month: Calendar month (1-12) the error applies to, if any.

    Example:
        >>> err = InsufficientDataError(
        ...     what="No valid samples for month 2",
        ...     sample_count=0,
        ...     month=2,
        ... )
        >>> err.month
        2
    """

    def __init__(
        self,
        what: str,
        cause: str = "",
        fix: str = "",
        *,
        sample_count: int = 0,
        month: int | None = None,
    ) -> None:
        self.sample_count = sample_count
        self.month = month
        super().__init__(what=what, cause=cause, fix=fix)


class EmptyRegionError(ClimateCoreError):
    """Raised when a spatial query selects no usable grid cells.

    Distinct from ``InsufficientDataError`` so callers can tell a region
    that misses the grid apart from a region with incomplete data.

    Args:
        what: Description of what failed.
        cause: Likely cause of the failure.
        fix: Suggested action to resolve the issue.
        bbox: The bounding box that was queried.
        cell_count: Number of cells whose center fell inside the box.
    """

    def __init__(
        self,
        what: str,
        cause: str = "",
        fix: str = "",
        *,
        bbox: BoundingBox | None = None,
        cell_count: int = 0,
    ) -> None:
        self.bbox = bbox
        self.cell_count = cell_count
        super().__init__(what=what, cause=cause, fix=fix)
