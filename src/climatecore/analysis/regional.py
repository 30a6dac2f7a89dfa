"""Regional summary statistics over a latitude/longitude grid.

Cells are selected by their center coordinates. A bounding box whose
west edge exceeds its east edge spans the anti-meridian: a cell matches
when ``lon >= west`` or ``lon <= east``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Union

import numpy as np
import pydantic

from climatecore._types import GridData
from climatecore.analysis.percentiles import drop_missing, linear_percentiles, resolve_levels
from climatecore.config import Config, get_default_config
from climatecore.exceptions import EmptyRegionError, ValidationError
from climatecore.results import BoundingBox, RegionalStats

logger = logging.getLogger(__name__)

_NAMED_LEVELS: tuple[float, ...] = (10.0, 50.0, 90.0)

BBoxLike = Union[BoundingBox, Mapping[str, float], Sequence[float]]
"""A ``BoundingBox``, a ``{west, south, east, north}`` mapping, or a 4-tuple."""


def to_bbox(bbox: BBoxLike) -> BoundingBox:
    """Coerce *bbox* to a validated ``BoundingBox``.

    Sequences are read in ``(west, south, east, north)`` order.

    Raises:
        ValidationError: If the box is malformed (south >= north,
            west == east, coordinates out of range, wrong arity).
    """
    if isinstance(bbox, BoundingBox):
        return bbox
    try:
        if isinstance(bbox, Mapping):
            return BoundingBox.model_validate(dict(bbox))
        west, south, east, north = bbox
        return BoundingBox(west=west, south=south, east=east, north=north)
    except (pydantic.ValidationError, ValueError, TypeError) as exc:
        raise ValidationError(
            what=f"Invalid bounding box: {bbox!r}",
            cause=str(exc),
            fix="Pass west/south/east/north in degrees with south < north",
        ) from None


def normalize_longitudes(lons: np.ndarray) -> np.ndarray:
    """Map longitudes given in 0..360 onto [-180, 180]."""
    lons = np.asarray(lons, dtype=np.float64)
    return np.where(lons > 180.0, lons - 360.0, lons)


def _as_grid(grid: GridData | Mapping[str, Any]) -> GridData:
    data = grid if isinstance(grid, GridData) else GridData.from_payload(dict(grid))
    values = np.asarray(data.values, dtype=np.float64)
    expected = (len(data.lats), len(data.lons))
    if values.ndim != 2 or values.shape != expected:
        raise ValidationError(
            what="Grid values do not match coordinates",
            cause=f"values has shape {values.shape}, expected {expected} from lats x lons",
            fix="Provide values[i][j] for every lats[i], lons[j]",
        )
    return data


class RegionalSummarizer:
    """Reduces the cells of a grid inside a bounding box to summary statistics.

    Args:
        levels: Extra percentile levels to report; 10, 50 and 90 are
            always computed.
        sentinel: Missing-value sentinel; defaults to the configured
            ``missing_value_sentinel``.
        config: Configuration snapshot; defaults to the module default.
    """

    def __init__(
        self,
        levels: Sequence[float] | None = None,
        *,
        sentinel: float | None = None,
        config: Config | None = None,
    ) -> None:
        cfg = config if config is not None else get_default_config()
        requested = resolve_levels(levels, cfg)
        self.levels: tuple[float, ...] = tuple(sorted(set(requested) | set(_NAMED_LEVELS)))
        self.sentinel = cfg.missing_value_sentinel if sentinel is None else sentinel

    def select(self, grid: GridData | Mapping[str, Any], bbox: BBoxLike) -> np.ndarray:
        """Return the values of cells whose center lies in *bbox*.

        Missing values are kept; the result is 2-D
        ``(n_selected_lats, n_selected_lons)``.
        """
        data = _as_grid(grid)
        box = to_bbox(bbox)
        lats = np.asarray(data.lats, dtype=np.float64)
        lons = normalize_longitudes(data.lons)

        lat_sel = (lats >= box.south) & (lats <= box.north)
        if box.crosses_antimeridian:
            lon_sel = (lons >= box.west) | (lons <= box.east)
        else:
            lon_sel = (lons >= box.west) & (lons <= box.east)

        values = np.asarray(data.values, dtype=np.float64)
        return values[np.ix_(lat_sel, lon_sel)]

    def summarize(
        self,
        grid: GridData | Mapping[str, Any],
        bbox: BBoxLike,
        *,
        units: str | None = None,
    ) -> RegionalStats:
        """Compute mean, population std, min, max and percentiles in *bbox*.

        Args:
            grid: ``GridData`` or a ``{lats, lons, values}`` payload.
            bbox: Region of interest.
            units: Units label; defaults to the grid's own units.

        Raises:
            ValidationError: If the grid or box is malformed.
            EmptyRegionError: If no cell centers fall inside *bbox*, or
                every matched cell is missing.
        """
        data = _as_grid(grid)
        box = to_bbox(bbox)
        selected = self.select(data, box)
        cell_count = int(selected.size)

        if cell_count == 0:
            raise EmptyRegionError(
                what="No grid cells inside the bounding box",
                cause=(
                    f"bbox west={box.west}, south={box.south}, east={box.east}, "
                    f"north={box.north} contains no cell centers"
                ),
                fix="Enlarge the region or check it overlaps the dataset extent",
                bbox=box,
                cell_count=0,
            )

        valid = drop_missing(selected, self.sentinel)
        if valid.size == 0:
            raise EmptyRegionError(
                what="All grid cells inside the bounding box are missing",
                cause=f"{cell_count} cells matched but none holds a value",
                fix="Choose another time slice or region",
                bbox=box,
                cell_count=cell_count,
            )

        percentiles = dict(zip(self.levels, linear_percentiles(valid, self.levels)))
        logger.debug(
            "Summarised %d of %d cells in bbox (%s, %s, %s, %s)",
            valid.size,
            cell_count,
            box.west,
            box.south,
            box.east,
            box.north,
        )

        return RegionalStats(
            bbox=box,
            mean=float(np.mean(valid)),
            std=float(np.std(valid)),
            min=float(np.min(valid)),
            max=float(np.max(valid)),
            p10=percentiles[10.0],
            p50=percentiles[50.0],
            p90=percentiles[90.0],
            percentiles=percentiles,
            cell_count=cell_count,
            units=data.units if units is None else units,
        )


def summarize_region(
    grid: GridData | Mapping[str, Any],
    bbox: BBoxLike,
    *,
    levels: Sequence[float] | None = None,
    sentinel: float | None = None,
    units: str | None = None,
    config: Config | None = None,
) -> RegionalStats:
    """Summarise the grid cells inside *bbox*.

    Example:
        >>> grid = GridData(
        ...     lats=np.array([0.0]), lons=np.array([0.0]), values=np.array([[290.0]])
        ... )
        >>> summarize_region(grid, (-10, -10, 10, 10)).mean
        290.0
    """
    summarizer = RegionalSummarizer(levels, sentinel=sentinel, config=config)
    return summarizer.summarize(grid, bbox, units=units)
