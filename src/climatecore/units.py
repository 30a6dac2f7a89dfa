"""Temperature unit conversion for display.

Absolute temperatures convert with offsets; differences (trend slopes,
standard deviations, anomalies) convert with ``delta=True``, which applies
only the scale factor.
"""

from __future__ import annotations

from typing import Any, TypeVar

import numpy as np
import numpy.typing as npt

from climatecore.exceptions import ValidationError

_ABSOLUTE_ZERO_C: float = 273.15

_ALIASES: dict[str, str] = {
    "k": "K",
    "kelvin": "K",
    "c": "C",
    "°c": "C",
    "degc": "C",
    "deg_c": "C",
    "celsius": "C",
    "f": "F",
    "°f": "F",
    "degf": "F",
    "deg_f": "F",
    "fahrenheit": "F",
}

# (scale, offset) so that celsius = value * scale + offset
_TO_CELSIUS: dict[str, tuple[float, float]] = {
    "K": (1.0, -_ABSOLUTE_ZERO_C),
    "C": (1.0, 0.0),
    "F": (5.0 / 9.0, -32.0 * 5.0 / 9.0),
}

Number = TypeVar("Number", float, npt.NDArray[np.floating[Any]])


def canonical_unit(unit: str) -> str:
    """Return ``"K"``, ``"C"`` or ``"F"`` for a temperature unit label.

    Raises:
        ValidationError: If *unit* is not a known temperature unit.

    Example:
        >>> canonical_unit("degC")
        'C'
    """
    key = unit.strip().lower()
    try:
        return _ALIASES[key]
    except KeyError:
        raise ValidationError(
            what=f"Unknown temperature unit: {unit!r}",
            cause=f"Supported units: {sorted(set(_ALIASES.values()))}",
            fix="Use 'K', 'C' or 'F'",
        ) from None


def convert_temperature(
    value: Number,
    from_unit: str,
    to_unit: str,
    *,
    delta: bool = False,
) -> Number:
    """Convert a temperature (or temperature difference) between units.

    Args:
        value: Scalar or numpy array.
        from_unit: Source unit label.
        to_unit: Target unit label.
        delta: Treat *value* as a difference and skip offsets.

    Returns:
        Converted value, same type as the input.

    Example:
        >>> convert_temperature(273.15, "K", "C")
        0.0
        >>> round(convert_temperature(1.8, "F", "K", delta=True), 6)
        1.0
    """
    src = canonical_unit(from_unit)
    dst = canonical_unit(to_unit)
    if src == dst:
        return value

    scale_in, offset_in = _TO_CELSIUS[src]
    scale_out, offset_out = _TO_CELSIUS[dst]
    if delta:
        offset_in = offset_out = 0.0

    celsius = value * scale_in + offset_in
    result = (celsius - offset_out) / scale_out
    if isinstance(value, np.ndarray):
        return result
    return float(result)
