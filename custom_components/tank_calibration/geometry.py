"""Geometry utilities for calibrated tanks.

Every function here is pure. Lengths come in millimeters, volumes go out in
liters, and conversion to meters happens internally. No rounding is applied
here; rounding must be done at output only.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import math
from typing import Any, Union

from .const import (
    BISECTION_HEIGHT_TOLERANCE,
    BISECTION_MAX_ITERATIONS,
    BISECTION_VOLUME_TOLERANCE,
    CONF_DIAMETER,
    CONF_LENGTH,
    CONF_SHAPE,
    CONF_TOTAL_HEIGHT,
    CONF_WIDTH,
    FULL_TANK_TOLERANCE,
    LITERS_PER_CUBIC_METER,
    MM_PER_METER,
    SHAPE_HORIZONTAL,
    SHAPE_RECTANGULAR,
    SHAPE_VERTICAL,
)


@dataclass(frozen=True)
class VerticalTank:
    """Upright cylinder."""

    diameter_mm: float
    total_height_mm: float

    shape = SHAPE_VERTICAL

    @property
    def max_height_mm(self) -> float:
        return self.total_height_mm

    @property
    def is_configured(self) -> bool:
        return self.diameter_mm > 0 and self.total_height_mm > 0

    def as_dict(self) -> dict[str, Any]:
        return {
            CONF_SHAPE: self.shape,
            CONF_DIAMETER: self.diameter_mm,
            CONF_TOTAL_HEIGHT: self.total_height_mm,
        }


@dataclass(frozen=True)
class HorizontalTank:
    """Cylinder lying on its side; a full cross-section is one diameter high."""

    diameter_mm: float
    length_mm: float

    shape = SHAPE_HORIZONTAL

    @property
    def max_height_mm(self) -> float:
        return self.diameter_mm

    @property
    def is_configured(self) -> bool:
        return self.diameter_mm > 0 and self.length_mm > 0

    def as_dict(self) -> dict[str, Any]:
        return {
            CONF_SHAPE: self.shape,
            CONF_DIAMETER: self.diameter_mm,
            CONF_LENGTH: self.length_mm,
        }


@dataclass(frozen=True)
class RectangularTank:
    """Box-shaped tank."""

    length_mm: float
    width_mm: float
    total_height_mm: float

    shape = SHAPE_RECTANGULAR

    @property
    def max_height_mm(self) -> float:
        return self.total_height_mm

    @property
    def is_configured(self) -> bool:
        return self.length_mm > 0 and self.width_mm > 0 and self.total_height_mm > 0

    def as_dict(self) -> dict[str, Any]:
        return {
            CONF_SHAPE: self.shape,
            CONF_LENGTH: self.length_mm,
            CONF_WIDTH: self.width_mm,
            CONF_TOTAL_HEIGHT: self.total_height_mm,
        }


TankGeometry = Union[VerticalTank, HorizontalTank, RectangularTank]


def _dimension(config: Mapping[str, Any], key: str) -> float:
    """Read a dimension, treating missing or non-numeric values as unset (0)."""
    value = config.get(key)
    if value is None:
        return 0.0
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    return value if math.isfinite(value) else 0.0


def tank_from_config(config: Mapping[str, Any]) -> TankGeometry:
    """Build the tank variant described by a config entry or record mapping.

    Raises ValueError for an unknown shape so an unsupported tank never
    reaches the solvers.
    """
    shape = config.get(CONF_SHAPE)

    if shape == SHAPE_VERTICAL:
        return VerticalTank(
            diameter_mm=_dimension(config, CONF_DIAMETER),
            total_height_mm=_dimension(config, CONF_TOTAL_HEIGHT),
        )
    if shape == SHAPE_HORIZONTAL:
        return HorizontalTank(
            diameter_mm=_dimension(config, CONF_DIAMETER),
            length_mm=_dimension(config, CONF_LENGTH),
        )
    if shape == SHAPE_RECTANGULAR:
        return RectangularTank(
            length_mm=_dimension(config, CONF_LENGTH),
            width_mm=_dimension(config, CONF_WIDTH),
            total_height_mm=_dimension(config, CONF_TOTAL_HEIGHT),
        )

    raise ValueError(f"Unsupported tank shape: {shape!r}")


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


# ---------------------------------------------------------------------------
# Forward solvers: height -> volume
# ---------------------------------------------------------------------------


def vertical_volume(diameter_mm: float, height_mm: float) -> float:
    """Liters held by an upright cylinder filled to height_mm."""
    if diameter_mm <= 0 or height_mm <= 0:
        return 0.0

    diameter = diameter_mm / MM_PER_METER
    height = height_mm / MM_PER_METER
    base_area = math.pi * diameter**2 / 4.0

    return base_area * height * LITERS_PER_CUBIC_METER


def rectangular_volume(length_mm: float, width_mm: float, height_mm: float) -> float:
    """Liters held by a box filled to height_mm."""
    if length_mm <= 0 or width_mm <= 0 or height_mm <= 0:
        return 0.0

    length = length_mm / MM_PER_METER
    width = width_mm / MM_PER_METER
    height = height_mm / MM_PER_METER

    return length * width * height * LITERS_PER_CUBIC_METER


def horizontal_volume(diameter_mm: float, length_mm: float, height_mm: float) -> float:
    """Liters held by a horizontal cylinder filled to height_mm.

    The wetted cross-section is a circular segment of the end disc.
    """
    if diameter_mm <= 0 or length_mm <= 0:
        return 0.0

    r = diameter_mm / MM_PER_METER / 2
    c = length_mm / MM_PER_METER
    h = _clamp(height_mm / MM_PER_METER, 0.0, 2 * r)

    if h <= 0:
        return 0.0

    if abs(h - 2 * r) < FULL_TANK_TOLERANCE:
        return math.pi * r**2 * c * LITERS_PER_CUBIC_METER

    # max() absorbs negative round-off near the top and bottom
    area = (
        r**2 * math.acos((r - h) / r)
        - (r - h) * math.sqrt(max(0.0, 2 * r * h - h**2))
    )

    return c * area * LITERS_PER_CUBIC_METER


def calculate_volume(tank: TankGeometry, height_mm: float) -> float:
    """Calculate liquid volume (liters) for a tank filled to height_mm.

    The height is clamped into the tank's [0, max height] range.
    """
    height_mm = _clamp(height_mm, 0.0, max(tank.max_height_mm, 0.0))

    if isinstance(tank, VerticalTank):
        return vertical_volume(tank.diameter_mm, height_mm)
    if isinstance(tank, HorizontalTank):
        return horizontal_volume(tank.diameter_mm, tank.length_mm, height_mm)
    if isinstance(tank, RectangularTank):
        return rectangular_volume(tank.length_mm, tank.width_mm, height_mm)

    raise TypeError(f"Unsupported tank geometry: {type(tank).__name__}")


# ---------------------------------------------------------------------------
# Inverse solvers: volume -> height
# ---------------------------------------------------------------------------


def _height_from_base_area(
    volume_l: float, base_area_m2: float, max_height_mm: float
) -> float:
    if base_area_m2 <= 0 or max_height_mm <= 0:
        return 0.0

    height = (volume_l / LITERS_PER_CUBIC_METER) / base_area_m2
    return _clamp(height * MM_PER_METER, 0.0, max_height_mm)


def vertical_height(diameter_mm: float, total_height_mm: float, volume_l: float) -> float:
    """Fill height (mm) of an upright cylinder holding volume_l."""
    if diameter_mm <= 0:
        return 0.0

    base_area = math.pi * (diameter_mm / MM_PER_METER) ** 2 / 4.0
    return _height_from_base_area(volume_l, base_area, total_height_mm)


def rectangular_height(
    length_mm: float, width_mm: float, total_height_mm: float, volume_l: float
) -> float:
    """Fill height (mm) of a box holding volume_l."""
    if length_mm <= 0 or width_mm <= 0:
        return 0.0

    base_area = (length_mm / MM_PER_METER) * (width_mm / MM_PER_METER)
    return _height_from_base_area(volume_l, base_area, total_height_mm)


def horizontal_height(
    diameter_mm: float,
    length_mm: float,
    volume_l: float,
    tolerance_mm: float = BISECTION_HEIGHT_TOLERANCE,
) -> float:
    """Fill height (mm) of a horizontal cylinder holding volume_l.

    There is no closed form, so the height is bisected over [0, diameter].
    Each iteration stops early when the volume is within
    BISECTION_VOLUME_TOLERANCE of the target, and separately when the
    bracket has shrunk below tolerance_mm. Volumes outside the tank
    saturate at the bracket ends.
    """
    if diameter_mm <= 0 or length_mm <= 0:
        return 0.0

    low, high, mid = 0.0, diameter_mm, 0.0

    for _ in range(BISECTION_MAX_ITERATIONS):
        mid = (low + high) / 2
        volume = horizontal_volume(diameter_mm, length_mm, mid)

        if abs(volume - volume_l) <= BISECTION_VOLUME_TOLERANCE:
            break

        if volume < volume_l:
            low = mid
        else:
            high = mid

        if high - low < tolerance_mm:
            break

    return _clamp(mid, 0.0, diameter_mm)


def calculate_height(tank: TankGeometry, volume_l: float) -> float:
    """Calculate fill height (mm) for a tank holding volume_l liters."""
    if isinstance(tank, VerticalTank):
        return vertical_height(tank.diameter_mm, tank.total_height_mm, volume_l)
    if isinstance(tank, HorizontalTank):
        return horizontal_height(tank.diameter_mm, tank.length_mm, volume_l)
    if isinstance(tank, RectangularTank):
        return rectangular_height(
            tank.length_mm, tank.width_mm, tank.total_height_mm, volume_l
        )

    raise TypeError(f"Unsupported tank geometry: {type(tank).__name__}")


# ---------------------------------------------------------------------------
# Derived quantities
# ---------------------------------------------------------------------------


def estimate_capacity(tank: TankGeometry) -> int:
    """Total capacity in whole liters, or 0 while the tank is not configured."""
    if not tank.is_configured:
        return 0
    return int(round(calculate_volume(tank, tank.max_height_mm)))


def diameter_from_perimeter(perimeter_mm: float | None) -> float | None:
    """Diameter (mm) of a cylinder with the given outer perimeter."""
    if perimeter_mm is None or not math.isfinite(perimeter_mm) or perimeter_mm <= 0:
        return None
    return perimeter_mm / math.pi
