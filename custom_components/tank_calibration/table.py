"""Volume-to-height calibration table."""

from __future__ import annotations

from collections.abc import Iterator
import math

from .const import DEFAULT_TABLE_STEP, MIN_TABLE_STEP
from .formatting import round_half_up
from .geometry import TankGeometry, calculate_height, estimate_capacity


def normalize_step(step: float | None) -> int:
    """Coerce a requested table step (liters) to a usable whole number.

    Missing, non-finite or zero steps fall back to the default. Anything else
    is rounded half up and kept at MIN_TABLE_STEP or more.
    """
    if step is None or not math.isfinite(step) or step == 0:
        return DEFAULT_TABLE_STEP
    return max(MIN_TABLE_STEP, round_half_up(step))


class VolumeHeightTable:
    """Finite, lazily evaluated (volume, height) rows from empty to capacity.

    Iterating twice walks the table twice; heights are computed on demand.
    """

    def __init__(self, tank: TankGeometry, step: float | None = DEFAULT_TABLE_STEP) -> None:
        self.tank = tank
        self.step = normalize_step(step)
        self.capacity = estimate_capacity(tank)

    def __iter__(self) -> Iterator[tuple[float, float]]:
        volume = 0
        while volume <= self.capacity:
            yield float(volume), calculate_height(self.tank, volume)
            volume += self.step

    def __len__(self) -> int:
        return self.capacity // self.step + 1

    def __repr__(self) -> str:
        return (
            f"VolumeHeightTable(shape={self.tank.shape!r}, step={self.step}, "
            f"capacity={self.capacity})"
        )
