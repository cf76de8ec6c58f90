"""Level sensor mounting distances (A/B) and calibration records."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime
import math
from typing import Any

from .geometry import TankGeometry, calculate_height, tank_from_config


def _valid_length(value: float | None) -> bool:
    return value is not None and math.isfinite(value) and value >= 0


def distance_b(
    product_height_mm: float | None, sensor_distance_mm: float | None
) -> float | None:
    """Distance B: measured product height plus sensor-to-product distance.

    Returns None unless both measurements are present and non-negative.
    """
    if not (_valid_length(product_height_mm) and _valid_length(sensor_distance_mm)):
        return None
    return product_height_mm + sensor_distance_mm


def resolve_useful_height(
    tank: TankGeometry,
    useful_height_mm: float | None = None,
    useful_volume_l: float | None = None,
) -> float | None:
    """Useful level as a height; a direct height wins over a volume."""
    if _valid_length(useful_height_mm):
        return useful_height_mm
    if _valid_length(useful_volume_l):
        return calculate_height(tank, useful_volume_l)
    return None


def distance_a(b_mm: float | None, useful_height_mm: float | None) -> float | None:
    """Distance A = B - useful height.

    A negative result is returned as-is; it means the inputs disagree and
    flagging it is up to the caller.
    """
    if b_mm is None or useful_height_mm is None:
        return None
    a_mm = b_mm - useful_height_mm
    return a_mm if math.isfinite(a_mm) else None


@dataclass(frozen=True)
class CalibrationRecord:
    """Snapshot of one saved calibration. Never modified after creation."""

    record_id: str
    created_at: datetime
    file_base: str
    tank: TankGeometry
    capacity: int
    product_height: float | None
    sensor_distance: float | None
    useful_height_input: float | None
    useful_volume_input: float | None
    useful_height: float | None
    distance_b: float | None
    distance_a: float | None
    perimeter: float | None = None
    meter_code: str | None = None

    @property
    def is_consistent(self) -> bool:
        """False when distance A came out negative."""
        return self.distance_a is None or self.distance_a >= 0

    def as_dict(self) -> dict[str, Any]:
        """Serialize to plain JSON types."""
        return {
            "id": self.record_id,
            "created_at": self.created_at.isoformat(),
            "file_base": self.file_base,
            "tank": self.tank.as_dict(),
            "perimeter_mm": self.perimeter,
            "calculations": {
                "capacity_l": self.capacity,
                "product_height_mm": self.product_height,
                "sensor_distance_mm": self.sensor_distance,
                "useful_height_input_mm": self.useful_height_input,
                "useful_volume_input_l": self.useful_volume_input,
                "useful_height_mm": self.useful_height,
                "distance_b_mm": self.distance_b,
                "distance_a_mm": self.distance_a,
            },
            "meter": {"code": self.meter_code},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CalibrationRecord:
        """Rebuild a record from as_dict() output."""
        calculations = data.get("calculations") or {}
        meter = data.get("meter") or {}
        return cls(
            record_id=data["id"],
            created_at=datetime.fromisoformat(data["created_at"]),
            file_base=data.get("file_base", ""),
            tank=tank_from_config(data["tank"]),
            capacity=calculations.get("capacity_l", 0),
            product_height=calculations.get("product_height_mm"),
            sensor_distance=calculations.get("sensor_distance_mm"),
            useful_height_input=calculations.get("useful_height_input_mm"),
            useful_volume_input=calculations.get("useful_volume_input_l"),
            useful_height=calculations.get("useful_height_mm"),
            distance_b=calculations.get("distance_b_mm"),
            distance_a=calculations.get("distance_a_mm"),
            perimeter=data.get("perimeter_mm"),
            meter_code=meter.get("code"),
        )


@dataclass
class CalibrationSession:
    """Records saved during one run, newest first.

    Records are only ever added at the head; existing ones are never edited
    or removed.
    """

    _records: list[CalibrationRecord] = field(default_factory=list)

    def add(self, record: CalibrationRecord) -> None:
        self._records.insert(0, record)

    @property
    def records(self) -> tuple[CalibrationRecord, ...]:
        return tuple(self._records)

    @property
    def latest(self) -> CalibrationRecord | None:
        return self._records[0] if self._records else None

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[CalibrationRecord]:
        return iter(tuple(self._records))
