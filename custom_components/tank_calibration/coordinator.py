"""Coordinator for Tank Calibration data and updates."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator
from homeassistant.util import dt as dt_util
from homeassistant.util.ulid import ulid_now

from .calibration import (
    CalibrationRecord,
    CalibrationSession,
    distance_a,
    distance_b,
    resolve_useful_height,
)
from .const import DEFAULT_FILE_BASE, DEFAULT_TABLE_STEP, DOMAIN, MAX_TABLE_ROWS
from .formatting import (
    render_records_json,
    render_table_csv,
    round_half_up,
    sanitize_file_name,
)
from .geometry import (
    TankGeometry,
    calculate_height,
    diameter_from_perimeter,
    estimate_capacity,
)
from .table import VolumeHeightTable

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class TankCalibrationData:
    """Snapshot of calibration data for sensors."""

    shape: str
    capacity: int
    query_volume: float | None
    query_height: float | None
    record_count: int
    latest_record: CalibrationRecord | None


class TankCalibrationCoordinator(DataUpdateCoordinator[TankCalibrationData]):
    """Own one tank's geometry and the calibrations saved during this run."""

    def __init__(
        self,
        hass: HomeAssistant,
        tank: TankGeometry,
        file_base: str = DEFAULT_FILE_BASE,
        entry_id: str | None = None,
        config_entry: ConfigEntry | None = None,
    ) -> None:
        """Initialize the coordinator."""
        super().__init__(hass, _LOGGER, config_entry=config_entry, name=DOMAIN)

        self.hass = hass
        self.tank = tank
        self.file_base = sanitize_file_name(file_base)
        self.entry_id = entry_id

        self._session = CalibrationSession()
        self._query_volume: float | None = None
        self._query_height: float | None = None
        self._perimeter: float | None = None

        _LOGGER.debug(
            "Tank %s configured as %s, capacity %s L",
            self.file_base,
            tank,
            self.capacity,
        )
        self._publish()

    async def _async_update_data(self) -> TankCalibrationData:
        """Provide data for coordinator refresh requests."""
        self._publish()
        return self.data

    @property
    def capacity(self) -> int:
        """Estimated total capacity in liters."""
        return estimate_capacity(self.tank)

    @property
    def records(self) -> tuple[CalibrationRecord, ...]:
        """Saved calibrations, newest first."""
        return self._session.records

    def update_tank(self, tank: TankGeometry, file_base: str) -> None:
        """Switch to edited geometry; saved records keep their own snapshot."""
        self.tank = tank
        self.file_base = sanitize_file_name(file_base)
        self._query_volume = None
        self._query_height = None
        _LOGGER.info(
            "Tank %s updated to %s, capacity %s L", self.file_base, tank, self.capacity
        )
        self._publish()

    def calculate_height(self, volume: float) -> float:
        """Return the fill height (mm) for volume liters and publish it."""
        height = calculate_height(self.tank, volume)
        self._query_volume = volume
        self._query_height = height
        _LOGGER.debug("Height for %.2f L: %.2f mm", volume, height)
        self._publish()
        return height

    def generate_table(self, step: float | None = DEFAULT_TABLE_STEP) -> dict[str, Any]:
        """Build the volume/height table along with its CSV rendering.

        Each row is solved once. Raises ValueError when the step would produce
        more than MAX_TABLE_ROWS rows. Blocking; call it from the executor.
        """
        table = VolumeHeightTable(self.tank, step)
        if len(table) > MAX_TABLE_ROWS:
            raise ValueError(
                f"A step of {table.step} L gives {len(table)} rows; "
                f"at most {MAX_TABLE_ROWS} are allowed"
            )

        solved = list(table)
        _LOGGER.debug("Generated %s table rows for %r", len(solved), table)
        return {
            "file_name": f"{self.file_base}.csv",
            "rows": [
                {"volume": round_half_up(volume), "height": round_half_up(height)}
                for volume, height in solved
            ],
            "csv": render_table_csv(solved),
        }

    def diameter_from_perimeter(self, perimeter: float) -> float | None:
        """Derive the tank diameter from a measured outer perimeter."""
        diameter = diameter_from_perimeter(perimeter)
        if diameter is not None:
            self._perimeter = perimeter
        return diameter

    def save_calibration(
        self,
        product_height: float | None,
        sensor_distance: float | None,
        useful_height: float | None = None,
        useful_volume: float | None = None,
        meter_code: str | None = None,
    ) -> CalibrationRecord | None:
        """Compute A/B and add a record to the session.

        Returns None without saving when B cannot be computed.
        """
        b_mm = distance_b(product_height, sensor_distance)
        if b_mm is None:
            _LOGGER.warning(
                "Cannot save calibration for %s: product height and sensor "
                "distance are required",
                self.file_base,
            )
            return None

        h_useful = resolve_useful_height(self.tank, useful_height, useful_volume)
        a_mm = distance_a(b_mm, h_useful)

        now = dt_util.now()
        record = CalibrationRecord(
            record_id=ulid_now(),
            created_at=now,
            file_base=self.file_base,
            tank=self.tank,
            capacity=self.capacity,
            product_height=product_height,
            sensor_distance=sensor_distance,
            useful_height_input=useful_height,
            useful_volume_input=useful_volume,
            useful_height=h_useful,
            distance_b=b_mm,
            distance_a=a_mm,
            perimeter=self._perimeter,
            meter_code=meter_code or None,
        )
        self._session.add(record)

        if not record.is_consistent:
            _LOGGER.warning(
                "Calibration %s has negative distance A (%.0f mm); check the "
                "useful level against B (%.0f mm)",
                record.record_id,
                a_mm,
                b_mm,
            )

        _LOGGER.info(
            "Calibration saved for %s: B=%.0f mm, A=%s mm",
            self.file_base,
            b_mm,
            f"{a_mm:.0f}" if a_mm is not None else "n/a",
        )
        self._publish()
        return record

    def export_calibrations(self) -> dict[str, Any]:
        """Render all saved calibrations as JSON text."""
        return {
            "file_name": f"{self.file_base}.json",
            "count": len(self._session),
            "content": render_records_json(self._session),
        }

    def _publish(self) -> None:
        """Publish updated data to listeners."""
        data = TankCalibrationData(
            shape=self.tank.shape,
            capacity=self.capacity,
            query_volume=self._query_volume,
            query_height=self._query_height,
            record_count=len(self._session),
            latest_record=self._session.latest,
        )

        self.async_set_updated_data(data)
