"""Sensor platform for Tank Calibration."""

from __future__ import annotations

import logging
from typing import Any

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorStateClass,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import UnitOfLength, UnitOfVolume
from homeassistant.core import HomeAssistant
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .calibration import CalibrationRecord
from .const import DOMAIN
from .coordinator import TankCalibrationCoordinator
from .formatting import round_half_up

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the sensor platform from a config entry."""
    coordinator = hass.data[DOMAIN].get(entry.entry_id)

    if not isinstance(coordinator, TankCalibrationCoordinator):
        _LOGGER.error("No coordinator found for entry %s", entry.entry_id)
        return

    async_add_entities(_build_sensors(coordinator))


def _build_sensors(coordinator: TankCalibrationCoordinator) -> list[SensorEntity]:
    """Create all sensors for one tank."""
    return [
        TankCapacitySensor(coordinator),
        TankCalculatedHeightSensor(coordinator),
        TankDistanceBSensor(coordinator),
        TankDistanceASensor(coordinator),
        TankUsefulHeightSensor(coordinator),
        TankCalibrationCountSensor(coordinator),
    ]


class TankCalibrationSensor(CoordinatorEntity[TankCalibrationCoordinator], SensorEntity):
    """Base class for Tank Calibration sensors."""

    _attr_has_entity_name = True

    def __init__(self, coordinator: TankCalibrationCoordinator, key: str) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator)
        entry_key = coordinator.entry_id or coordinator.file_base
        self._attr_unique_id = f"{entry_key}_{key}"
        self._attr_device_info = DeviceInfo(
            identifiers={(DOMAIN, entry_key)},
            name=f"Tank {coordinator.file_base}",
            manufacturer="Tank Calibration",
            model=coordinator.tank.shape.capitalize(),
        )

    @property
    def _latest_record(self) -> CalibrationRecord | None:
        data = self.coordinator.data
        return data.latest_record if data else None


class TankCapacitySensor(TankCalibrationSensor):
    """Sensor for the estimated total tank capacity."""

    _attr_name = "Capacity"
    _attr_device_class = SensorDeviceClass.VOLUME_STORAGE
    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_native_unit_of_measurement = UnitOfVolume.LITERS
    _attr_icon = "mdi:storage-tank"

    def __init__(self, coordinator: TankCalibrationCoordinator) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, "capacity")

    @property
    def native_value(self) -> int | None:
        """Return the state of the sensor."""
        if self.coordinator.data is None:
            return None
        return self.coordinator.data.capacity

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return the tank dimensions."""
        return dict(self.coordinator.tank.as_dict())


class TankCalculatedHeightSensor(TankCalibrationSensor):
    """Sensor for the height of the last volume query."""

    _attr_name = "Calculated height"
    _attr_device_class = SensorDeviceClass.DISTANCE
    _attr_native_unit_of_measurement = UnitOfLength.MILLIMETERS
    _attr_icon = "mdi:arrow-expand-vertical"

    def __init__(self, coordinator: TankCalibrationCoordinator) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, "calculated_height")

    @property
    def native_value(self) -> int | None:
        """Return the state of the sensor."""
        data = self.coordinator.data
        if data is None or data.query_height is None:
            return None
        return round_half_up(data.query_height)

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return the queried volume."""
        data = self.coordinator.data
        if data is None or data.query_volume is None:
            return {}
        return {"volume_liters": data.query_volume}


class TankDistanceBSensor(TankCalibrationSensor):
    """Sensor for distance B of the latest calibration."""

    _attr_name = "Distance B"
    _attr_device_class = SensorDeviceClass.DISTANCE
    _attr_native_unit_of_measurement = UnitOfLength.MILLIMETERS
    _attr_icon = "mdi:arrow-collapse-down"

    def __init__(self, coordinator: TankCalibrationCoordinator) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, "distance_b")

    @property
    def native_value(self) -> int | None:
        """Return the state of the sensor."""
        record = self._latest_record
        if record is None or record.distance_b is None:
            return None
        return round_half_up(record.distance_b)


class TankDistanceASensor(TankCalibrationSensor):
    """Sensor for distance A of the latest calibration.

    A negative value is shown as-is and flagged through the ``inconsistent``
    attribute.
    """

    _attr_name = "Distance A"
    _attr_device_class = SensorDeviceClass.DISTANCE
    _attr_native_unit_of_measurement = UnitOfLength.MILLIMETERS
    _attr_icon = "mdi:arrow-collapse-up"

    def __init__(self, coordinator: TankCalibrationCoordinator) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, "distance_a")

    @property
    def native_value(self) -> int | None:
        """Return the state of the sensor."""
        record = self._latest_record
        if record is None or record.distance_a is None:
            return None
        return round_half_up(record.distance_a)

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return whether the inputs disagree."""
        record = self._latest_record
        if record is None:
            return {}
        return {"inconsistent": not record.is_consistent}


class TankUsefulHeightSensor(TankCalibrationSensor):
    """Sensor for the useful level height of the latest calibration."""

    _attr_name = "Useful height"
    _attr_device_class = SensorDeviceClass.DISTANCE
    _attr_native_unit_of_measurement = UnitOfLength.MILLIMETERS
    _attr_icon = "mdi:waves-arrow-up"

    def __init__(self, coordinator: TankCalibrationCoordinator) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, "useful_height")

    @property
    def native_value(self) -> int | None:
        """Return the state of the sensor."""
        record = self._latest_record
        if record is None or record.useful_height is None:
            return None
        return round_half_up(record.useful_height)

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return the useful volume when the level was given as a volume."""
        record = self._latest_record
        if record is None or record.useful_volume_input is None:
            return {}
        return {"useful_volume_liters": record.useful_volume_input}


class TankCalibrationCountSensor(TankCalibrationSensor):
    """Sensor for the number of calibrations saved this session."""

    _attr_name = "Saved calibrations"
    _attr_state_class = SensorStateClass.MEASUREMENT
    _attr_icon = "mdi:clipboard-list-outline"

    def __init__(self, coordinator: TankCalibrationCoordinator) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, "calibration_count")

    @property
    def native_value(self) -> int:
        """Return the state of the sensor."""
        data = self.coordinator.data
        return data.record_count if data else 0

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return a summary of the latest calibration."""
        attrs: dict[str, Any] = {"file_base": self.coordinator.file_base}

        record = self._latest_record
        if record:
            attrs["last_saved"] = record.created_at.isoformat()
            attrs["last_shape"] = record.tank.shape
            if record.meter_code:
                attrs["meter_code"] = record.meter_code

        return attrs
