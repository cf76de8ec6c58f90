"""Tests for sensor.py."""

from __future__ import annotations

import pytest

pytest.importorskip("homeassistant")

from homeassistant.components.sensor import SensorDeviceClass, SensorStateClass
from homeassistant.const import UnitOfLength, UnitOfVolume

from custom_components.tank_calibration.const import DOMAIN
from custom_components.tank_calibration.sensor import (
    _build_sensors,
    TankCalculatedHeightSensor,
    TankCalibrationCountSensor,
    TankCapacitySensor,
    TankDistanceASensor,
    TankDistanceBSensor,
    TankUsefulHeightSensor,
)
from conftest import make_coordinator


class TestBuildSensors:
    """Tests for the sensor builder function."""

    def test_returns_all_sensors(self, mock_hass):
        """One of each sensor is built per tank."""
        sensors = _build_sensors(make_coordinator(mock_hass))
        assert [type(s) for s in sensors] == [
            TankCapacitySensor,
            TankCalculatedHeightSensor,
            TankDistanceBSensor,
            TankDistanceASensor,
            TankUsefulHeightSensor,
            TankCalibrationCountSensor,
        ]

    def test_unique_ids_are_distinct(self, mock_hass):
        """Each sensor has its own unique id based on the entry."""
        sensors = _build_sensors(make_coordinator(mock_hass))
        unique_ids = [s._attr_unique_id for s in sensors]
        assert len(set(unique_ids)) == len(sensors)
        assert all(uid.startswith("test_entry_id_") for uid in unique_ids)

    def test_device_info(self, mock_hass, horizontal_tank):
        """All sensors belong to one device per tank."""
        coord = make_coordinator(mock_hass, tank=horizontal_tank)
        sensor = TankCapacitySensor(coord)
        info = sensor._attr_device_info

        assert info["identifiers"] == {(DOMAIN, "test_entry_id")}
        assert info["name"] == "Tank tank_a"
        assert info["model"] == "Horizontal"


class TestCapacitySensor:
    """Tests for the capacity sensor."""

    def test_attributes(self, mock_hass):
        """Sensor reports liters as stored volume."""
        sensor = TankCapacitySensor(make_coordinator(mock_hass))
        assert sensor._attr_device_class == SensorDeviceClass.VOLUME_STORAGE
        assert sensor._attr_state_class == SensorStateClass.MEASUREMENT
        assert sensor._attr_native_unit_of_measurement == UnitOfVolume.LITERS

    def test_value_and_dimensions(self, mock_hass, rectangular_tank):
        """Capacity is the state; dimensions are attributes."""
        sensor = TankCapacitySensor(make_coordinator(mock_hass, tank=rectangular_tank))
        assert sensor.native_value == 120000
        attrs = sensor.extra_state_attributes
        assert attrs["shape"] == "rectangular"
        assert attrs["width_mm"] == 2500


class TestCalculatedHeightSensor:
    """Tests for the calculated height sensor."""

    def test_unknown_before_query(self, mock_hass):
        """No query means no value."""
        sensor = TankCalculatedHeightSensor(make_coordinator(mock_hass))
        assert sensor.native_value is None
        assert sensor.extra_state_attributes == {}

    def test_rounded_height_after_query(self, mock_hass):
        """The last query is shown in whole millimeters."""
        coord = make_coordinator(mock_hass)
        sensor = TankCalculatedHeightSensor(coord)
        coord.calculate_height(2500)

        assert sensor._attr_native_unit_of_measurement == UnitOfLength.MILLIMETERS
        assert sensor.native_value == 354
        assert sensor.extra_state_attributes == {"volume_liters": 2500}


class TestCalibrationSensors:
    """Tests for the sensors fed by the latest calibration."""

    def test_empty_session(self, mock_hass):
        """Before any calibration the distance sensors are unknown."""
        coord = make_coordinator(mock_hass)
        assert TankDistanceBSensor(coord).native_value is None
        assert TankDistanceASensor(coord).native_value is None
        assert TankDistanceASensor(coord).extra_state_attributes == {}
        assert TankUsefulHeightSensor(coord).native_value is None
        assert TankCalibrationCountSensor(coord).native_value == 0

    def test_values_after_save(self, mock_hass):
        """Distances reflect the latest saved record."""
        coord = make_coordinator(mock_hass)
        coord.save_calibration(3500, 500, useful_volume=2500, meter_code="VEGA-1")

        assert TankDistanceBSensor(coord).native_value == 4000
        assert TankDistanceASensor(coord).native_value == 4000 - 354
        assert TankDistanceASensor(coord).extra_state_attributes == {
            "inconsistent": False
        }
        useful = TankUsefulHeightSensor(coord)
        assert useful.native_value == 354
        assert useful.extra_state_attributes == {"useful_volume_liters": 2500}

    def test_negative_a_is_flagged(self, mock_hass):
        """A negative A is shown with the inconsistent flag."""
        coord = make_coordinator(mock_hass)
        coord.save_calibration(3500, 500, useful_height=4500)

        sensor = TankDistanceASensor(coord)
        assert sensor.native_value == -500
        assert sensor.extra_state_attributes == {"inconsistent": True}

    def test_count_sensor(self, mock_hass):
        """The count sensor tracks saved records and the latest one."""
        coord = make_coordinator(mock_hass)
        sensor = TankCalibrationCountSensor(coord)
        assert sensor.extra_state_attributes == {"file_base": "tank_a"}

        coord.save_calibration(3500, 500)
        record = coord.save_calibration(3000, 400, meter_code="VEGA-1")

        assert sensor.native_value == 2
        attrs = sensor.extra_state_attributes
        assert attrs["last_saved"] == record.created_at.isoformat()
        assert attrs["last_shape"] == "vertical"
        assert attrs["meter_code"] == "VEGA-1"
