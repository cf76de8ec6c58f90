"""Shared fixtures for tank calibration tests."""

from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Ensure custom_components is importable
project_root = Path(__file__).resolve().parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from custom_components.tank_calibration.geometry import (
    HorizontalTank,
    RectangularTank,
    VerticalTank,
)


@pytest.fixture
def vertical_tank():
    """3 m wide, 6 m tall upright cylinder."""
    return VerticalTank(diameter_mm=3000, total_height_mm=6000)


@pytest.fixture
def horizontal_tank():
    """3 m wide, 8 m long horizontal cylinder."""
    return HorizontalTank(diameter_mm=3000, length_mm=8000)


@pytest.fixture
def rectangular_tank():
    """8 m x 2.5 m x 6 m box."""
    return RectangularTank(length_mm=8000, width_mm=2500, total_height_mm=6000)


@pytest.fixture
def mock_hass():
    """Create a mocked HomeAssistant instance."""
    hass = MagicMock()
    hass.states.get.return_value = None
    hass.async_create_task.return_value = None
    hass.data = {}
    return hass


def make_coordinator(
    mock_hass,
    tank=None,
    file_base="tank_a",
    entry_id="test_entry_id",
):
    """Create a TankCalibrationCoordinator with a mocked hass."""
    from custom_components.tank_calibration.coordinator import (
        TankCalibrationCoordinator,
    )

    if tank is None:
        tank = VerticalTank(diameter_mm=3000, total_height_mm=6000)

    return TankCalibrationCoordinator(
        mock_hass,
        tank=tank,
        file_base=file_base,
        entry_id=entry_id,
    )
