import pytest
from unittest.mock import MagicMock
from safeexit.floor_plan import BuildingModel
from safeexit.hazards import HazardStore
from safeexit.app_state import EvacuationState


@pytest.fixture
def building():
    """Bundled five-floor building definition"""
    return BuildingModel.load()


@pytest.fixture
def ground_floor(building):
    return building.get_floor_definition("GF")


@pytest.fixture
def store():
    return HazardStore()


@pytest.fixture
def state(building, store):
    return EvacuationState(building, "GF", store)


@pytest.fixture
def mock_mqtt_client():
    """Mock MQTT client for testing"""
    client = MagicMock()
    client.publish = MagicMock()
    client.subscribe = MagicMock()
    return client


@pytest.fixture
def weighted_building():
    """Small floor with uneven weights: short hop count is not the cheapest path"""
    return BuildingModel.from_dict(
        {
            "floors": {
                "W": {
                    "note": "weighted",
                    "rooms": [
                        {"id": "a", "label": "A"},
                        {"id": "b", "label": "B"},
                        {"id": "c", "label": "C"},
                        {"id": "d", "label": "D"},
                    ],
                    "exits": [
                        {"id": "x1", "label": "Exit 1"},
                        {"id": "x2", "label": "Exit 2"},
                    ],
                    "edges": [
                        ["a", "x1", 10],
                        ["a", "b", 1],
                        ["b", "c", 1],
                        ["c", "x1", 1],
                        ["a", "d", 2],
                        ["d", "x2", 5],
                    ],
                }
            }
        }
    )
