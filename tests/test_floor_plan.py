# ABOUTME: Tests for the building model with per-floor room/exit topology
# ABOUTME: Validates JSON loading, room vs exit lookups and definition validation

import json
import tempfile
from pathlib import Path
import pytest
from pydantic import ValidationError
from safeexit.floor_plan import BuildingModel, UnknownFloorError


def _floor(rooms, exits, edges):
    return {
        "floors": {
            "GF": {
                "note": "test",
                "rooms": [{"id": r, "label": r.title()} for r in rooms],
                "exits": [{"id": e, "label": e.upper()} for e in exits],
                "edges": edges,
            }
        }
    }


def test_building_loads_from_json():
    """Test BuildingModel loads configuration from JSON file"""
    config = _floor(["lobby", "office"], ["exit1"], [["lobby", "office", 1], ["lobby", "exit1", 1]])

    with tempfile.NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
        json.dump(config, f)
        config_path = f.name

    try:
        model = BuildingModel(config_path)
        floor = model.get_floor_definition("GF")
        assert floor.node_ids() == ["lobby", "office", "exit1"]
        assert floor.label("lobby") == "Lobby"
        assert floor.edges == (("lobby", "office", 1), ("lobby", "exit1", 1))
    finally:
        Path(config_path).unlink()


def test_missing_config_gives_empty_building():
    model = BuildingModel("does/not/exist.json")
    assert model.floor_ids() == []


def test_bundled_building_has_all_floors(building):
    assert building.floor_ids() == ["GF", "F1", "F2", "F3", "B"]


def test_ground_floor_lookups(ground_floor):
    """Test room and exit ids are told apart"""
    assert ground_floor.exit_ids() == ["exitA", "exitB"]
    assert ground_floor.is_exit("exitA")
    assert not ground_floor.is_room("exitA")
    assert ground_floor.is_room("kitchen")
    assert not ground_floor.is_exit("kitchen")
    assert ground_floor.has_node("stairGF")
    assert not ground_floor.has_node("lobby1")
    assert ground_floor.is_stair("stairGF")
    assert not ground_floor.is_stair("kitchen")
    assert ground_floor.label("unknown") == "unknown"


def test_selectable_rooms_skip_stairs(ground_floor):
    ids = [r.id for r in ground_floor.selectable_rooms()]
    assert "stairGF" not in ids
    assert ids[0] == "entrance"
    assert len(ids) == 6


def test_unknown_floor_raises(building):
    with pytest.raises(UnknownFloorError):
        building.get_floor_definition("F9")
    with pytest.raises(KeyError):
        building.get_floor_definition("F9")


def test_rejects_edge_to_undeclared_node():
    config = _floor(["lobby"], ["exit1"], [["lobby", "ghost", 1]])
    with pytest.raises(ValidationError):
        BuildingModel.from_dict(config)


def test_rejects_non_positive_weight():
    config = _floor(["lobby"], ["exit1"], [["lobby", "exit1", 0]])
    with pytest.raises(ValidationError):
        BuildingModel.from_dict(config)


def test_rejects_shared_room_and_exit_id():
    config = _floor(["lobby"], ["lobby"], [])
    with pytest.raises(ValidationError):
        BuildingModel.from_dict(config)


def test_floor_definition_is_immutable(ground_floor):
    with pytest.raises(Exception):
        ground_floor.note = "changed"
