# ABOUTME: Pydantic models for building definitions and hazard update messages
# ABOUTME: Validates floor topology on load and converts alarm events to hazards

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, Dict, List, Literal, Tuple
from datetime import datetime
from safeexit.hazards import HazardKind


class RoomSpec(BaseModel):
    """A room on a floor, placed on the 3x3 layout grid"""

    id: str
    label: str
    col: int = 0
    row: int = 0
    is_stair: bool = Field(default=False, alias="isStair")

    model_config = {"populate_by_name": True, "frozen": True}


class ExitSpec(BaseModel):
    """An exit on a floor edge"""

    id: str
    label: str
    side: Literal["top", "bottom", "left", "right"] = "bottom"
    col: int = 0

    model_config = {"frozen": True}


class FloorSpec(BaseModel):
    note: str = ""
    rooms: List[RoomSpec]
    exits: List[ExitSpec]
    edges: List[Tuple[str, str, int]]

    model_config = {"frozen": True}

    @field_validator("edges")
    @classmethod
    def _positive_weights(cls, edges):
        for a, b, weight in edges:
            if weight <= 0:
                raise ValueError(f"Edge {a}-{b} has non-positive weight {weight}")
        return edges

    @model_validator(mode="after")
    def _check_topology(self):
        room_ids = [r.id for r in self.rooms]
        exit_ids = [e.id for e in self.exits]
        all_ids = room_ids + exit_ids
        if len(set(all_ids)) != len(all_ids):
            raise ValueError("Room and exit ids must be unique within a floor")

        known = set(all_ids)
        for a, b, _ in self.edges:
            for endpoint in (a, b):
                if endpoint not in known:
                    raise ValueError(f"Edge endpoint {endpoint!r} is not a declared node")
        return self


class BuildingSpec(BaseModel):
    floors: Dict[str, FloorSpec]


class HazardUpdate(BaseModel):
    """Hazard change requested through the dashboard"""

    node_id: str
    hazard: HazardKind = HazardKind.CLEAR
    floor_id: Optional[str] = None

    @field_validator("hazard", mode="before")
    @classmethod
    def _parse_hazard(cls, value):
        return HazardKind.parse(value)


ALARM_SUFFIXES = {
    "smoke": HazardKind.SMOKE,
    "fire": HazardKind.FIRE,
    "heat": HazardKind.FIRE,
    "flame": HazardKind.FIRE,
    "door": HazardKind.CLOSED,
    "lock": HazardKind.CLOSED,
    "obstruction": HazardKind.BLOCKED,
}


class HazardMessage(BaseModel):
    """Hazard event received over MQTT"""

    ts: str
    floor_id: str
    node_id: str
    hazard: HazardKind = HazardKind.CLEAR
    source: str = "sensor"

    @field_validator("hazard", mode="before")
    @classmethod
    def _parse_hazard(cls, value):
        return HazardKind.parse(value)

    @classmethod
    def from_alarm(cls, msg: Dict, zone_map: Dict) -> "HazardMessage":
        """Convert a Home Assistant alarm event to a hazard message.

        The entity name suffix picks the hazard kind (binary_sensor.kitchen_smoke
        -> smoke). A to_state of "off" clears the node. The area is mapped to a
        node id through zone_map, falling back to the area name itself.
        """
        entity_id = msg.get("entity_id", "")
        if not isinstance(entity_id, str):
            raise ValueError(f"Alarm entity_id must be a string: {entity_id!r}")
        entity_name = entity_id.split(".")[-1]
        kind = None
        for suffix, hazard in ALARM_SUFFIXES.items():
            if entity_name.endswith(suffix):
                kind = hazard
                break
        if kind is None:
            raise ValueError(f"Unrecognised alarm entity: {entity_id!r}")

        if str(msg.get("to_state", "on")).lower() in ("off", "clear"):
            kind = HazardKind.CLEAR

        area = msg.get("area")
        floor = msg.get("floor")
        if not area or not floor:
            raise ValueError("Alarm event needs both area and floor")
        if not isinstance(area, str) or not isinstance(floor, (str, int)):
            raise ValueError("Alarm area and floor must be plain values")

        return cls(
            ts=msg.get("timestamp", datetime.now().isoformat()),
            floor_id=str(floor),
            node_id=zone_map.get(area, area),
            hazard=kind,
            source=entity_id,
        )
