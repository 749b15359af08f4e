# ABOUTME: Building model holding the static per-floor room/exit/corridor graph
# ABOUTME: Loads and validates building JSON and answers room vs exit lookups

import json
from dataclasses import dataclass
from typing import List, Dict, Tuple, Optional
from pathlib import Path
import structlog
from safeexit.schemas import BuildingSpec, FloorSpec, RoomSpec, ExitSpec

logger = structlog.get_logger(__name__)

DEFAULT_BUILDING_PATH = Path(__file__).resolve().parent.parent / "config" / "building.json"


class UnknownFloorError(KeyError):
    """Raised when a floor id is not part of the building"""


@dataclass(frozen=True)
class FloorDefinition:
    """Immutable topology of one floor"""

    floor_id: str
    note: str
    rooms: Tuple[RoomSpec, ...]
    exits: Tuple[ExitSpec, ...]
    edges: Tuple[Tuple[str, str, int], ...]

    @classmethod
    def from_spec(cls, floor_id: str, spec: FloorSpec) -> "FloorDefinition":
        return cls(
            floor_id=floor_id,
            note=spec.note,
            rooms=tuple(spec.rooms),
            exits=tuple(spec.exits),
            edges=tuple(tuple(edge) for edge in spec.edges),
        )

    def node_ids(self) -> List[str]:
        """Rooms then exits, in declared order"""
        return [r.id for r in self.rooms] + [e.id for e in self.exits]

    def exit_ids(self) -> List[str]:
        return [e.id for e in self.exits]

    def is_exit(self, node_id: str) -> bool:
        return any(e.id == node_id for e in self.exits)

    def is_room(self, node_id: str) -> bool:
        return any(r.id == node_id for r in self.rooms)

    def has_node(self, node_id: str) -> bool:
        return self.is_room(node_id) or self.is_exit(node_id)

    def room(self, node_id: str) -> Optional[RoomSpec]:
        return next((r for r in self.rooms if r.id == node_id), None)

    def is_stair(self, node_id: str) -> bool:
        room = self.room(node_id)
        return bool(room and room.is_stair)

    def label(self, node_id: str) -> str:
        """Display label, falling back to the id for unknown nodes"""
        for node in (*self.rooms, *self.exits):
            if node.id == node_id:
                return node.label
        return node_id

    def selectable_rooms(self) -> List[RoomSpec]:
        """Rooms a person can report being in (stairs are transit only)"""
        return [r for r in self.rooms if not r.is_stair]


class BuildingModel:
    def __init__(self, config_path: str = str(DEFAULT_BUILDING_PATH)):
        self.floors: Dict[str, FloorDefinition] = {}

        if Path(config_path).exists():
            self._load_config(config_path)
        else:
            logger.warning("building.config_missing", path=str(config_path))

    def _load_config(self, config_path: str):
        """Load building definition from JSON"""
        with open(config_path, "r") as f:
            config = json.load(f)

        self._apply(config)
        logger.info(
            "building.loaded", path=str(config_path), floors=list(self.floors.keys())
        )

    def _apply(self, config: Dict):
        spec = BuildingSpec(**config)
        self.floors = {
            floor_id: FloorDefinition.from_spec(floor_id, floor_spec)
            for floor_id, floor_spec in spec.floors.items()
        }

    def floor_ids(self) -> List[str]:
        return list(self.floors.keys())

    def get_floor_definition(self, floor_id: str) -> FloorDefinition:
        try:
            return self.floors[floor_id]
        except KeyError:
            raise UnknownFloorError(floor_id) from None

    @classmethod
    def from_dict(cls, config: Dict) -> "BuildingModel":
        """Build a model from an in-memory definition"""
        model = cls.__new__(cls)
        model.floors = {}
        model._apply(config)
        return model

    @classmethod
    def load(cls, config_path: str = str(DEFAULT_BUILDING_PATH)) -> "BuildingModel":
        """Factory method to load building definition"""
        return cls(config_path)
