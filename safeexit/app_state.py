# ABOUTME: Application state holder for active floor, selected room and hazards
# ABOUTME: Recomputes the evacuation route after every change and notifies subscribers

from threading import RLock
from typing import Callable, List, Optional
import structlog
from safeexit.floor_plan import BuildingModel, FloorDefinition
from safeexit.hazards import HazardKind, HazardStore
from safeexit.route_engine import RouteOutcome, evaluate_route

RouteCallback = Callable[[RouteOutcome], None]


class EvacuationState:
    def __init__(
        self,
        building: BuildingModel,
        floor_id: Optional[str] = None,
        store: Optional[HazardStore] = None,
    ):
        self.logger = structlog.get_logger(__name__)
        self.building = building
        self.store = store or HazardStore()
        self.position: Optional[str] = None
        self._subscribers: List[RouteCallback] = []
        self._lock = RLock()

        if floor_id is None:
            floor_ids = building.floor_ids()
            if not floor_ids:
                raise ValueError("Building has no floors")
            floor_id = floor_ids[0]
        # Raises UnknownFloorError for a bad initial floor
        building.get_floor_definition(floor_id)
        self.floor_id = floor_id

        self.logger.info("state.initialised", floor_id=self.floor_id)

    @property
    def floor(self) -> FloorDefinition:
        return self.building.get_floor_definition(self.floor_id)

    def subscribe(self, callback: RouteCallback):
        """Register a callback receiving the route outcome after each change"""
        self._subscribers.append(callback)

    def set_floor(self, floor_id: str) -> RouteOutcome:
        """Switch floors, dropping the position if it is not on the new floor"""
        with self._lock:
            floor = self.building.get_floor_definition(floor_id)
            self.floor_id = floor_id
            if self.position and not floor.is_room(self.position):
                self.logger.info(
                    "state.position_dropped", floor_id=floor_id, position=self.position
                )
                self.position = None
            self.logger.info("state.floor_changed", floor_id=floor_id)
            return self._changed()

    def select_position(self, node_id: Optional[str]) -> RouteOutcome:
        """Select a room; selecting the current room again deselects it"""
        with self._lock:
            if not node_id:
                self.position = None
            elif node_id == self.position:
                self.position = None
            else:
                if not self.floor.is_room(node_id):
                    raise ValueError(
                        f"{node_id!r} is not a room on floor {self.floor_id}"
                    )
                self.position = node_id
            self.logger.info(
                "state.position_changed", floor_id=self.floor_id, position=self.position
            )
            return self._changed()

    def set_hazard(
        self, node_id: str, kind, floor_id: Optional[str] = None
    ) -> RouteOutcome:
        with self._lock:
            floor_id = floor_id or self.floor_id
            floor = self.building.get_floor_definition(floor_id)
            if not floor.has_node(node_id):
                raise ValueError(f"{node_id!r} is not a node on floor {floor_id}")
            self.store.set_hazard(floor_id, node_id, kind)
            return self._changed()

    def clear_hazard(self, node_id: str, floor_id: Optional[str] = None) -> RouteOutcome:
        return self.set_hazard(node_id, HazardKind.CLEAR, floor_id)

    def current_route(self) -> RouteOutcome:
        with self._lock:
            floor = self.floor
            position = self.position
        return evaluate_route(floor, position, self.store)

    def _changed(self) -> RouteOutcome:
        outcome = self.current_route()
        for callback in list(self._subscribers):
            try:
                callback(outcome)
            except Exception as e:
                self.logger.error("state.subscriber_failed", error=str(e))
        return outcome
