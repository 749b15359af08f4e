# ABOUTME: Hazard kinds, per-floor hazard store, and immutable hazard snapshots
# ABOUTME: Owns the impassability predicate shared by the router and the dashboard

from enum import Enum
from threading import Lock
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Union
from collections.abc import Mapping as MappingABC
import structlog


class HazardKind(str, Enum):
    """Closed set of hazard states a node can be in"""

    CLEAR = ""
    FIRE = "fire"
    SMOKE = "smoke"
    BLOCKED = "blocked"
    CLOSED = "closed"
    EXIT_BLOCKED = "exit-blocked"

    @classmethod
    def parse(cls, value: Union["HazardKind", str, None]) -> "HazardKind":
        """Normalise a raw hazard value; None, "" and "clear" mean clear"""
        if isinstance(value, HazardKind):
            return value
        if not value or str(value).strip().lower() == "clear":
            return cls.CLEAR
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown hazard kind: {value!r}") from None


IMPASSABLE_KINDS = frozenset(
    {HazardKind.FIRE, HazardKind.SMOKE, HazardKind.BLOCKED, HazardKind.CLOSED}
)


class HazardSnapshot(MappingABC):
    """Read-only copy of one floor's hazard assignment"""

    def __init__(self, floor_id: Optional[str], hazards: Mapping[str, HazardKind]):
        self.floor_id = floor_id
        entries = {}
        for node_id, kind in hazards.items():
            kind = HazardKind.parse(kind)
            if kind is not HazardKind.CLEAR:
                entries[node_id] = kind
        self._hazards = MappingProxyType(entries)

    @classmethod
    def from_mapping(
        cls, hazards: Optional[Mapping], floor_id: Optional[str] = None
    ) -> "HazardSnapshot":
        return cls(floor_id, dict(hazards or {}))

    def kind(self, node_id: str) -> HazardKind:
        return self._hazards.get(node_id, HazardKind.CLEAR)

    def __getitem__(self, node_id: str) -> HazardKind:
        return self._hazards[node_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._hazards)

    def __len__(self) -> int:
        return len(self._hazards)

    def __repr__(self) -> str:
        return f"HazardSnapshot(floor_id={self.floor_id!r}, hazards={dict(self._hazards)!r})"


def is_impassable(snapshot: HazardSnapshot, node_id: str) -> bool:
    """A node is impassable when it is on fire, smoky, blocked or closed"""
    return snapshot.kind(node_id) in IMPASSABLE_KINDS


def is_exit_blocked(snapshot: HazardSnapshot, node_id: str) -> bool:
    """An exit marked exit-blocked stays in the graph but is never a destination"""
    return snapshot.kind(node_id) is HazardKind.EXIT_BLOCKED


class HazardStore:
    def __init__(self):
        self.logger = structlog.get_logger(__name__)
        self._floors: Dict[str, Dict[str, HazardKind]] = {}
        self._lock = Lock()

    def get_hazard(self, floor_id: str, node_id: str) -> HazardKind:
        """Current hazard for a node; missing entries are clear"""
        with self._lock:
            return self._floors.get(floor_id, {}).get(node_id, HazardKind.CLEAR)

    def set_hazard(
        self, floor_id: str, node_id: str, kind: Union[HazardKind, str, None]
    ) -> HazardKind:
        """Record a hazard; a falsy or clear value removes the entry"""
        kind = HazardKind.parse(kind)
        with self._lock:
            floor_hazards = self._floors.setdefault(floor_id, {})
            if kind is HazardKind.CLEAR:
                floor_hazards.pop(node_id, None)
            else:
                floor_hazards[node_id] = kind

        if kind is HazardKind.CLEAR:
            self.logger.info("hazard.cleared", floor_id=floor_id, node_id=node_id)
        else:
            self.logger.info(
                "hazard.set", floor_id=floor_id, node_id=node_id, hazard=kind.value
            )
        return kind

    def clear_hazard(self, floor_id: str, node_id: str):
        self.set_hazard(floor_id, node_id, HazardKind.CLEAR)

    def clear_floor(self, floor_id: str):
        with self._lock:
            self._floors.pop(floor_id, None)
        self.logger.info("hazard.floor_cleared", floor_id=floor_id)

    def snapshot(self, floor_id: str) -> HazardSnapshot:
        """Atomic, immutable copy of one floor's hazards"""
        with self._lock:
            current = dict(self._floors.get(floor_id, {}))
        return HazardSnapshot(floor_id, current)

    def active_hazards(self, floor_id: str) -> Dict[str, HazardKind]:
        with self._lock:
            return dict(self._floors.get(floor_id, {}))

    def is_node_blocked(self, floor_id: str, node_id: str) -> bool:
        """Highlighting check using the same rule as the router"""
        return is_impassable(self.snapshot(floor_id), node_id)
