# ABOUTME: Hazard-aware shortest path from a room to the nearest open exit
# ABOUTME: Dijkstra over a hazard-filtered graph with a final path verification gate

import heapq
import math
from dataclasses import dataclass, field
from enum import Enum
from itertools import count
from typing import Dict, List, Mapping, Optional, Tuple, Union
import structlog
from safeexit.floor_plan import FloorDefinition
from safeexit.hazards import (
    HazardSnapshot,
    HazardStore,
    is_exit_blocked,
    is_impassable,
)

logger = structlog.get_logger(__name__)

Adjacency = Dict[str, List[Tuple[str, int]]]
HazardSource = Union[HazardSnapshot, HazardStore, Mapping, None]


class NoRouteReason(str, Enum):
    AWAITING_INPUT = "awaiting_input"
    UNKNOWN_START = "unknown_start"
    START_IMPASSABLE = "start_impassable"
    ALL_EXITS_BLOCKED = "all_exits_blocked"
    NO_SAFE_PATH = "no_safe_path"


@dataclass(frozen=True)
class RouteResult:
    """A verified hazard-free route to an open exit"""

    exit_id: str
    distance: int
    path: Tuple[str, ...]

    def to_dict(self) -> Dict:
        return {"exit_id": self.exit_id, "distance": self.distance, "path": list(self.path)}


@dataclass(frozen=True)
class RouteOutcome:
    """Either a route or the reason there is none"""

    floor_id: str
    start_id: Optional[str]
    route: Optional[RouteResult] = None
    reason: Optional[NoRouteReason] = None
    snapshot: Optional[HazardSnapshot] = field(default=None, compare=False, repr=False)

    @property
    def found(self) -> bool:
        return self.route is not None

    def to_dict(self) -> Dict:
        return {
            "floor_id": self.floor_id,
            "start_id": self.start_id,
            "route": self.route.to_dict() if self.route else None,
            "reason": self.reason.value if self.reason else None,
        }


def take_snapshot(hazard_source: HazardSource, floor_id: str) -> HazardSnapshot:
    """Freeze whatever hazard source the caller handed in"""
    if isinstance(hazard_source, HazardSnapshot):
        return hazard_source
    if isinstance(hazard_source, HazardStore):
        return hazard_source.snapshot(floor_id)
    return HazardSnapshot.from_mapping(hazard_source, floor_id)


def build_traversable_adjacency(
    floor: FloorDefinition, snapshot: HazardSnapshot
) -> Adjacency:
    """Adjacency list with every edge touching an impassable node removed.

    Every declared node gets an entry, impassable ones simply have no
    neighbours.
    """
    adjacency: Adjacency = {node_id: [] for node_id in floor.node_ids()}

    for a, b, weight in floor.edges:
        if is_impassable(snapshot, a) or is_impassable(snapshot, b):
            continue
        adjacency[a].append((b, weight))
        adjacency[b].append((a, weight))

    return adjacency


def compute_distances(
    floor: FloorDefinition, start_id: str, snapshot: HazardSnapshot
) -> Tuple[Dict[str, float], Dict[str, Optional[str]]]:
    """Single-source Dijkstra from start_id over the hazard-free graph"""
    dist: Dict[str, float] = {node_id: math.inf for node_id in floor.node_ids()}
    prev: Dict[str, Optional[str]] = {node_id: None for node_id in floor.node_ids()}

    if is_impassable(snapshot, start_id):
        return dist, prev

    adjacency = build_traversable_adjacency(floor, snapshot)
    dist[start_id] = 0

    # (distance, insertion order, node) keeps ties in push order
    sequence = count()
    heap = [(0, next(sequence), start_id)]

    while heap:
        du, _, u = heapq.heappop(heap)

        if du > dist[u]:
            continue  # stale entry
        if is_impassable(snapshot, u):
            continue

        for v, weight in adjacency.get(u, []):
            if is_impassable(snapshot, v):
                continue
            candidate = du + weight
            if candidate < dist[v]:
                dist[v] = candidate
                prev[v] = u
                heapq.heappush(heap, (candidate, next(sequence), v))

    return dist, prev


def select_exit(
    floor: FloorDefinition, dist: Mapping[str, float], snapshot: HazardSnapshot
) -> Optional[str]:
    """Nearest reachable exit not marked exit-blocked; ties keep declared order"""
    best_id = None
    best_distance = math.inf
    for exit_id in floor.exit_ids():
        if is_exit_blocked(snapshot, exit_id):
            continue
        d = dist.get(exit_id, math.inf)
        if d < best_distance:
            best_id, best_distance = exit_id, d
    return best_id


def reconstruct_path(prev: Mapping[str, Optional[str]], end_id: str) -> List[str]:
    path = []
    current: Optional[str] = end_id
    while current is not None:
        path.append(current)
        current = prev.get(current)
    path.reverse()
    return path


def verify_path(path: List[str], snapshot: HazardSnapshot) -> bool:
    """Last gate: no intermediate node may be impassable"""
    return not any(is_impassable(snapshot, node_id) for node_id in path[1:-1])


def evaluate_route(
    floor: FloorDefinition, start_id: Optional[str], hazard_source: HazardSource
) -> RouteOutcome:
    """Route from start_id to the nearest open exit, or the reason there is none.

    The hazard source is snapshotted exactly once here and every later step
    reads only that snapshot.
    """
    snapshot = take_snapshot(hazard_source, floor.floor_id)

    def no_route(reason: NoRouteReason) -> RouteOutcome:
        logger.debug(
            "route.none", floor_id=floor.floor_id, start_id=start_id, reason=reason.value
        )
        return RouteOutcome(
            floor_id=floor.floor_id, start_id=start_id, reason=reason, snapshot=snapshot
        )

    if not start_id:
        return no_route(NoRouteReason.AWAITING_INPUT)
    if not floor.has_node(start_id):
        return no_route(NoRouteReason.UNKNOWN_START)
    if is_impassable(snapshot, start_id):
        return no_route(NoRouteReason.START_IMPASSABLE)
    exit_ids = floor.exit_ids()
    if exit_ids and all(is_exit_blocked(snapshot, exit_id) for exit_id in exit_ids):
        return no_route(NoRouteReason.ALL_EXITS_BLOCKED)

    dist, prev = compute_distances(floor, start_id, snapshot)
    exit_id = select_exit(floor, dist, snapshot)
    if exit_id is None:
        return no_route(NoRouteReason.NO_SAFE_PATH)

    path = reconstruct_path(prev, exit_id)
    if not verify_path(path, snapshot):
        logger.error(
            "route.verification_failed",
            floor_id=floor.floor_id,
            start_id=start_id,
            path=path,
        )
        return no_route(NoRouteReason.NO_SAFE_PATH)

    route = RouteResult(exit_id=exit_id, distance=dist[exit_id], path=tuple(path))
    logger.debug(
        "route.found",
        floor_id=floor.floor_id,
        start_id=start_id,
        exit_id=exit_id,
        distance=route.distance,
    )
    return RouteOutcome(
        floor_id=floor.floor_id, start_id=start_id, route=route, snapshot=snapshot
    )


def find_route(
    floor: FloorDefinition, start_id: Optional[str], hazard_source: HazardSource
) -> Optional[RouteResult]:
    """Verified route to the nearest open exit, or None"""
    return evaluate_route(floor, start_id, hazard_source).route
