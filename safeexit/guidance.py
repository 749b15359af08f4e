# ABOUTME: Builds JSON-ready evacuation panels from a route outcome and hazard snapshot
# ABOUTME: Step-by-step directions, shelter-in-place advice, exit/room status, alert level

from typing import Dict, List, Optional
from safeexit.floor_plan import FloorDefinition
from safeexit.hazards import HazardSnapshot, is_exit_blocked, is_impassable
from safeexit.route_engine import NoRouteReason, RouteOutcome, RouteResult

REASON_TEXT = {
    NoRouteReason.AWAITING_INPUT: "Select your room to compute the safest evacuation route.",
    NoRouteReason.UNKNOWN_START: "The selected location is not on this floor.",
    NoRouteReason.START_IMPASSABLE: "Your current room is a hazard zone. No safe direction to move.",
    NoRouteReason.ALL_EXITS_BLOCKED: "All exits on this floor are blocked.",
    NoRouteReason.NO_SAFE_PATH: "All reachable paths pass through hazard zones or all exits are blocked.",
}

SHELTER_STEPS = [
    {"icon": "stop", "text": "Do NOT attempt to travel through fire, smoke, or blocked zones."},
    {"icon": "door", "text": "Seal gaps under doors to slow smoke. Move to a window if possible."},
    {"icon": "phone", "text": "Call emergency services immediately and report your floor and room."},
]


def route_steps(floor: FloorDefinition, route: RouteResult) -> List[Dict]:
    """Turn a route into a list of spoken-style directions"""
    steps = [{"icon": "start", "text": f"Start at {floor.label(route.path[0])}"}]

    for i, node_id in enumerate(route.path[1:], start=1):
        if i == len(route.path) - 1:
            steps.append(
                {"icon": "exit", "text": f"Proceed to {floor.label(node_id)} - EXIT HERE"}
            )
        elif floor.is_stair(node_id):
            steps.append({"icon": "stair", "text": f"Move to {floor.label(node_id)}"})
        else:
            steps.append({"icon": "move", "text": f"Move to {floor.label(node_id)}"})

    return steps


def no_route_guidance(reason: NoRouteReason) -> Dict:
    if reason is NoRouteReason.AWAITING_INPUT:
        return {"headline": "AWAITING POSITION INPUT", "reason": REASON_TEXT[reason], "steps": []}

    text = REASON_TEXT[reason]
    return {
        "headline": "NO SAFE ROUTE",
        "reason": text,
        "steps": [{"icon": "alert", "text": f"Evacuation not possible. {text}"}] + SHELTER_STEPS,
    }


def exit_statuses(
    floor: FloorDefinition, snapshot: HazardSnapshot, route: Optional[RouteResult]
) -> List[Dict]:
    statuses = []
    for exit_spec in floor.exits:
        if is_exit_blocked(snapshot, exit_spec.id):
            status = "BLOCKED"
        elif route and route.exit_id == exit_spec.id:
            status = "TARGET"
        else:
            status = "OPEN"
        statuses.append({"id": exit_spec.id, "label": exit_spec.label, "status": status})
    return statuses


def room_statuses(
    floor: FloorDefinition,
    snapshot: HazardSnapshot,
    position: Optional[str],
    route: Optional[RouteResult] = None,
) -> List[Dict]:
    on_path = set(route.path) if route else set()
    rooms = []
    for room in floor.selectable_rooms():
        kind = snapshot.kind(room.id)
        rooms.append(
            {
                "id": room.id,
                "label": room.label,
                "hazard": kind.value or "clear",
                "blocked": is_impassable(snapshot, room.id),
                "selected": room.id == position,
                "on_path": room.id in on_path and room.id != position,
            }
        )
    return rooms


def hazard_chips(floor: FloorDefinition, snapshot: HazardSnapshot) -> List[Dict]:
    return [
        {"id": node_id, "label": floor.label(node_id), "hazard": kind.value}
        for node_id, kind in snapshot.items()
    ]


def alert_level(snapshot: HazardSnapshot) -> str:
    active = len(snapshot)
    if not active:
        return "NORMAL"
    if active < 3:
        return "CAUTION"
    return "EMERGENCY"


def open_exit_count(floor: FloorDefinition, snapshot: HazardSnapshot) -> int:
    return sum(1 for exit_id in floor.exit_ids() if not is_exit_blocked(snapshot, exit_id))


def build_panel_from(
    floor: FloorDefinition, outcome: RouteOutcome, position: Optional[str]
) -> Dict:
    """Full dashboard view, read entirely from the outcome's own snapshot"""
    snapshot = outcome.snapshot
    if snapshot is None:
        snapshot = HazardSnapshot.from_mapping({}, floor.floor_id)
    route = outcome.route

    if route:
        guidance = {
            "headline": "SAFE EVACUATION ROUTE FOUND",
            "exit": floor.label(route.exit_id),
            "hops": len(route.path) - 1,
            "chain": [floor.label(node_id) for node_id in route.path],
            "steps": route_steps(floor, route),
        }
    else:
        guidance = no_route_guidance(outcome.reason)

    return {
        "floor_id": floor.floor_id,
        "note": floor.note,
        "position": position,
        "outcome": outcome.to_dict(),
        "guidance": guidance,
        "rooms": room_statuses(floor, snapshot, position, route),
        "exits": exit_statuses(floor, snapshot, route),
        "hazards": hazard_chips(floor, snapshot),
        "alert_level": alert_level(snapshot),
        "open_exits": f"{open_exit_count(floor, snapshot)}/{len(floor.exits)}",
    }


def build_panel(state) -> Dict:
    outcome = state.current_route()
    floor = state.building.get_floor_definition(outcome.floor_id)
    return build_panel_from(floor, outcome, outcome.start_id)
