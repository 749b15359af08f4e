# ABOUTME: Web dashboard exposing the evacuation state as a JSON API
# ABOUTME: Hazard/position/floor controls, route queries, and an SSE stream of route updates

import os
import json
import time
from datetime import datetime
from collections import deque
from itertools import count
from threading import Lock
from flask import Flask, Response, jsonify, request
from pydantic import ValidationError
from dotenv import load_dotenv
from ulid import ULID
import structlog
from safeexit.app_state import EvacuationState
from safeexit.floor_plan import BuildingModel, UnknownFloorError, DEFAULT_BUILDING_PATH
from safeexit.guidance import build_panel
from safeexit.route_engine import RouteOutcome, evaluate_route
from safeexit.schemas import HazardUpdate

load_dotenv()

app = Flask(__name__)
logger = structlog.get_logger(__name__)

# Thread-safe buffer of recent route outcomes
event_buffer = deque(maxlen=100)
buffer_lock = Lock()
event_sequence = count(1)


def record_outcome(outcome: RouteOutcome):
    event = {
        "id": f"route-{ULID()}",
        "timestamp": datetime.now().isoformat(),
        **outcome.to_dict(),
    }
    with buffer_lock:
        # seq is assigned under the lock so buffer order and seq order agree
        event["seq"] = next(event_sequence)
        event_buffer.append(event)
    logger.debug("Route buffered", floor_id=outcome.floor_id, found=outcome.found)


building_path = os.getenv("BUILDING_PATH", str(DEFAULT_BUILDING_PATH))
state = EvacuationState(BuildingModel.load(building_path), os.getenv("START_FLOOR"))
state.subscribe(record_outcome)


def error_response(message, status=400):
    return jsonify({"success": False, "error": message}), status


def json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


@app.route("/")
@app.route("/api/state")
def index():
    """Full evacuation panel for the active floor"""
    return jsonify(build_panel(state))


@app.route("/api/floors")
def floors():
    return jsonify(
        [
            {"floor_id": floor_id, "note": state.building.floors[floor_id].note}
            for floor_id in state.building.floor_ids()
        ]
    )


@app.route("/api/floor", methods=["POST"])
def set_floor():
    data = json_body()
    floor_id = data.get("floor_id")
    if not floor_id:
        return error_response("floor_id required")
    if not isinstance(floor_id, str):
        return error_response("floor_id must be a string")

    try:
        state.set_floor(floor_id)
    except UnknownFloorError:
        return error_response("Floor not found", 404)
    return jsonify(build_panel(state))


@app.route("/api/position", methods=["POST"])
def set_position():
    data = json_body()
    try:
        state.select_position(data.get("node_id"))
    except ValueError as e:
        return error_response(str(e))
    return jsonify(build_panel(state))


@app.route("/api/hazards", methods=["POST"])
def set_hazard():
    try:
        update = HazardUpdate.model_validate(json_body())
    except ValidationError as e:
        return error_response(str(e))

    try:
        state.set_hazard(update.node_id, update.hazard, floor_id=update.floor_id)
    except UnknownFloorError:
        return error_response("Floor not found", 404)
    except ValueError as e:
        return error_response(str(e))
    return jsonify(build_panel(state))


@app.route("/api/hazards/<node_id>", methods=["DELETE"])
def clear_hazard(node_id):
    floor_id = request.args.get("floor")
    try:
        state.clear_hazard(node_id, floor_id=floor_id)
    except UnknownFloorError:
        return error_response("Floor not found", 404)
    except ValueError as e:
        return error_response(str(e))
    return jsonify(build_panel(state))


@app.route("/api/nodes/<node_id>")
def node_status(node_id):
    """Hazard and blocked flag for one node, for map highlighting"""
    floor_id = request.args.get("floor", state.floor_id)
    try:
        floor = state.building.get_floor_definition(floor_id)
    except UnknownFloorError:
        return error_response("Floor not found", 404)
    if not floor.has_node(node_id):
        return error_response("Node not found", 404)

    return jsonify(
        {
            "floor_id": floor_id,
            "node_id": node_id,
            "hazard": state.store.get_hazard(floor_id, node_id).value,
            "blocked": state.store.is_node_blocked(floor_id, node_id),
        }
    )


@app.route("/api/route")
def route():
    """Stateless route query against the current hazards"""
    floor_id = request.args.get("floor", state.floor_id)
    start_id = request.args.get("start")
    try:
        floor = state.building.get_floor_definition(floor_id)
    except UnknownFloorError:
        return error_response("Floor not found", 404)

    outcome = evaluate_route(floor, start_id, state.store)
    return jsonify(outcome.to_dict())


@app.route("/api/events")
def get_events():
    """Recent route outcomes as JSON"""
    with buffer_lock:
        return jsonify(list(event_buffer))


def event_stream(poll_interval=0.5):
    """Yield SSE frames for buffered events not yet sent, by sequence number"""
    last_seq = 0
    while True:
        with buffer_lock:
            pending = [e for e in event_buffer if e["seq"] > last_seq]

        for event in pending:
            yield f"data: {json.dumps(event)}\n\n"
            last_seq = event["seq"]

        time.sleep(poll_interval)


@app.route("/stream")
def stream():
    """Server-Sent Events stream of route outcomes"""
    return Response(event_stream(), mimetype="text/event-stream")


@app.route("/api/status")
def status():
    return jsonify(
        {
            "floors": state.building.floor_ids(),
            "floor_id": state.floor_id,
            "position": state.position,
            "buffer_size": len(event_buffer),
            "timestamp": datetime.now().isoformat(),
        }
    )


if __name__ == "__main__":
    port = int(os.getenv("DASHBOARD_PORT", "5001"))
    app.run(host="0.0.0.0", port=port, debug=True, threaded=True)
