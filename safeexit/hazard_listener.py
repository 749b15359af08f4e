import os
import json
import structlog
from ulid import ULID
from pydantic import ValidationError
from safeexit.app_state import EvacuationState
from safeexit.route_engine import RouteOutcome
from safeexit.schemas import HazardMessage


class HazardListener:
    def __init__(self, client, state: EvacuationState, route_topic=None):
        self.logger = structlog.getLogger(__name__)
        self.logger.info("Initialising hazard listener")
        self.client = client
        self.state = state
        self.route_topic = route_topic or os.getenv(
            "ROUTE_TOPIC", "safeexit/route/publish"
        )
        self.last_published = None

        # area name -> node id, for alarm events that use building area names
        self.zone_map = {}

        self.state.subscribe(self.publish_route)

    def on_message(self, client, userdata, msg):
        try:
            message = json.loads(msg.payload)
            self.logger.debug(f"Received message: {message}")
        except (json.JSONDecodeError, UnicodeDecodeError):
            self.logger.error(f"Error decoding JSON: {msg.payload}")
            return

        if not isinstance(message, dict):
            self.logger.warning("message.validation_failed", payload=message)
            return

        try:
            update = HazardMessage(**message)
        except ValidationError as hazard_error:
            if "entity_id" not in message:
                self.logger.warning(
                    "message.validation_failed", error=str(hazard_error), payload=message
                )
                return
            try:
                update = HazardMessage.from_alarm(message, self.zone_map)
            except ValueError as e:
                self.logger.warning(
                    "message.validation_failed", error=str(e), payload=message
                )
                return

        self.apply(update)

    def apply(self, update: HazardMessage):
        try:
            self.state.set_hazard(update.node_id, update.hazard, floor_id=update.floor_id)
        except (KeyError, ValueError) as e:
            self.logger.warning(
                "hazard.rejected",
                floor_id=update.floor_id,
                node_id=update.node_id,
                error=str(e),
            )
            return
        self.logger.info(
            "hazard.applied",
            floor_id=update.floor_id,
            node_id=update.node_id,
            hazard=update.hazard.value or "clear",
            source=update.source,
        )

    def publish_route(self, outcome: RouteOutcome):
        payload = {"id": f"route-{ULID()}", **outcome.to_dict()}
        json_output = json.dumps(payload)
        self.client.publish(self.route_topic, json_output)
        self.last_published = payload
        self.logger.info(
            "route.published",
            topic=self.route_topic,
            exit_id=outcome.route.exit_id if outcome.route else None,
            reason=outcome.reason.value if outcome.reason else None,
        )
