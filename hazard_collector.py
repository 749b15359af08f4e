import os
from dotenv import load_dotenv
import paho.mqtt.client as mqtt
import structlog
from safeexit.app_state import EvacuationState
from safeexit.floor_plan import BuildingModel, DEFAULT_BUILDING_PATH
from safeexit.hazard_listener import HazardListener

# Load configuration from .env file
load_dotenv()

logger = structlog.get_logger(__name__)

HAZARD_TOPIC = os.getenv("HAZARD_TOPIC", "safeexit/hazards/+")


def on_connect(client, userdata, flags, reason_code, properties):
    """Handle MQTT connection - subscribe to hazard topic (VERSION2 callback)"""
    logger.info("mqtt.connected", reason_code=reason_code)
    client.subscribe(HAZARD_TOPIC)
    logger.info("mqtt.subscribed", topic=HAZARD_TOPIC)


def on_message(client, userdata, msg):
    logger.debug("mqtt.message", topic=msg.topic)
    hazard_listener.on_message(client, userdata, msg)


def on_disconnect(client, userdata, disconnect_flags, reason_code, properties):
    """Handle MQTT disconnection (VERSION2 callback)"""
    logger.info("mqtt.disconnected", reason_code=reason_code)
    if reason_code != 0:
        logger.error("mqtt.unexpected_disconnect", reason_code=reason_code)


building_path = os.getenv("BUILDING_PATH", str(DEFAULT_BUILDING_PATH))
state = EvacuationState(BuildingModel.load(building_path), os.getenv("START_FLOOR"))

client_id = os.getenv("MQTT_HAZARD_CLIENT_ID", "safeexit-hazards")
client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id)
client.on_connect = on_connect
client.on_message = on_message
client.on_disconnect = on_disconnect

# Automatic reconnection with exponential backoff
client.reconnect_delay_set(min_delay=1, max_delay=120)

mqtt_username = os.getenv("MQTT_USERNAME")
mqtt_password = os.getenv("MQTT_PASSWORD")
if mqtt_username and mqtt_password:
    client.username_pw_set(mqtt_username, mqtt_password)
    logger.info("mqtt.auth_configured", username=mqtt_username)

hazard_listener = HazardListener(client, state)

broker_address = os.getenv("MQTT_BROKER_ADDRESS", "localhost")
port_number = int(os.getenv("MQTT_PORT", 1883))
keep_alive_interval = int(os.getenv("MQTT_KEEP_ALIVE_INTERVAL", 60))

logger.info(
    "mqtt.connecting",
    broker=broker_address,
    port=port_number,
    keepalive=keep_alive_interval,
)
client.connect(broker_address, port_number, keep_alive_interval)

try:
    logger.info("Listening for hazard updates...")
    client.loop_forever()
except KeyboardInterrupt:
    logger.info("Shutting down...")

client.disconnect()

logger.info("Bye!")
