import os

from dotenv import load_dotenv

load_dotenv()

DATABASE_PATH = os.getenv("DATABASE_PATH", "data/smartbin.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
# Empty disables the log file
LOG_DIR = os.getenv("LOG_DIR", "logs")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]

# MQTT broker session
MQTT_ENABLED = os.getenv("MQTT_ENABLED", "true").lower() in {"1", "true", "yes", "on"}
MQTT_BROKER_URL = os.getenv("MQTT_BROKER_URL", "mqtt://localhost:1883")
MQTT_USERNAME = os.getenv("MQTT_USERNAME") or None
MQTT_PASSWORD = os.getenv("MQTT_PASSWORD") or None
MQTT_CLIENT_ID_PREFIX = os.getenv("MQTT_CLIENT_ID_PREFIX", "backend")
MQTT_KEEPALIVE = int(os.getenv("MQTT_KEEPALIVE", "60"))
MQTT_CONNECT_TIMEOUT = float(os.getenv("MQTT_CONNECT_TIMEOUT", "30"))
MQTT_RECONNECT_MIN_DELAY = int(os.getenv("MQTT_RECONNECT_MIN_DELAY", "1"))
MQTT_RECONNECT_MAX_DELAY = int(os.getenv("MQTT_RECONNECT_MAX_DELAY", "60"))

# Fixed subscription set, reissued on every (re)connect
MQTT_TOPICS = [
    "bins/+/level",
    "devices/+/heartbeat",
    "devices/+/status",
    "devices/+/color",
    "devices/+/proximity",
    "/test/comment",
    "/test/temperatura",
    "/test/humedad",
]

# Offline detection is opt-in: 0 disables the periodic check
OFFLINE_CHECK_INTERVAL = float(os.getenv("OFFLINE_CHECK_INTERVAL", "0"))
OFFLINE_TIMEOUT = float(os.getenv("OFFLINE_TIMEOUT", "300"))
