"""MQTT ingestion: broker session, topic routing and telemetry handlers."""

from smartbin.mqtt.connection import ConnectionManager, ReceivedMessage
from smartbin.mqtt.handlers import TelemetryHandlers, log_test_message
from smartbin.mqtt.ingestor import TelemetryIngestor
from smartbin.mqtt.monitor import OfflineMonitor
from smartbin.mqtt.router import TELEMETRY_PATTERNS, TelemetryKind, TopicPattern, TopicRouter

__all__ = [
    "ConnectionManager",
    "ReceivedMessage",
    "TopicRouter",
    "TopicPattern",
    "TelemetryKind",
    "TELEMETRY_PATTERNS",
    "TelemetryHandlers",
    "TelemetryIngestor",
    "OfflineMonitor",
    "log_test_message",
]
