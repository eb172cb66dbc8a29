"""MQTT broker session.

One ``ConnectionManager`` owns the single paho client of the process. It is
created by the composition root and driven through ``init()`` / ``shutdown()``;
constructing it performs no network I/O.

paho runs its network loop in a background thread and reconnects forever with
exponential backoff between ``reconnect_min_delay`` and ``reconnect_max_delay``.
Subscriptions are issued from ``on_connect`` so every reconnect restores them.
Only the first handshake is bounded by ``connect_timeout``.
"""

import json
import logging
import secrets
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from urllib.parse import urlparse

import paho.mqtt.client as mqtt

from smartbin.database import utc_now

logger = logging.getLogger(__name__)

DEFAULT_PORT = 1883
DEFAULT_TLS_PORT = 8883
_TLS_SCHEMES = {"mqtts", "ssl", "tls"}

MessageHandler = Callable[[str, bytes], None]
ClientFactory = Callable[[str], mqtt.Client]


@dataclass(frozen=True)
class ReceivedMessage:
    """Last raw payload seen on a topic."""

    topic: str
    payload: str
    timestamp: datetime


def parse_broker_url(url: str) -> tuple[str, int, bool]:
    """'mqtt://10.0.0.5:1883' -> ('10.0.0.5', 1883, False)."""
    parsed = urlparse(url if "://" in url else f"mqtt://{url}")
    if not parsed.hostname:
        raise ValueError(f"Invalid MQTT broker URL: {url!r}")
    use_tls = parsed.scheme in _TLS_SCHEMES
    port = parsed.port or (DEFAULT_TLS_PORT if use_tls else DEFAULT_PORT)
    return parsed.hostname, port, use_tls


def create_client(client_id: str) -> mqtt.Client:
    return mqtt.Client(
        callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
        client_id=client_id,
        protocol=mqtt.MQTTv311,
        clean_session=True,
    )


class ConnectionManager:
    """Owns the broker session: connect, resubscribe, publish, last messages."""

    def __init__(
        self,
        broker_url: str,
        username: str | None = None,
        password: str | None = None,
        topics: Iterable[str] = (),
        client_id_prefix: str = "backend",
        keepalive: int = 60,
        connect_timeout: float = 30.0,
        reconnect_min_delay: int = 1,
        reconnect_max_delay: int = 60,
        qos: int = 0,
        client_factory: ClientFactory = create_client,
    ):
        self.broker_url = broker_url
        self.username = username
        self.password = password
        self.client_id = f"{client_id_prefix}_{secrets.token_hex(4)}"
        self.keepalive = keepalive
        self.connect_timeout = connect_timeout
        self.reconnect_min_delay = reconnect_min_delay
        self.reconnect_max_delay = reconnect_max_delay
        self.qos = qos

        self._client_factory = client_factory
        self._client: mqtt.Client | None = None
        self._topics: list[str] = list(dict.fromkeys(topics))
        self._connected = False
        self._connack = threading.Event()
        self._lock = threading.Lock()
        self._messages: dict[str, ReceivedMessage] = {}
        self._message_handler: MessageHandler | None = None

    def set_message_handler(self, handler: MessageHandler | None) -> None:
        """Receives (topic, raw payload) for every inbound message, on paho's thread."""
        self._message_handler = handler

    @property
    def topics(self) -> list[str]:
        return list(self._topics)

    def init(self) -> bool:
        """Start the session and wait for the first CONNACK.

        Returns whether the broker accepted the connection within
        ``connect_timeout``. On timeout paho keeps retrying in the background.
        """
        if self._client is not None:
            logger.warning("MQTT client already initialized")
            return self.is_connected()

        host, port, use_tls = parse_broker_url(self.broker_url)

        client = self._client_factory(self.client_id)
        if self.username:
            client.username_pw_set(self.username, self.password)
        if use_tls:
            client.tls_set()
        client.reconnect_delay_set(min_delay=self.reconnect_min_delay, max_delay=self.reconnect_max_delay)
        client.on_connect = self._on_connect
        client.on_disconnect = self._on_disconnect
        client.on_message = self._on_message
        self._client = client

        logger.info(f"Connecting to MQTT broker {host}:{port} as {self.client_id}")
        client.connect_async(host, port, keepalive=self.keepalive)
        client.loop_start()

        if self._connack.wait(self.connect_timeout):
            return True
        logger.warning(
            f"No answer from MQTT broker within {self.connect_timeout}s, retrying in background"
        )
        return False

    def shutdown(self) -> None:
        """Disconnect and stop the network loop. Safe to call twice."""
        client, self._client = self._client, None
        self._connected = False
        self._connack.clear()
        if client is None:
            return
        try:
            client.disconnect()
        finally:
            client.loop_stop()
        logger.info("Disconnected from MQTT broker")

    def is_connected(self) -> bool:
        """True only while the broker session is actually up."""
        client = self._client
        return self._connected and client is not None and client.is_connected()

    def subscribe(self, topic: str) -> None:
        """Add a topic to the subscription set; it survives reconnects."""
        if topic not in self._topics:
            self._topics.append(topic)
        if self.is_connected():
            self._client.subscribe(topic, qos=self.qos)
            logger.info(f"Subscribed to {topic}")

    def publish(self, topic: str, message: Any, qos: int = 0, retain: bool = False) -> bool:
        """Publish without queueing: False straight away when disconnected."""
        if not self.is_connected():
            logger.error(f"Cannot publish to {topic}: MQTT client not connected")
            return False

        if isinstance(message, dict | list):
            payload = json.dumps(message)
        else:
            payload = str(message)

        info = self._client.publish(topic, payload, qos=qos, retain=retain)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            logger.error(f"Publish to {topic} failed: {mqtt.error_string(info.rc)}")
            return False
        logger.info(f"Message published to {topic}")
        return True

    def get_last_message(self, topic: str) -> ReceivedMessage | None:
        with self._lock:
            return self._messages.get(topic)

    def get_all_messages(self) -> dict[str, ReceivedMessage]:
        with self._lock:
            return dict(self._messages)

    # --- paho callbacks (network thread) ---

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code != 0:
            self._connected = False
            logger.error(f"MQTT connection refused: {reason_code}")
            return

        self._connected = True
        self._connack.set()
        logger.info(f"Connected to MQTT broker as {self.client_id}")

        if self._topics:
            client.subscribe([(topic, self.qos) for topic in self._topics])
            logger.info(f"Subscribed to {len(self._topics)} topic(s): {', '.join(self._topics)}")

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        self._connected = False
        if self._client is None:
            return
        logger.warning(f"MQTT connection lost ({reason_code}), reconnecting")

    def _on_message(self, client, userdata, msg):
        received = ReceivedMessage(
            topic=msg.topic,
            payload=msg.payload.decode("utf-8", errors="replace"),
            timestamp=utc_now(),
        )
        with self._lock:
            self._messages[msg.topic] = received
        logger.debug(f"[{msg.topic}] {received.payload}")

        if self._message_handler is None:
            return
        try:
            self._message_handler(msg.topic, msg.payload)
        except Exception:
            logger.exception(f"Message handler failed for topic {msg.topic}")
