"""Tests for the broker session, using a stand-in for the paho client."""

import json
from types import SimpleNamespace

import paho.mqtt.client as mqtt
import pytest

from smartbin.mqtt import ConnectionManager
from smartbin.mqtt.connection import parse_broker_url


class FakeClient:
    """Records what the manager asks of paho. Accepts the connection on loop_start."""

    def __init__(self, client_id, accept=True):
        self.client_id = client_id
        self.accept = accept
        self.credentials = None
        self.tls = False
        self.reconnect_delay = None
        self.connect_args = None
        self.subscriptions = []
        self.published = []
        self.connected = False
        self.loop_running = False
        self.publish_rc = mqtt.MQTT_ERR_SUCCESS

    def username_pw_set(self, username, password=None):
        self.credentials = (username, password)

    def tls_set(self):
        self.tls = True

    def reconnect_delay_set(self, min_delay=1, max_delay=120):
        self.reconnect_delay = (min_delay, max_delay)

    def connect_async(self, host, port=1883, keepalive=60):
        self.connect_args = (host, port, keepalive)

    def loop_start(self):
        self.loop_running = True
        if self.accept:
            self.connected = True
            self.on_connect(self, None, {}, 0, None)

    def loop_stop(self):
        self.loop_running = False

    def disconnect(self):
        self.connected = False

    def is_connected(self):
        return self.connected

    def subscribe(self, topic, qos=0):
        self.subscriptions.append(topic)

    def publish(self, topic, payload=None, qos=0, retain=False):
        self.published.append((topic, payload, qos, retain))
        return SimpleNamespace(rc=self.publish_rc)


def make_manager(accept=True, **kwargs):
    clients = []

    def factory(client_id):
        client = FakeClient(client_id, accept=accept)
        clients.append(client)
        return client

    kwargs.setdefault("topics", ["bins/+/level", "devices/+/status"])
    manager = ConnectionManager("mqtt://broker.local:1884", client_factory=factory, **kwargs)
    return manager, clients


@pytest.mark.parametrize(
    "url,expected",
    [
        ("mqtt://10.0.0.5:1883", ("10.0.0.5", 1883, False)),
        ("mqtt://broker.local", ("broker.local", 1883, False)),
        ("mqtts://broker.local", ("broker.local", 8883, True)),
        ("broker.local:2000", ("broker.local", 2000, False)),
    ],
)
def test_parse_broker_url(url, expected):
    assert parse_broker_url(url) == expected


def test_construction_does_no_io():
    manager, clients = make_manager()

    assert clients == []
    assert manager.is_connected() is False
    assert manager.client_id.startswith("backend_")


def test_init_connects_and_subscribes():
    manager, clients = make_manager(username="bin", password="secret", reconnect_max_delay=30)

    assert manager.init() is True

    client = clients[0]
    assert client.connect_args == ("broker.local", 1884, 60)
    assert client.credentials == ("bin", "secret")
    assert client.reconnect_delay == (1, 30)
    assert client.subscriptions == [[("bins/+/level", 0), ("devices/+/status", 0)]]
    assert manager.is_connected() is True


def test_init_times_out_when_broker_silent():
    manager, clients = make_manager(accept=False, connect_timeout=0.01)

    assert manager.init() is False
    assert manager.is_connected() is False
    assert clients[0].loop_running is True


def test_reconnect_resubscribes():
    manager, clients = make_manager()
    manager.init()
    client = clients[0]

    client.connected = False
    client.on_disconnect(client, None, {}, 7, None)
    assert manager.is_connected() is False

    client.connected = True
    client.on_connect(client, None, {}, 0, None)

    assert manager.is_connected() is True
    assert len(client.subscriptions) == 2
    assert client.subscriptions[0] == client.subscriptions[1]


def test_refused_connection_stays_disconnected():
    manager, clients = make_manager(accept=False, connect_timeout=0.01)
    manager.init()
    client = clients[0]

    client.on_connect(client, None, {}, 5, None)

    assert manager.is_connected() is False
    assert client.subscriptions == []


def test_publish_while_disconnected_fails_fast():
    manager, clients = make_manager()

    assert manager.publish("bins/esp-001/level", "hello") is False


def test_publish_encodes_objects_as_json():
    manager, clients = make_manager()
    manager.init()

    assert manager.publish("cmd/esp-001", {"led": "on"}) is True
    assert manager.publish("cmd/esp-001", 42, qos=1, retain=True) is True

    assert clients[0].published == [
        ("cmd/esp-001", json.dumps({"led": "on"}), 0, False),
        ("cmd/esp-001", "42", 1, True),
    ]


def test_publish_reports_client_error():
    manager, clients = make_manager()
    manager.init()
    clients[0].publish_rc = mqtt.MQTT_ERR_NO_CONN

    assert manager.publish("cmd/esp-001", "x") is False


def test_transport_down_means_disconnected():
    """The session flag alone is not enough: the client must agree."""
    manager, clients = make_manager()
    manager.init()

    clients[0].connected = False

    assert manager.is_connected() is False
    assert manager.publish("cmd/esp-001", "x") is False


def test_messages_recorded_and_forwarded():
    manager, clients = make_manager()
    received = []
    manager.set_message_handler(lambda topic, payload: received.append((topic, payload)))
    manager.init()
    client = clients[0]

    msg = SimpleNamespace(topic="bins/esp-001/level", payload=b'{"level_percent": 10}')
    client.on_message(client, None, msg)

    assert received == [("bins/esp-001/level", b'{"level_percent": 10}')]
    last = manager.get_last_message("bins/esp-001/level")
    assert last.payload == '{"level_percent": 10}'
    assert set(manager.get_all_messages()) == {"bins/esp-001/level"}


def test_handler_errors_do_not_reach_the_client():
    manager, clients = make_manager()

    def failing(topic, payload):
        raise RuntimeError("boom")

    manager.set_message_handler(failing)
    manager.init()
    client = clients[0]

    client.on_message(client, None, SimpleNamespace(topic="t", payload=b"{}"))

    assert manager.get_last_message("t") is not None
    assert manager.is_connected() is True


def test_subscribe_adds_topic_for_future_reconnects():
    manager, clients = make_manager()
    manager.init()
    client = clients[0]

    manager.subscribe("devices/+/color")

    assert "devices/+/color" in manager.topics
    assert client.subscriptions[-1] == "devices/+/color"


def test_shutdown_is_idempotent():
    manager, clients = make_manager()
    manager.init()

    manager.shutdown()
    manager.shutdown()

    assert clients[0].loop_running is False
    assert manager.is_connected() is False
