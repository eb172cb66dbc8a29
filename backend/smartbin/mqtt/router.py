"""Topic routing for inbound MQTT messages.

Dispatch order for a message:

1. Decode the payload as JSON. Undecodable payloads are logged and dropped.
2. An override registered for the exact topic handles it exclusively.
3. Otherwise the fixed patterns are tried in order. Each pattern has one ``+``
   segment carrying the hardware correlation id and maps to a single
   ``TelemetryKind``; the router holds exactly one handler per kind.
4. Topics matching nothing are logged and dropped.
"""

import inspect
import json
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)


class TelemetryKind(StrEnum):
    LEVEL = "level"
    STATUS = "status"
    COLOR = "color"
    PROXIMITY = "proximity"


TelemetryHandler = Callable[[str, dict[str, Any]], Awaitable[Any]]
OverrideHandler = Callable[[Any, str], Awaitable[Any] | Any]


@dataclass(frozen=True)
class TopicPattern:
    """A topic filter with exactly one single-level wildcard."""

    pattern: str
    kind: TelemetryKind
    segments: tuple[str, ...] = field(init=False, repr=False)

    def __post_init__(self):
        segments = tuple(self.pattern.split("/"))
        if segments.count("+") != 1 or "#" in segments:
            raise ValueError(f"Pattern {self.pattern!r} must have exactly one '+' segment and no '#'")
        object.__setattr__(self, "segments", segments)

    def match(self, topic: str) -> str | None:
        """Return the wildcard segment when the topic matches, else None."""
        parts = topic.split("/")
        if len(parts) != len(self.segments):
            return None

        captured = None
        for expected, actual in zip(self.segments, parts):
            if expected == "+":
                if not actual:
                    return None
                captured = actual
            elif expected != actual:
                return None
        return captured


TELEMETRY_PATTERNS: tuple[TopicPattern, ...] = (
    TopicPattern("bins/+/level", TelemetryKind.LEVEL),
    TopicPattern("devices/+/heartbeat", TelemetryKind.STATUS),
    TopicPattern("devices/+/status", TelemetryKind.STATUS),
    TopicPattern("devices/+/color", TelemetryKind.COLOR),
    TopicPattern("devices/+/proximity", TelemetryKind.PROXIMITY),
)


def decode_payload(payload: bytes | str) -> Any:
    """Parse a JSON payload; raises ValueError when it is not valid JSON."""
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8")
    return json.loads(payload)


class TopicRouter:
    """Maps (topic, payload) to an override or a telemetry handler."""

    def __init__(
        self,
        handlers: Mapping[TelemetryKind, TelemetryHandler],
        patterns: Iterable[TopicPattern] = TELEMETRY_PATTERNS,
    ):
        missing = set(TelemetryKind) - set(handlers)
        if missing:
            raise ValueError(f"No handler for telemetry kind(s): {', '.join(sorted(missing))}")
        self._handlers = dict(handlers)
        self._patterns = tuple(patterns)
        self._overrides: dict[str, OverrideHandler] = {}

    def register_override(self, topic: str, handler: OverrideHandler) -> None:
        """Route an exact topic to ``handler(payload, topic)`` instead of the patterns."""
        self._overrides[topic] = handler
        logger.info(f"Override handler registered for {topic}")

    def unregister_override(self, topic: str) -> None:
        self._overrides.pop(topic, None)

    def match(self, topic: str) -> tuple[TelemetryKind, str] | None:
        for pattern in self._patterns:
            correlation_id = pattern.match(topic)
            if correlation_id is not None:
                return pattern.kind, correlation_id
        return None

    async def dispatch(self, topic: str, payload: bytes | str) -> bool:
        """Route one message. Returns whether a handler was invoked."""
        try:
            data = decode_payload(payload)
        except ValueError as e:
            logger.warning(f"Invalid JSON on {topic}, dropped: {e}")
            return False

        override = self._overrides.get(topic)
        if override is not None:
            result = override(data, topic)
            if inspect.isawaitable(result):
                await result
            return True

        matched = self.match(topic)
        if matched is None:
            logger.info(f"No route for topic {topic}, dropped")
            return False

        kind, correlation_id = matched
        if not isinstance(data, dict):
            logger.warning(f"{kind} payload on {topic} is not an object, dropped")
            return False

        await self._handlers[kind](correlation_id, data)
        return True
