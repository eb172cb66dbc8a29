"""MQTT diagnostics routes: recent messages and manual publish."""

from fastapi import APIRouter, Depends, Query, Request

from smartbin.errors import NotFoundError, ValidationError
from smartbin.mqtt import ConnectionManager
from smartbin.schemas import LastMessage, MessagesResponse, PublishRequest, PublishResponse

router = APIRouter(prefix="/api/mqtt", tags=["mqtt"])


def get_connection(request: Request) -> ConnectionManager:
    """The connection manager owned by the app."""
    return request.app.state.connection


@router.get("/messages", response_model=MessagesResponse)
async def get_messages(connection: ConnectionManager = Depends(get_connection)) -> MessagesResponse:
    """Last payload received per topic."""
    messages = {
        topic: LastMessage(topic=m.topic, payload=m.payload, timestamp=m.timestamp)
        for topic, m in connection.get_all_messages().items()
    }
    return MessagesResponse(connected=connection.is_connected(), messages=messages)


@router.get("/messages/last", response_model=LastMessage)
async def get_last_message(
    topic: str = Query(..., description="Exact topic"),
    connection: ConnectionManager = Depends(get_connection),
) -> LastMessage:
    message = connection.get_last_message(topic)
    if message is None:
        raise NotFoundError(f"No message received on {topic}")
    return LastMessage(topic=message.topic, payload=message.payload, timestamp=message.timestamp)


@router.post("/publish", response_model=PublishResponse)
async def publish_message(
    body: PublishRequest,
    connection: ConnectionManager = Depends(get_connection),
) -> PublishResponse:
    """Publish a message. Fails fast with success=false when the broker is down."""
    if not body.topic or body.message is None or body.message == "":
        raise ValidationError("topic and message are required")

    success = connection.publish(body.topic, body.message)
    return PublishResponse(
        success=success,
        topic=body.topic,
        message="Message published" if success else "Publish failed",
    )
