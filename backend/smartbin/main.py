import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from smartbin import config
from smartbin.database import init_models
from smartbin.errors import SmartBinError
from smartbin.logging_config import setup_logging
from smartbin.mqtt import (
    ConnectionManager,
    OfflineMonitor,
    TelemetryHandlers,
    TelemetryIngestor,
    TopicRouter,
    log_test_message,
)
from smartbin.routes.areas import router as areas_router
from smartbin.routes.bins import router as bins_router
from smartbin.routes.devices import router as devices_router
from smartbin.routes.mqtt import router as mqtt_router

# Initialize logging before anything else
setup_logging()
logger = logging.getLogger(__name__)

TEST_TOPICS = [topic for topic in config.MQTT_TOPICS if topic.startswith("/test/")]


def build_connection() -> ConnectionManager:
    """Broker session from the environment. No I/O until init()."""
    return ConnectionManager(
        config.MQTT_BROKER_URL,
        username=config.MQTT_USERNAME,
        password=config.MQTT_PASSWORD,
        topics=config.MQTT_TOPICS,
        client_id_prefix=config.MQTT_CLIENT_ID_PREFIX,
        keepalive=config.MQTT_KEEPALIVE,
        connect_timeout=config.MQTT_CONNECT_TIMEOUT,
        reconnect_min_delay=config.MQTT_RECONNECT_MIN_DELAY,
        reconnect_max_delay=config.MQTT_RECONNECT_MAX_DELAY,
    )


def create_app(
    connection: ConnectionManager | None = None,
    handlers: TelemetryHandlers | None = None,
    mqtt_enabled: bool = config.MQTT_ENABLED,
) -> FastAPI:
    """Composition root: wires the broker session, router, ingestor and API."""
    connection = connection or build_connection()
    topic_router = TopicRouter((handlers or TelemetryHandlers()).routes())
    for topic in TEST_TOPICS:
        topic_router.register_override(topic, log_test_message)
    ingestor = TelemetryIngestor(topic_router)
    connection.set_message_handler(ingestor.submit)

    monitor = None
    if config.OFFLINE_CHECK_INTERVAL > 0:
        monitor = OfflineMonitor(config.OFFLINE_CHECK_INTERVAL, config.OFFLINE_TIMEOUT)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Smart bin backend starting up")
        await init_models()
        await ingestor.start()
        if mqtt_enabled:
            # Blocks up to the handshake timeout, keep it off the event loop
            await asyncio.to_thread(connection.init)
        if monitor is not None:
            await monitor.start()
        logger.info("API docs available at http://localhost:8000/docs")

        yield

        logger.info("Smart bin backend shutting down")
        if monitor is not None:
            await monitor.stop()
        await asyncio.to_thread(connection.shutdown)
        await ingestor.stop()

    app = FastAPI(title="Smart Bin Backend", version="0.1.0", lifespan=lifespan)
    app.state.connection = connection
    app.state.topic_router = topic_router
    app.state.ingestor = ingestor

    app.include_router(areas_router)
    app.include_router(devices_router)
    app.include_router(bins_router)
    app.include_router(mqtt_router)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )

    @app.exception_handler(SmartBinError)
    async def smartbin_error_handler(request: Request, exc: SmartBinError) -> JSONResponse:
        if exc.http_status >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}", exc_info=exc)
        return JSONResponse(status_code=exc.http_status, content={"detail": str(exc)})

    @app.get("/api/health")
    async def health_check():
        return {
            "status": "ok",
            "mqtt": "connected" if connection.is_connected() else "disconnected",
        }

    logger.info("FastAPI app created")
    return app


app = create_app()
