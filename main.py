import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from motor.motor_asyncio import AsyncIOMotorClient
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

# Import routers
from app.routers import health, notifications, websocket

# Import custom modules and managers
from app.lib.config import ConfigSingleton
from app.lib.connection_manager import ConnectionManager
from app.lib.connection_registry import ConnectionRegistry
from app.lib.delivery_channel import DeliveryChannel
from app.lib.event_publisher import EventPublisher
from app.lib.logging_config import setup_logging
from app.lib.notification_manager import NotificationManager
from app.lib.notification_store import NotificationStore
from app.lib.post_directory import PostDirectory
from app.lib.profile_directory import ProfileDirectory
from app.lib.websocket_manager import WebSocketManager
from app.middleware.custom_cors_middleware import CustomCORSMiddleware
from app.middleware.identity_middleware import IdentityMiddleware


async def initialize_managers(app: FastAPI):
    """Initialize all application managers in the correct dependency order."""
    try:
        database = await app.state.connection_manager.get_database()

        store = NotificationStore(database)
        await store.ensure_indexes()
        app.state.notification_store = store
        logging.info("NotificationStore initialized")

        app.state.profile_directory = ProfileDirectory(database)
        app.state.post_directory = PostDirectory(database)

        # The registry is owned by the app and handed to the components that need it
        app.state.connection_registry = ConnectionRegistry()
        app.state.delivery_channel = DeliveryChannel(app.state.connection_registry)
        logging.info("ConnectionRegistry and DeliveryChannel initialized")

        app.state.event_publisher = EventPublisher(
            store,
            app.state.connection_registry,
            app.state.delivery_channel,
            app.state.profile_directory,
            app.state.post_directory,
        )
        logging.info("EventPublisher initialized")

        app.state.notification_manager = NotificationManager(
            store,
            app.state.profile_directory,
            app.state.post_directory,
            app.state.event_publisher,
        )
        logging.info("NotificationManager initialized")

        app.state.websocket_manager = WebSocketManager(
            app.state.delivery_channel, app.state.notification_manager
        )
        logging.info("WebSocketManager initialized")

    except Exception as e:
        logging.error(f"Error initializing managers: {e}")
        raise


def create_app(
    mongo_client: Optional[AsyncIOMotorClient] = None,
    config_overrides: Optional[Dict[str, Any]] = None,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifecycle management"""
        try:
            config = await ConfigSingleton.initialize(overrides=config_overrides)
            app.state.config = config
            setup_logging(config["log_level"])
            logging.info("Starting up the application")

            app.state.connection_manager = await ConnectionManager.create(
                config, mongo_client=mongo_client
            )
            logging.info("ConnectionManager initialized")

            await initialize_managers(app)
            logging.info("Application initialization complete")
        except Exception as e:
            logging.error(f"Critical error during application initialization: {e}")
            raise

        yield

        # Shutdown
        logging.info("Starting application shutdown")
        try:
            if hasattr(app.state, "event_publisher"):
                await app.state.event_publisher.wait_for_deliveries(
                    timeout=app.state.config["shutdown_timeout"]
                )
            if hasattr(app.state, "connection_manager"):
                await app.state.connection_manager.close_clients()
                logging.info("Connection manager closed successfully")
        except Exception as e:
            logging.error(f"Error during application shutdown: {e}")
        finally:
            logging.info("Application shutdown complete")

    app = FastAPI(lifespan=lifespan)

    for router in (health, notifications, websocket):
        app.include_router(router.router)

    register_exception_handlers(app)

    app.add_middleware(CustomCORSMiddleware)
    app.add_middleware(IdentityMiddleware)
    return app


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(StarletteHTTPException)
    async def custom_http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ):
        """Handle HTTP exceptions with custom format."""
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "status": "error",
                "message": (
                    exc.detail["message"]
                    if isinstance(exc.detail, dict) and "message" in exc.detail
                    else str(exc.detail)
                ),
                "data": (
                    exc.detail["data"]
                    if isinstance(exc.detail, dict) and "data" in exc.detail
                    else "error"
                ),
                "details": (
                    exc.detail["details"]
                    if isinstance(exc.detail, dict) and "details" in exc.detail
                    else None
                ),
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        """Handle request validation errors."""
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "status": "error",
                "message": "Validation error",
                "data": "validation_error",
                "details": exc.errors(),
            },
        )

    @app.exception_handler(Exception)
    async def custom_exception_handler(request: Request, exc: Exception):
        """Handle all other exceptions."""
        logging.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "status": "error",
                "message": "Internal server error",
                "data": "internal_server_error",
                "details": str(exc),
            },
        )


app = create_app()
