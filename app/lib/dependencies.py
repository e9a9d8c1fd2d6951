# app/lib/dependencies.py

from typing import Any, Dict

from fastapi import Request, WebSocket

from app.lib.config import ConfigSingleton
from app.lib.connection_registry import ConnectionRegistry
from app.lib.delivery_channel import DeliveryChannel
from app.lib.notification_manager import NotificationManager
from app.lib.websocket_manager import WebSocketManager


def get_config() -> Dict[str, Any]:
    """Retrieve the application configuration singleton.

    Returns:
        Dict[str, Any]: Application configuration dictionary.
    """
    return ConfigSingleton.get_config()


def get_http_notification_manager(request: Request) -> NotificationManager:
    """HTTP-specific notification manager dependency.

    Args:
        request: The HTTP request object

    Returns:
        NotificationManager: Notification manager instance for HTTP contexts
    """
    return request.app.state.notification_manager


def get_http_connection_registry(request: Request) -> ConnectionRegistry:
    return request.app.state.connection_registry


def get_delivery_channel(websocket: WebSocket) -> DeliveryChannel:
    return websocket.app.state.delivery_channel


def get_websocket_manager(websocket: WebSocket) -> WebSocketManager:
    """Get the WebSocket manager.

    Args:
        websocket: The WebSocket connection object

    Returns:
        WebSocketManager: Manager instance for handling client frames
    """
    return websocket.app.state.websocket_manager
