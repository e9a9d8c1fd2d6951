# app/routers/websocket.py

from fastapi import APIRouter, WebSocket, Depends
from app.lib.dependencies import get_delivery_channel, get_websocket_manager
from app.lib.delivery_channel import DeliveryChannel
from app.lib.websocket_manager import WebSocketManager
import json
import logging
from starlette.websockets import WebSocketState

router = APIRouter(tags=["Websocket"])


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    channel: DeliveryChannel = Depends(get_delivery_channel),
    websocket_manager: WebSocketManager = Depends(get_websocket_manager),
):
    session = None

    try:
        await websocket.accept()
        session = channel.on_connect(websocket)

        while websocket.client_state == WebSocketState.CONNECTED:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logging.info(f"WebSocket disconnected for session {session.session_id}")
                break

            raw = message.get("text")
            if raw is None:
                await websocket_manager.send_error(session, "Binary frames are not supported")
                continue

            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                await websocket_manager.send_error(session, "Malformed message")
                continue

            await websocket_manager.handle_incoming_websocket_message(session, data)

    except RuntimeError as e:
        if "disconnect message has been received" in str(e):
            logging.info("Disconnect message received")
        else:
            logging.error(f"Runtime error in WebSocket connection: {e}")
    except Exception as e:
        logging.error(f"Unexpected error in WebSocket connection: {e}")
    finally:
        if session is not None:
            try:
                await channel.on_disconnect(session)
            except Exception as e:
                logging.error(
                    f"Error during cleanup for session {session.session_id}: {e}"
                )
