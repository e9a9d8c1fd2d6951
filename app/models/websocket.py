# app/models/websocket.py

from pydantic import BaseModel, ConfigDict, Field


class BaseWebSocketMessage(BaseModel):
    type: str


class JoinMessage(BaseWebSocketMessage):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId", min_length=1)


class MarkReadMessage(BaseWebSocketMessage):
    model_config = ConfigDict(populate_by_name=True)

    notification_id: str = Field(..., alias="notificationId", min_length=1)
