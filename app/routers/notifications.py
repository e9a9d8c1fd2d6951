from fastapi import APIRouter, Depends, HTTPException, Query, Request
from app.lib.dependencies import get_config, get_http_notification_manager
from app.lib.exceptions import (
    InvalidNotificationError,
    NotificationForbiddenError,
    NotificationNotFoundError,
)
from app.lib.notification_manager import NotificationManager
import logging

router = APIRouter(tags=["Notifications"])


def get_user_id(request: Request) -> str:
    user_id = getattr(request.state, "user_id", None)
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized access")
    return user_id


@router.get("/notifications")
async def list_notifications(
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1),
    user_id: str = Depends(get_user_id),
    config: dict = Depends(get_config),
    notification_manager: NotificationManager = Depends(get_http_notification_manager),
):
    page_size = min(limit or config["default_page_size"], config["max_page_size"])
    try:
        data = await notification_manager.list_notifications(user_id, page, page_size)
        return {
            "status": "success",
            "data": data,
            "message": "Notifications retrieved successfully",
        }
    except InvalidNotificationError as e:
        logging.error(f"Value error in list_notifications: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/notifications/read-all/bulk")
async def mark_all_notifications_read(
    user_id: str = Depends(get_user_id),
    notification_manager: NotificationManager = Depends(get_http_notification_manager),
):
    modified_count = await notification_manager.mark_all_read(user_id)
    return {
        "status": "success",
        "data": {"modifiedCount": modified_count},
        "message": "All notifications marked as read",
    }


@router.put("/notifications/{notification_id}/read")
async def mark_notification_read(
    notification_id: str,
    user_id: str = Depends(get_user_id),
    notification_manager: NotificationManager = Depends(get_http_notification_manager),
):
    try:
        unread_count = await notification_manager.mark_read(user_id, notification_id)
    except NotificationNotFoundError as e:
        logging.info(f"Mark read on missing notification: {e}")
        raise HTTPException(status_code=404, detail="Notification not found")
    except NotificationForbiddenError as e:
        logging.warning(f"Forbidden mark read: {e}")
        raise HTTPException(status_code=403, detail="Not authorized")
    return {
        "status": "success",
        "data": {"notificationId": notification_id, "unreadCount": unread_count},
        "message": "Notification marked as read",
    }


@router.get("/notifications/unread-count/count")
async def get_unread_count(
    user_id: str = Depends(get_user_id),
    notification_manager: NotificationManager = Depends(get_http_notification_manager),
):
    unread_count = await notification_manager.unread_count(user_id)
    return {
        "status": "success",
        "data": {"unreadCount": unread_count},
        "message": "Unread count retrieved successfully",
    }
