from typing import List
from fastapi import APIRouter, Depends
from furever_orders.api.deps import ensure_self_or_admin, get_fanout, get_identity_dep
from furever_orders.schemas import NotificationRead, UnreadCount
from furever_orders.services.notifications import NotificationFanout

router = APIRouter()

@router.get("/user/{user_id}", response_model=List[NotificationRead])
def list_notifications(user_id: str, fanout: NotificationFanout = Depends(get_fanout),
                       identity: dict = Depends(get_identity_dep)):
    ensure_self_or_admin(identity, user_id)
    return [NotificationRead.model_validate(n) for n in fanout.list_for_user(user_id)]

@router.get("/user/{user_id}/unread-count", response_model=UnreadCount)
def unread_count(user_id: str, fanout: NotificationFanout = Depends(get_fanout),
                 identity: dict = Depends(get_identity_dep)):
    ensure_self_or_admin(identity, user_id)
    return UnreadCount(count=fanout.unread_count(user_id))

@router.put("/{notification_id}/read", response_model=NotificationRead)
def mark_read(notification_id: str, fanout: NotificationFanout = Depends(get_fanout),
              identity: dict = Depends(get_identity_dep)):
    ensure_self_or_admin(identity, fanout.get(notification_id).user_id)
    return NotificationRead.model_validate(fanout.mark_read(notification_id))

@router.put("/user/{user_id}/read-all")
def mark_all_read(user_id: str, fanout: NotificationFanout = Depends(get_fanout),
                  identity: dict = Depends(get_identity_dep)):
    ensure_self_or_admin(identity, user_id)
    updated = fanout.mark_all_read(user_id)
    return {"message": "All notifications marked as read.", "updated": updated}
