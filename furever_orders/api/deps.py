from typing import Optional
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
import jwt
from furever_orders.core.config import settings
from furever_orders.db.session import SessionLocal
from furever_orders.errors import PermissionDenied
from furever_orders.kafka.producer import publish_order_event
from furever_orders.services.dispatcher import EventDispatcher
from furever_orders.services.mailer import MailTransport, get_transport
from furever_orders.services.notifications import NotificationFanout

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

security = HTTPBearer(auto_error=False)

def get_identity_dep(creds: HTTPAuthorizationCredentials = Depends(security)) -> dict:
    if not creds:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        payload = jwt.decode(creds.credentials, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    if payload.get("type") != "access" or not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid access token")
    return payload  # sub is the user id

def is_admin(identity: dict) -> bool:
    return identity.get("role") == "admin" or identity.get("isAdmin") is True

def require_admin(identity: dict = Depends(get_identity_dep)) -> dict:
    if not is_admin(identity):
        raise HTTPException(status_code=403, detail="Admin only")
    return identity

def ensure_self_or_admin(identity: dict, user_id: Optional[str]) -> None:
    if is_admin(identity):
        return
    if not user_id or identity.get("sub") != user_id:
        raise PermissionDenied("Not allowed to access another user's data")

def get_mail_transport() -> MailTransport:
    return get_transport()

def get_publisher():
    return publish_order_event if settings.EVENTS_ENABLED else None

def get_fanout(db: Session = Depends(get_db), transport: MailTransport = Depends(get_mail_transport)) -> NotificationFanout:
    return NotificationFanout(db, transport=transport)

def get_dispatcher(db: Session = Depends(get_db), fanout: NotificationFanout = Depends(get_fanout),
                   publish=Depends(get_publisher)) -> EventDispatcher:
    return EventDispatcher(db, fanout, publish=publish)
