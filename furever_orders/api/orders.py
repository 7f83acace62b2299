from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from furever_orders.api.deps import ensure_self_or_admin, get_db, get_dispatcher, get_identity_dep, require_admin
from furever_orders.schemas import CreateOrderRequest, OrderRead, StatusUpdate
from furever_orders.services.dispatcher import EventDispatcher
from furever_orders.services.orders import OrderStore
from furever_orders.services.transitions import TransitionEngine

router = APIRouter()

@router.get("", response_model=List[OrderRead])
def list_orders(db: Session = Depends(get_db), _=Depends(require_admin)):
    return [OrderRead.model_validate(o) for o in OrderStore(db).list_all_orders()]

@router.get("/user/{user_id}", response_model=List[OrderRead])
def list_user_orders(user_id: str, db: Session = Depends(get_db), identity: dict = Depends(get_identity_dep)):
    ensure_self_or_admin(identity, user_id)
    return [OrderRead.model_validate(o) for o in OrderStore(db).list_orders_for_customer(user_id)]

@router.get("/{order_id}", response_model=OrderRead)
def get_order(order_id: str, db: Session = Depends(get_db), identity: dict = Depends(get_identity_dep)):
    order = OrderStore(db).get_order(order_id)
    ensure_self_or_admin(identity, order.customer_id)
    return OrderRead.model_validate(order)

@router.post("", response_model=OrderRead, status_code=201)
def create_order(
    payload: CreateOrderRequest,
    db: Session = Depends(get_db),
    identity: dict = Depends(get_identity_dep),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
):
    if payload.user:
        # only admins place orders on behalf of someone else
        ensure_self_or_admin(identity, payload.user)
    result = TransitionEngine(db).place_order(
        items=[it.model_dump(by_alias=True) for it in payload.order_items],
        shipping_address1=payload.shipping_address1,
        shipping_address2=payload.shipping_address2,
        phone=payload.phone,
        payment_method=payload.payment_method,
        customer_id=payload.user or identity["sub"],
    )
    out = OrderRead.model_validate(result.order)
    dispatcher.dispatch(result.events)
    return out

@router.put("/{order_id}", response_model=OrderRead)
def update_status(
    order_id: str,
    payload: StatusUpdate,
    db: Session = Depends(get_db),
    _=Depends(require_admin),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
):
    result = TransitionEngine(db).apply_status(order_id, payload.status)
    out = OrderRead.model_validate(result.order)
    dispatcher.dispatch(result.events)
    return out

@router.put("/{order_id}/cancel", response_model=OrderRead)
def cancel_order(
    order_id: str,
    db: Session = Depends(get_db),
    identity: dict = Depends(get_identity_dep),
    dispatcher: EventDispatcher = Depends(get_dispatcher),
):
    engine = TransitionEngine(db)
    ensure_self_or_admin(identity, engine.store.get_order(order_id).customer_id)
    result = engine.cancel_order(order_id)
    out = OrderRead.model_validate(result.order)
    dispatcher.dispatch(result.events)
    return out

@router.delete("/{order_id}")
def delete_order(order_id: str, db: Session = Depends(get_db), _=Depends(require_admin)):
    OrderStore(db).delete_order(order_id)
    return {"message": "Order deleted."}
