from fastapi import APIRouter, Depends, HTTPException
from typing import List
from sqlalchemy.orm import Session
from sqlalchemy import select
from storefront.api.deps import get_db
from storefront.core.auth import get_current_identity, require_admin
from storefront.db import models
from storefront.schemas import OrderRead
from storefront.services.settlement import refund_order

router = APIRouter()

@router.get("/v1/orders", response_model=List[OrderRead])
def list_my_orders(identity: dict = Depends(get_current_identity), db: Session = Depends(get_db)):
    stmt = (select(models.Order).where(models.Order.user_id == identity.get("sub"))
            .order_by(models.Order.id.desc()))
    return db.execute(stmt).scalars().all()

@router.get("/v1/orders/{order_id}", response_model=OrderRead)
def get_order(order_id: int, identity: dict = Depends(get_current_identity), db: Session = Depends(get_db)):
    obj = db.get(models.Order, order_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Order not found")
    if obj.user_id != identity.get("sub") and identity.get("role") != "admin":
        raise HTTPException(status_code=404, detail="Order not found")
    return obj

@router.post("/v1/orders/{order_id}/refund", response_model=OrderRead)
def refund(order_id: int, db: Session = Depends(get_db), _=Depends(require_admin)):
    return refund_order(db, order_id)
