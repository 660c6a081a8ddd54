
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_db, get_cart_owner
from storefront.schemas import CartItemAdd, CartItemUpdate, CartRead
from storefront.services import cart as cart_service
from storefront.store.cart_store import get_cart, clear_cart

router = APIRouter()

@router.get("/v1/cart", response_model=CartRead)
def get_my_cart(owner: str = Depends(get_cart_owner)):
    return get_cart(owner)

@router.post("/v1/cart/items", response_model=CartRead, status_code=201)
def add_item(payload: CartItemAdd, owner: str = Depends(get_cart_owner), db: Session = Depends(get_db)):
    return cart_service.add_item(db, owner, payload.variation_id, payload.quantity)

@router.patch("/v1/cart/items/{variation_id}", response_model=CartRead)
def update_item(variation_id: int, payload: CartItemUpdate, owner: str = Depends(get_cart_owner), db: Session = Depends(get_db)):
    return cart_service.update_item(db, owner, variation_id, payload.quantity)

@router.delete("/v1/cart/items/{variation_id}", response_model=CartRead)
def remove_item(variation_id: int, owner: str = Depends(get_cart_owner)):
    return cart_service.remove_item(owner, variation_id)

@router.post("/v1/cart/clear", response_model=CartRead)
def clear(owner: str = Depends(get_cart_owner)):
    clear_cart(owner)
    return get_cart(owner)
