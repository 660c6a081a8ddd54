"""Cart mutations. Each line caches the unit price resolved for its quantity."""
from sqlalchemy.orm import Session

from storefront.db.models import ProductVariation
from storefront.errors import BadRequestError, NotFoundError
from storefront.services.pricing import resolve_unit_price
from storefront.store import cart_store


def _priced_line(db: Session, variation: ProductVariation, quantity: int) -> dict:
    if variation.stock < quantity:
        raise BadRequestError(
            f"Only {variation.stock} units available for {variation.name}. Requested: {quantity}"
        )
    unit = resolve_unit_price(db, variation.id, quantity)
    return {
        "variation_id": variation.id,
        "title": variation.name,
        "quantity": quantity,
        "unit_price_cents": unit,
        "line_price_cents": unit * quantity,
    }


def _active_variation(db: Session, variation_id: int) -> ProductVariation:
    variation = db.get(ProductVariation, variation_id)
    if not variation or not variation.active:
        raise NotFoundError("Product variation", variation_id)
    return variation


def add_item(db: Session, owner: str, variation_id: int, quantity: int) -> dict:
    variation = _active_variation(db, variation_id)
    if variation.stock <= 0:
        raise BadRequestError(f"Product {variation.name} is out of stock")

    existing = cart_store.get_item(owner, variation_id)
    total_qty = quantity + (existing["quantity"] if existing else 0)
    # re-priced for the merged quantity, a bigger line can reach a deeper tier
    cart_store.put_item(owner, _priced_line(db, variation, total_qty))
    return cart_store.get_cart(owner)


def update_item(db: Session, owner: str, variation_id: int, quantity: int) -> dict:
    if quantity == 0:
        cart_store.delete_item(owner, variation_id)
        return cart_store.get_cart(owner)
    if not cart_store.get_item(owner, variation_id):
        raise NotFoundError("Cart item", variation_id)
    variation = _active_variation(db, variation_id)
    cart_store.put_item(owner, _priced_line(db, variation, quantity))
    return cart_store.get_cart(owner)


def remove_item(owner: str, variation_id: int) -> dict:
    if not cart_store.delete_item(owner, variation_id):
        raise NotFoundError("Cart item", variation_id)
    return cart_store.get_cart(owner)
