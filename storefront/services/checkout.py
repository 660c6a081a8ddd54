"""Cart to PENDING order to gateway checkout preference.

Stock is validated for every line before anything is written, so a rejected
checkout leaves no order behind. Once the order exists it is not rolled back:
a gateway failure leaves it PENDING.
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from storefront.core.config import settings
from storefront.db.models import Order, OrderItem, OrderStatus, ProductVariation
from storefront.errors import BadRequestError, InsufficientStockError, PaymentGatewayError
from storefront.kafka import producer
from storefront.services.inventory import find_shortages

logger = logging.getLogger(__name__)


def cents_to_units(cents: int) -> float:
    return round(cents / 100, 2)


def create_order(db: Session, user_id: Optional[str], cart: Dict[str, Any]) -> Order:
    order = Order(
        user_id=user_id,
        status=OrderStatus.PENDING.value,
        # price locked when the items were added, tiers are not re-resolved here
        total_cents=int(cart["total_price_cents"]),
        currency=settings.DEFAULT_CURRENCY,
    )
    db.add(order)
    for it in cart["items"]:
        variation = db.get(ProductVariation, it["variation_id"])
        order.items.append(OrderItem(
            variation_id=it["variation_id"],
            title=variation.name if variation else it["title"],
            quantity=int(it["quantity"]),
            unit_price_cents=int(it["unit_price_cents"]),
        ))
    db.commit(); db.refresh(order)
    return order


def create_checkout_from_cart(db: Session, gateway, cart: Dict[str, Any], user_id: str) -> Dict[str, Any]:
    items = cart.get("items") or []
    if not items:
        raise BadRequestError("Cart is empty")

    problems = find_shortages(db, items)
    if problems:
        logger.info("Checkout rejected for user %s: %d line(s) short", user_id, len(problems))
        raise InsufficientStockError(problems)

    order = create_order(db, user_id, cart)
    logger.info("Order %s created PENDING for user %s, total %s", order.id, user_id, order.total_cents)
    producer.emit_order_event({
        "type": "order.created",
        "order_id": order.id,
        "user_id": user_id,
        "amount_cents": order.total_cents,
        "items": [{"variation_id": it.variation_id, "quantity": it.quantity} for it in order.items],
    })

    lines = [
        {
            "id": str(it.variation_id),
            "title": it.title,
            "quantity": it.quantity,
            "unit_price": cents_to_units(it.unit_price_cents),
            "currency_id": order.currency,
        }
        for it in order.items
    ]
    back_urls = {
        "success": settings.MERCADO_PAGO_SUCCESS_URL,
        "failure": settings.MERCADO_PAGO_FAILURE_URL,
        "pending": settings.MERCADO_PAGO_PENDING_URL,
    }
    try:
        preference = gateway.create_preference(
            lines,
            back_urls,
            external_reference=str(order.id),
            notification_url=settings.MERCADO_PAGO_NOTIFICATION_URL or None,
        )
    except PaymentGatewayError:
        logger.warning("Order %s left PENDING: preference creation failed", order.id)
        raise

    return {
        "order_id": order.id,
        "status": order.status,
        "total_cents": order.total_cents,
        "currency": order.currency,
        "preference_id": preference.get("id"),
        "init_point": preference.get("init_point"),
        "sandbox_init_point": preference.get("sandbox_init_point"),
    }
