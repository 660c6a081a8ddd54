"""Reconcile payment-gateway events into order, inventory and cart state.

Settlement runs in a fixed order:

1. append the payment detail row (audit trail),
2. persist the mapped order status (committed together with 1),
3. on a transition into COMPLETED, clear the buyer's cart,
4. on a transition into COMPLETED, decrement stock for every order line.

Steps 3 and 4 are best-effort. Their failures are logged and never undo the
payment or surface to the gateway, since a failed delivery would be retried.
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.db.models import Order, OrderPaymentDetail, OrderStatus
from storefront.errors import BadRequestError, ConflictError, NotFoundError
from storefront.kafka import producer
from storefront.services.inventory import adjust_stock
from storefront.store import cart_store

logger = logging.getLogger(__name__)

GATEWAY_STATUS_MAP = {
    "approved": OrderStatus.COMPLETED,
    "pending": OrderStatus.PENDING,
    "in_process": OrderStatus.PROCESSING,
    "rejected": OrderStatus.CANCELLED,
    "failed": OrderStatus.CANCELLED,
    "cancelled": OrderStatus.CANCELLED,
    "refunded": OrderStatus.REFUNDED,
}

TERMINAL_STATUSES = {OrderStatus.COMPLETED, OrderStatus.CANCELLED, OrderStatus.REFUNDED}


def map_payment_status(payment_status: str) -> Optional[OrderStatus]:
    """Order status for a gateway payment status; None when unrecognized."""
    return GATEWAY_STATUS_MAP.get((payment_status or "").lower())


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    if current == target:
        return True
    if current in TERMINAL_STATUSES:
        # the only way out of a terminal state
        return current == OrderStatus.COMPLETED and target == OrderStatus.REFUNDED
    return True


def find_order_by_reference(db: Session, external_reference) -> Order:
    try:
        order_id = int(str(external_reference))
    except (TypeError, ValueError):
        raise NotFoundError("Order", external_reference)
    order = db.get(Order, order_id)
    if not order:
        raise NotFoundError("Order", external_reference)
    return order


def handle_payment_webhook(db: Session, gateway, notification: Dict[str, Any]) -> Dict[str, Any]:
    ntype = notification.get("type")
    if ntype != "payment":
        logger.info("Unhandled webhook type %r (action %r), acknowledged", ntype, notification.get("action"))
        return {"received": True, "processed": False, "reason": "unhandled_type"}

    payment_id = (notification.get("data") or {}).get("id")
    if not payment_id:
        raise BadRequestError("Webhook notification has no data.id")

    # only the id is taken from the body, state always comes from the gateway
    payment = gateway.get_payment(str(payment_id))
    return settle_payment(db, payment)


def settle_payment(db: Session, payment: Dict[str, Any]) -> Dict[str, Any]:
    order = find_order_by_reference(db, payment.get("external_reference"))
    transaction_id = str(payment["id"])
    payment_status = (payment.get("status") or "").lower()

    duplicate = (
        db.query(OrderPaymentDetail)
        .filter(
            OrderPaymentDetail.order_id == order.id,
            OrderPaymentDetail.transaction_id == transaction_id,
            OrderPaymentDetail.status == payment_status,
        )
        .first()
    )
    if duplicate:
        logger.info("Duplicate delivery for payment %s (%s) on order %s, skipped",
                    transaction_id, payment_status, order.id)
        return {"received": True, "processed": False, "reason": "duplicate",
                "order_id": order.id, "status": order.status}

    order.payment_details.append(OrderPaymentDetail(
        method=payment.get("payment_method_id") or "",
        status=payment_status,
        status_detail=payment.get("status_detail") or "",
        transaction_id=transaction_id,
    ))
    try:
        db.flush()
    except IntegrityError:
        # a concurrent delivery of the same event won the insert
        db.rollback()
        logger.info("Concurrent duplicate delivery for payment %s on order %s", transaction_id, order.id)
        return {"received": True, "processed": False, "reason": "duplicate",
                "order_id": order.id, "status": order.status}

    current = OrderStatus(order.status)
    target = map_payment_status(payment_status)
    transitioned = False
    if target is None:
        logger.warning("Unhandled payment status %r for order %s, status kept %s",
                       payment_status, order.id, current.value)
    elif not can_transition(current, target):
        logger.warning("Rejected transition %s -> %s for order %s (payment %s)",
                       current.value, target.value, order.id, transaction_id)
    elif target != current:
        order.status = target.value
        transitioned = True
    db.commit()

    if transitioned:
        logger.info("Order %s moved %s -> %s by payment %s", order.id, current.value, target.value, transaction_id)
        producer.emit_order_event({"type": "order.status_changed", "order_id": order.id,
                                   "status": order.status, "previous_status": current.value,
                                   "payment_id": transaction_id})
        if target == OrderStatus.COMPLETED:
            clear_buyer_cart(order)
            decrement_order_stock(db, order)

    return {"received": True, "processed": True, "order_id": order.id,
            "status": order.status, "payment_status": payment_status}


def clear_buyer_cart(order: Order) -> bool:
    owner = cart_store.cart_owner(order.user_id, None)
    if owner is None:
        logger.warning("Order %s has no owning user, no cart to clear", order.id)
        return False
    try:
        cart_store.clear_cart(owner)
    except Exception:
        logger.exception("Failed to clear cart %s after order %s completed", owner, order.id)
        return False
    return True


def decrement_order_stock(db: Session, order: Order) -> int:
    """Decrement stock per line; each line is isolated. Returns lines applied."""
    applied = 0
    for item in list(order.items):
        try:
            adjust_stock(db, item.variation_id, -item.quantity)
            applied += 1
        except Exception:
            db.rollback()
            logger.exception("MANUAL REVIEW: stock not decremented for variation %s (qty %s) of order %s",
                             item.variation_id, item.quantity, order.id)
    return applied


def refund_order(db: Session, order_id: int) -> Order:
    """Admin-initiated refund, allowed from COMPLETED only."""
    order = db.get(Order, order_id)
    if not order:
        raise NotFoundError("Order", order_id)
    current = OrderStatus(order.status)
    if current != OrderStatus.COMPLETED:
        raise ConflictError(f"Order {order_id} cannot be refunded from status {current.value}")
    order.status = OrderStatus.REFUNDED.value
    db.add(order); db.commit(); db.refresh(order)
    logger.info("Order %s refunded by admin", order.id)
    producer.emit_order_event({"type": "order.status_changed", "order_id": order.id,
                               "status": order.status, "previous_status": current.value})
    return order
