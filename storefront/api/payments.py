import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.api.deps import get_db
from storefront.core.auth import get_current_identity
from storefront.core.webhook import verify_webhook_signature
from storefront.errors import BadRequestError, NotFoundError
from storefront.schemas import CheckoutResponse, WebhookAck, WebhookNotification
from storefront.services.checkout import create_checkout_from_cart
from storefront.services.gateway import get_gateway
from storefront.services.settlement import handle_payment_webhook
from storefront.store.cart_store import cart_owner, get_cart

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/v1/payments/mercadopago/checkout", response_model=CheckoutResponse, status_code=201)
def checkout(identity: dict = Depends(get_current_identity), db: Session = Depends(get_db), gateway=Depends(get_gateway)):
    user_id = identity.get("sub")
    cart = get_cart(cart_owner(user_id, None))
    return create_checkout_from_cart(db, gateway, cart, user_id)

@router.post("/v1/payments/mercadopago/webhook", response_model=WebhookAck, response_model_exclude_none=True)
def webhook(payload: WebhookNotification, db: Session = Depends(get_db), gateway=Depends(get_gateway),
            data_id: str = Depends(verify_webhook_signature)):
    notification = payload.model_dump()
    notification["data"] = {"id": data_id}
    try:
        return handle_payment_webhook(db, gateway, notification)
    except (NotFoundError, BadRequestError) as exc:
        # acknowledged anyway: a non-2xx answer makes the gateway redeliver forever
        logger.error("Webhook %s not settled: %s", payload.id, exc.message)
        return WebhookAck(processed=False, reason=exc.message)
