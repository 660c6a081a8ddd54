from typing import Optional
from fastapi import Depends, Header, HTTPException
from storefront.db.session import SessionLocal
from storefront.core.auth import decode_identity, get_optional_identity
from storefront.core.config import settings
from storefront.store.cart_store import cart_owner

def get_db():
    db = SessionLocal()
    try: yield db
    finally: db.close()

def admin_or_internal(
    x_internal_key: Optional[str] = Header(default=None, alias="X-Internal-Key"),
    auth: Optional[str] = Header(default=None, alias="Authorization"),
):
    # 1) allow trusted internal calls
    if x_internal_key and x_internal_key == (settings.SVC_INTERNAL_KEY or ""):
        return True

    # 2) otherwise require admin JWT
    if not auth or not auth.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Unauthorized")
    payload = decode_identity(auth.split(" ", 1)[1])
    if payload.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Admin required")
    return True

def get_cart_owner(
    identity: Optional[dict] = Depends(get_optional_identity),
    x_session_id: Optional[str] = Header(default=None, alias="X-Session-Id"),
) -> str:
    owner = cart_owner(identity.get("sub") if identity else None, x_session_id)
    if not owner:
        raise HTTPException(status_code=401, detail="Authentication or X-Session-Id required")
    return owner
