import hashlib
import hmac
import json
from typing import Optional

from fastapi import Header, HTTPException, Request
from storefront.core.config import settings


def parse_signature(x_signature: str) -> tuple[Optional[str], Optional[str]]:
    """Split ``ts=<ts>,v1=<hash>`` into (ts, hash)."""
    ts = digest = None
    for part in x_signature.split(","):
        key, _, value = part.partition("=")
        key, value = key.strip(), value.strip()
        if key == "ts":
            ts = value
        elif key == "v1":
            digest = value
    return ts, digest


def signature_manifest(data_id: str, request_id: str, ts: str) -> str:
    return f"id:{data_id};request-id:{request_id};ts:{ts};"


def compute_signature(secret: str, data_id: str, request_id: str, ts: str) -> str:
    manifest = signature_manifest(data_id, request_id, ts)
    return hmac.new(secret.encode("utf-8"), manifest.encode("utf-8"), hashlib.sha256).hexdigest()


async def _body_data_id(request: Request) -> Optional[str]:
    try:
        body = json.loads(await request.body() or b"{}")
    except ValueError:
        return None
    data = body.get("data") if isinstance(body, dict) else None
    if isinstance(data, dict) and data.get("id") is not None:
        return str(data["id"])
    return None


async def verify_webhook_signature(
    request: Request,
    x_signature: Optional[str] = Header(default=None, alias="x-signature"),
    x_request_id: Optional[str] = Header(default=None, alias="x-request-id"),
) -> str:
    """Check the gateway signature and return the data id it covers."""
    query_id = request.query_params.get("data.id")
    body_id = await _body_data_id(request)
    data_id = query_id or body_id
    if not x_signature or not x_request_id or not data_id:
        raise HTTPException(status_code=401, detail="Missing required webhook headers or query parameters")
    # the signed id must be the one settlement acts on
    if query_id and body_id and query_id != body_id:
        raise HTTPException(status_code=401, detail="Webhook data.id does not match the signed id")

    ts, received = parse_signature(x_signature)
    if not ts or not received:
        raise HTTPException(status_code=401, detail="Invalid x-signature format")

    secret = settings.PAYMENT_WEBHOOK_SECRET
    if not secret:
        raise HTTPException(status_code=500, detail="Webhook secret is not configured")

    expected = compute_signature(secret, data_id, x_request_id, ts)
    if not hmac.compare_digest(expected, received):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")
    return data_id
