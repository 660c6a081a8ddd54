
import json
from typing import Dict, Any, Optional
from redis import Redis
from storefront.core.config import settings

def get_client() -> Redis:
    return Redis.from_url(settings.REDIS_URL, decode_responses=True)

def cart_owner(user_id: Optional[str], session_id: Optional[str]) -> Optional[str]:
    """An authenticated user wins over an anonymous session."""
    if user_id:
        return f"user:{user_id}"
    if session_id:
        return f"session:{session_id}"
    return None

def cart_key(owner: str) -> str:
    return f"cart:{owner}"

def get_cart(owner: str) -> Dict[str, Any]:
    r = get_client()
    raw = r.hgetall(cart_key(owner))  # {variation_id_str: json}
    items = []
    for _, val in sorted(raw.items(), key=lambda kv: int(kv[0])):
        items.append(json.loads(val))
    # totals are always derived from the current lines
    return {
        "id": owner,
        "items": items,
        "total_items": sum(int(it["quantity"]) for it in items),
        "total_price_cents": sum(int(it["line_price_cents"]) for it in items),
    }

def get_item(owner: str, variation_id: int) -> Optional[Dict[str, Any]]:
    val = get_client().hget(cart_key(owner), str(variation_id))
    return json.loads(val) if val else None

def put_item(owner: str, item: Dict[str, Any]):
    r = get_client()
    r.hset(cart_key(owner), str(item["variation_id"]), json.dumps(item))

def delete_item(owner: str, variation_id: int) -> bool:
    return bool(get_client().hdel(cart_key(owner), str(variation_id)))

def clear_cart(owner: str):
    r = get_client()
    r.delete(cart_key(owner))
