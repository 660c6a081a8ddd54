"""Quantity-tiered unit pricing.

Tiers of one variation may overlap. Resolution is deterministic anyway: the
matching tier with the highest ``min_quantity`` wins, ties go to the lowest
``sort_order``. Overlap is never rejected when tiers are written.
"""
import logging
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.db.models import PriceTier, ProductVariation
from storefront.errors import BadRequestError, NotFoundError

logger = logging.getLogger(__name__)

NULLABLE_TIER_FIELDS = {"max_quantity"}


def tier_matches(tier, quantity: int) -> bool:
    if not tier.active or tier.min_quantity > quantity:
        return False
    return tier.max_quantity is None or tier.max_quantity >= quantity


def select_tier(tiers: Iterable, quantity: int):
    """Return the most specific active tier covering ``quantity``, or None."""
    matches = [t for t in tiers if tier_matches(t, quantity)]
    if not matches:
        return None
    # stable sort keeps input order as the last tie-break
    matches.sort(key=lambda t: (-t.min_quantity, t.sort_order or 0))
    return matches[0]


def list_active_tiers(db: Session, variation_id: int) -> list[PriceTier]:
    stmt = (
        select(PriceTier)
        .where(PriceTier.variation_id == variation_id, PriceTier.active.is_(True))
        .order_by(PriceTier.min_quantity.desc(), PriceTier.sort_order.asc(), PriceTier.id.asc())
    )
    return list(db.execute(stmt).scalars().all())


def resolve_unit_price(db: Session, variation_id: int, quantity: int) -> int:
    """Effective unit price in cents for ``quantity`` units of a variation."""
    if quantity < 1:
        raise BadRequestError("Quantity must be a positive number")
    variation = db.get(ProductVariation, variation_id)
    if not variation:
        raise NotFoundError("Product variation", variation_id)
    tier = select_tier(list_active_tiers(db, variation_id), quantity)
    if tier is None:
        return variation.price_cents
    return tier.price_cents


def validate_tier_range(min_quantity: int, max_quantity: Optional[int]) -> None:
    if min_quantity is None or min_quantity < 1:
        raise BadRequestError("min_quantity must be greater than 0")
    if max_quantity is not None and max_quantity <= min_quantity:
        raise BadRequestError("min_quantity must be less than max_quantity")


def create_tier(db: Session, data: dict) -> PriceTier:
    variation_id = data["variation_id"]
    if not db.get(ProductVariation, variation_id):
        raise NotFoundError("Product variation", variation_id)
    validate_tier_range(data["min_quantity"], data.get("max_quantity"))

    tier = PriceTier(**data)
    db.add(tier); db.commit(); db.refresh(tier)
    logger.info("Price tier %s created for variation %s", tier.id, variation_id)
    return tier


def update_tier(db: Session, tier_id: int, changes: dict) -> PriceTier:
    tier = db.get(PriceTier, tier_id)
    if not tier:
        raise NotFoundError("Product price tier", tier_id)
    nulled = sorted(k for k, v in changes.items() if v is None and k not in NULLABLE_TIER_FIELDS)
    if nulled:
        raise BadRequestError(f"Fields cannot be null: {', '.join(nulled)}")
    if "variation_id" in changes and not db.get(ProductVariation, changes["variation_id"]):
        raise NotFoundError("Product variation", changes["variation_id"])
    # check the merged range, a partial update can break it from either side
    validate_tier_range(
        changes.get("min_quantity", tier.min_quantity),
        changes["max_quantity"] if "max_quantity" in changes else tier.max_quantity,
    )

    for k, v in changes.items():
        setattr(tier, k, v)
    db.add(tier); db.commit(); db.refresh(tier)
    return tier
