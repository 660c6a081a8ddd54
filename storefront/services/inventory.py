import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from storefront.db.models import ProductVariation
from storefront.errors import InsufficientStockError, NotFoundError

logger = logging.getLogger(__name__)


def adjust_stock(db: Session, variation_id: int, delta: int) -> ProductVariation:
    """Apply a signed stock delta as one conditional UPDATE.

    No row is written when the result would go below zero. Zero affected rows
    means either the variation is missing or stock is insufficient; only then
    is the row read to tell the two apart.
    """
    stmt = (
        update(ProductVariation)
        .where(ProductVariation.id == variation_id, ProductVariation.stock + delta >= 0)
        .values(stock=ProductVariation.stock + delta)
        .execution_options(synchronize_session=False)
    )
    result = db.execute(stmt)
    if result.rowcount == 0:
        db.rollback()
        variation = db.get(ProductVariation, variation_id)
        if not variation:
            raise NotFoundError("Product variation", variation_id)
        raise InsufficientStockError(
            [shortage(variation.id, variation.name, -delta, variation.stock)],
            message=f"Insufficient stock for {variation.name}: available {variation.stock}, change {delta}",
        )
    db.commit()

    variation = db.get(ProductVariation, variation_id)
    db.refresh(variation)
    logger.info("Stock of variation %s changed by %s, now %s", variation_id, delta, variation.stock)
    return variation


def shortage(variation_id, name: str, requested: int, available: int) -> dict:
    return {
        "productId": str(variation_id),
        "productName": name,
        "requestedQuantity": requested,
        "availableQuantity": available,
    }


def find_shortages(db: Session, lines: list[dict]) -> list[dict]:
    """Check every line against live stock and collect all shortages.

    ``lines`` are cart items with ``variation_id``, ``quantity`` and ``title``.
    Missing or inactive variations count as zero available.
    """
    problems = []
    for line in lines:
        variation = db.get(ProductVariation, line["variation_id"])
        if not variation or not variation.active:
            problems.append(shortage(line["variation_id"], line.get("title") or "Unknown product", line["quantity"], 0))
            continue
        if variation.stock < line["quantity"]:
            problems.append(shortage(variation.id, variation.name, line["quantity"], variation.stock))
    return problems
