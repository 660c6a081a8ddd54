from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List
from sqlalchemy.orm import Session
from sqlalchemy import select
from storefront.api.deps import get_db
from storefront.core.auth import require_admin
from storefront.db.models import PriceTier
from storefront.schemas import PriceTierCreate, PriceTierUpdate, PriceTierRead, PriceQuote
from storefront.services import pricing

router = APIRouter()

@router.get('/', response_model=List[PriceTierRead])
def list_tiers(db: Session = Depends(get_db)):
    stmt = select(PriceTier).order_by(PriceTier.variation_id, PriceTier.sort_order, PriceTier.min_quantity)
    return db.execute(stmt).scalars().all()

@router.get('/variation/{variation_id}', response_model=List[PriceTierRead])
def list_variation_tiers(variation_id: int, db: Session = Depends(get_db)):
    stmt = (select(PriceTier).where(PriceTier.variation_id == variation_id)
            .order_by(PriceTier.sort_order, PriceTier.min_quantity))
    return db.execute(stmt).scalars().all()

@router.get('/price/{variation_id}', response_model=PriceQuote)
def price_for_quantity(variation_id: int, quantity: int = Query(...), db: Session = Depends(get_db)):
    if quantity < 1:
        raise HTTPException(status_code=400, detail='Quantity must be a positive number')
    unit = pricing.resolve_unit_price(db, variation_id, quantity)
    return PriceQuote(variation_id=variation_id, quantity=quantity, unit_price_cents=unit, total_cents=unit * quantity)

@router.get('/{tier_id}', response_model=PriceTierRead)
def get_tier(tier_id: int, db: Session = Depends(get_db)):
    obj = db.get(PriceTier, tier_id)
    if not obj: raise HTTPException(status_code=404, detail=f'Product price tier with ID {tier_id} not found')
    return obj

@router.post('/', response_model=PriceTierRead, status_code=201)
def create_tier(payload: PriceTierCreate, db: Session = Depends(get_db), _=Depends(require_admin)):
    return pricing.create_tier(db, payload.model_dump())

@router.patch('/{tier_id}', response_model=PriceTierRead)
def update_tier(tier_id: int, payload: PriceTierUpdate, db: Session = Depends(get_db), _=Depends(require_admin)):
    return pricing.update_tier(db, tier_id, payload.model_dump(exclude_unset=True))

@router.delete('/{tier_id}', status_code=204)
def delete_tier(tier_id: int, db: Session = Depends(get_db), _=Depends(require_admin)):
    obj = db.get(PriceTier, tier_id)
    if not obj: raise HTTPException(status_code=404, detail=f'Product price tier with ID {tier_id} not found')
    db.delete(obj); db.commit()
