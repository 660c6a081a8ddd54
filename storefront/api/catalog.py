from fastapi import APIRouter, Depends, HTTPException
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import select
from storefront.api.deps import get_db, admin_or_internal
from storefront.core.auth import require_admin
from storefront.db import models
from storefront.schemas import VariationCreate, VariationUpdate, VariationRead, StockUpdate
from storefront.services.inventory import adjust_stock

router = APIRouter()

@router.get('/', response_model=List[VariationRead])
def list_variations(db: Session = Depends(get_db), active: Optional[bool] = None, limit: int = 50, offset: int = 0):
    stmt = select(models.ProductVariation).order_by(models.ProductVariation.sort_order, models.ProductVariation.id)
    if active is not None: stmt = stmt.where(models.ProductVariation.active == active)
    stmt = stmt.offset(offset).limit(limit)
    return db.execute(stmt).scalars().all()

@router.get('/{variation_id}', response_model=VariationRead)
def get_variation(variation_id: int, db: Session = Depends(get_db)):
    obj = db.get(models.ProductVariation, variation_id)
    if not obj: raise HTTPException(status_code=404, detail='Product variation not found')
    return obj

@router.post('/', response_model=VariationRead, status_code=201)
def create_variation(payload: VariationCreate, db: Session = Depends(get_db), _=Depends(require_admin)):
    if db.query(models.ProductVariation).filter(models.ProductVariation.sku == payload.sku).first():
        raise HTTPException(status_code=409, detail='SKU already exists')
    obj = models.ProductVariation(**payload.model_dump())
    db.add(obj); db.commit(); db.refresh(obj)
    return obj

@router.patch('/{variation_id}', response_model=VariationRead)
def update_variation(variation_id: int, payload: VariationUpdate, db: Session = Depends(get_db), _=Depends(require_admin)):
    obj = db.get(models.ProductVariation, variation_id)
    if not obj: raise HTTPException(status_code=404, detail='Product variation not found')
    changes = payload.model_dump(exclude_unset=True)
    nulled = sorted(k for k, v in changes.items() if v is None)
    if nulled: raise HTTPException(status_code=400, detail=f'Fields cannot be null: {", ".join(nulled)}')
    for k, v in changes.items(): setattr(obj, k, v)
    db.add(obj); db.commit(); db.refresh(obj)
    return obj

@router.patch('/{variation_id}/stock', response_model=VariationRead)
def update_stock(variation_id: int, payload: StockUpdate, db: Session = Depends(get_db), _=Depends(admin_or_internal)):
    return adjust_stock(db, variation_id, payload.delta)
