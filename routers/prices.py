"""
Preis Router - Spotpreise aus dem Cache bzw. von metals.dev, Preishistorie
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

import schemas
import price_service
from database import get_db

router = APIRouter(prefix="/api/prices", tags=["Preise"])


@router.get("", response_model=list[schemas.PriceCacheEntry])
async def get_current_prices(db: Session = Depends(get_db)):
    """Aktuelle Cache-Eintraege (ohne API-Aufruf)"""
    return price_service.get_current_prices(db)


@router.get("/detailed", response_model=schemas.DetailedPrices)
async def get_detailed_prices(db: Session = Depends(get_db)):
    """Gold- und Silberpreis, bei veraltetem Cache frisch von metals.dev"""
    return await price_service.get_detailed_prices(db)


@router.get("/history", response_model=list[schemas.PriceHistoryPoint])
async def get_price_history(
    metal_type: Optional[schemas.MetalType] = Query(None, description="Metall, Standard: gold"),
    days: int = Query(
        price_service.HISTORY_DEFAULT_DAYS, ge=1, le=price_service.HISTORY_MAX_DAYS,
        description="Anzahl Tage zurueck"
    ),
    db: Session = Depends(get_db)
):
    """Tageswerte fuer die Preischarts, aelteste zuerst"""
    return price_service.get_price_history(db, metal_type=metal_type, days=days)
