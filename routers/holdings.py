"""
Holdings Router - Bestaende des eingeloggten Users, Zusammenfassung, Performance
"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

import models
import schemas
import price_service
from auth import get_current_user
from database import get_db

router = APIRouter(prefix="/api/holdings", tags=["Holdings"])

REQUIRED_FIELDS = ("metal_type", "weight_oz", "form_type", "denomination", "quantity")


def get_own_holding(db: Session, user: models.User, holding_id: int) -> models.Holding:
    """Holding des Users laden, 404 wenn nicht vorhanden oder fremd"""
    holding = db.query(models.Holding).filter(
        models.Holding.id == holding_id,
        models.Holding.user_id == user.id
    ).first()

    if not holding:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Holding nicht gefunden")

    return holding


def total_oz(holdings: list[models.Holding], metal: str) -> float:
    return sum(h.weight_oz * h.quantity for h in holdings if h.metal_type == metal)


@router.get("", response_model=list[schemas.Holding])
async def get_holdings(
    metal_type: Optional[schemas.MetalType] = Query(None, description="Nach Metallart filtern"),
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Alle Holdings des Users, neueste zuerst"""
    query = db.query(models.Holding).filter(models.Holding.user_id == user.id)

    if metal_type:
        query = query.filter(models.Holding.metal_type == metal_type.value)

    return query.order_by(models.Holding.created_at.desc(), models.Holding.id.desc()).all()


@router.post("", response_model=schemas.Holding, status_code=status.HTTP_201_CREATED)
async def create_holding(
    holding: schemas.HoldingCreate,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Neues Holding anlegen"""
    db_holding = models.Holding(
        user_id=user.id,
        metal_type=holding.metal_type.value,
        weight_oz=holding.weight_oz,
        form_type=holding.form_type.value,
        denomination=holding.denomination,
        quantity=holding.quantity,
        purchase_price_aud=holding.purchase_price_aud,
        purchase_date=holding.purchase_date,
        notes=holding.notes
    )
    db.add(db_holding)
    db.commit()
    db.refresh(db_holding)

    return db_holding


@router.get("/summary", response_model=schemas.HoldingSummary)
async def get_summary(
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Gesamtwert zu den Cache-Preisen (0 wenn kein Preis im Cache)"""
    holdings = db.query(models.Holding).filter(models.Holding.user_id == user.id).all()
    cached = {row.metal_type: row.price_aud for row in price_service.get_current_prices(db)}

    gold_price = cached.get("gold", 0.0)
    silver_price = cached.get("silver", 0.0)
    gold_oz = total_oz(holdings, "gold")
    silver_oz = total_oz(holdings, "silver")
    gold_value = gold_oz * gold_price
    silver_value = silver_oz * silver_price
    total_value = gold_value + silver_value

    return schemas.HoldingSummary(
        total_value=round(total_value, 2),
        gold_value=round(gold_value, 2),
        silver_value=round(silver_value, 2),
        total_gold_oz=round(gold_oz, 4),
        total_silver_oz=round(silver_oz, 4),
        gold_price=gold_price,
        silver_price=silver_price,
        total_holdings=len(holdings),
        gold_allocation_percent=round(gold_value / total_value * 100, 2) if total_value > 0 else 0,
        silver_allocation_percent=round(silver_value / total_value * 100, 2) if total_value > 0 else 0
    )


@router.get("/performance", response_model=list[schemas.HoldingPerformance])
async def get_performance(
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Gewinn/Verlust pro Holding zu den aktuellen Spotpreisen"""
    holdings = db.query(models.Holding).filter(
        models.Holding.user_id == user.id
    ).order_by(models.Holding.created_at.desc(), models.Holding.id.desc()).all()

    if not holdings:
        return []

    prices = await price_service.get_detailed_prices(db)
    return [enrich_holding(h, prices) for h in holdings]


@router.put("/{holding_id}", response_model=schemas.Holding)
async def update_holding(
    holding_id: int,
    holding_update: schemas.HoldingUpdate,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Holding aktualisieren"""
    holding = get_own_holding(db, user, holding_id)

    update_data = holding_update.model_dump(exclude_unset=True)
    # Pflichtfelder koennen nicht geleert werden
    for field in REQUIRED_FIELDS:
        if field in update_data and update_data[field] is None:
            del update_data[field]
    for field in ("metal_type", "form_type"):
        if field in update_data:
            update_data[field] = update_data[field].value

    for field, value in update_data.items():
        setattr(holding, field, value)

    db.commit()
    db.refresh(holding)

    return holding


@router.delete("/{holding_id}")
async def delete_holding(
    holding_id: int,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Holding loeschen"""
    holding = get_own_holding(db, user, holding_id)

    db.delete(holding)
    db.commit()

    return {"success": True, "id": holding_id}


def enrich_holding(holding: models.Holding, prices: schemas.DetailedPrices) -> schemas.HoldingPerformance:
    """Reichert ein Holding mit aktuellem Wert und Gewinn/Verlust an"""
    quote = prices.gold if holding.metal_type == "gold" else prices.silver
    current_value = holding.weight_oz * holding.quantity * quote.price
    invested_value = (holding.purchase_price_aud or 0) * holding.quantity
    profit_loss = current_value - invested_value
    profit_loss_percent = (profit_loss / invested_value * 100) if invested_value > 0 else 0

    return schemas.HoldingPerformance(
        id=holding.id,
        metal_type=holding.metal_type,
        denomination=holding.denomination,
        quantity=holding.quantity,
        current_value_aud=round(current_value, 2),
        invested_value_aud=round(invested_value, 2),
        profit_loss_aud=round(profit_loss, 2),
        profit_loss_percent=round(profit_loss_percent, 2)
    )
