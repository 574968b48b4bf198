import logging
import os
import httpx
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import models
import schemas

logger = logging.getLogger(__name__)

METALS_DEV_KEY = os.getenv("METALS_DEV_KEY", "")
METALS_DEV_URL = "https://api.metals.dev/v1/latest"
PRICE_CURRENCY = os.getenv("PRICE_CURRENCY", "AUD")
PRICE_UNIT = os.getenv("PRICE_UNIT", "toz")
CACHE_DURATION_HOURS = 6
REQUEST_TIMEOUT_SECONDS = 10.0

HISTORY_DEFAULT_DAYS = 30
HISTORY_MAX_DAYS = 365

# Platzhalter falls weder Cache noch API verfuegbar (AUD pro Feinunze)
FALLBACK_PRICES = {
    "gold": 3000.00,
    "silver": 40.25,
}

TRACKED_METALS = (schemas.MetalType.GOLD.value, schemas.MetalType.SILVER.value)


def utcnow() -> datetime:
    """Aktuelle Zeit in UTC, ohne tzinfo (so wie sie in der DB liegt)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_fallback_prices(now: Optional[datetime] = None) -> schemas.DetailedPrices:
    """Platzhalter-Preise mit aktuellem Zeitstempel"""
    now = now or utcnow()
    return schemas.DetailedPrices(
        gold=schemas.PriceQuote(price=FALLBACK_PRICES["gold"], timestamp=now),
        silver=schemas.PriceQuote(price=FALLBACK_PRICES["silver"], timestamp=now),
    )


def _rows_by_metal(db: Session) -> dict[str, models.PriceCache]:
    return {row.metal_type: row for row in db.query(models.PriceCache).all()}


def is_cache_fresh(rows: dict[str, models.PriceCache], now: datetime) -> bool:
    """
    Frisch nur wenn Gold UND Silber vorhanden und beide juenger als
    CACHE_DURATION_HOURS sind. Weitere Metalle im Cache zaehlen nicht.
    """
    threshold = now - timedelta(hours=CACHE_DURATION_HOURS)
    for metal in TRACKED_METALS:
        row = rows.get(metal)
        if row is None or row.updated_at is None or row.updated_at <= threshold:
            return False
    return True


def _quotes_from_rows(rows: dict[str, models.PriceCache], now: datetime) -> schemas.DetailedPrices:
    quotes = {}
    for metal in TRACKED_METALS:
        row = rows.get(metal)
        if row is not None:
            quotes[metal] = schemas.PriceQuote(price=row.price_aud, timestamp=row.updated_at)
        else:
            quotes[metal] = schemas.PriceQuote(price=FALLBACK_PRICES[metal], timestamp=now)
    return schemas.DetailedPrices(**quotes)


def get_cached_prices(db: Session, now: Optional[datetime] = None) -> schemas.DetailedPrices:
    """
    Liefert was gerade im Cache steht. Fehlt ein Metall, wird der Platzhalter
    genommen; ist die DB nicht lesbar, gibt es nur Platzhalter.
    """
    now = now or utcnow()
    try:
        rows = _rows_by_metal(db)
    except SQLAlchemyError as e:
        logger.error("Fehler beim Lesen des Preis-Caches: %s", e)
        db.rollback()
        return get_fallback_prices(now)

    if not rows:
        return get_fallback_prices(now)
    return _quotes_from_rows(rows, now)


def get_current_prices(db: Session) -> list[models.PriceCache]:
    """Rohdaten aus dem Preis-Cache, nur Gold und Silber"""
    try:
        return db.query(models.PriceCache).filter(
            models.PriceCache.metal_type.in_(TRACKED_METALS)
        ).order_by(models.PriceCache.metal_type).all()
    except SQLAlchemyError as e:
        logger.error("Fehler beim Abrufen der Preise: %s", e)
        db.rollback()
        return []


def update_price_cache(db: Session, gold_price: float, silver_price: float, now: datetime) -> None:
    """
    Upsert in price_cache (pro Metall) und price_history (pro Metall und Tag).
    Ein zweiter Refresh am selben Tag ueberschreibt den Tageswert.
    """
    today = now.date()
    new_prices = {"gold": gold_price, "silver": silver_price}

    for metal, price in new_prices.items():
        cached = db.query(models.PriceCache).filter(
            models.PriceCache.metal_type == metal
        ).first()
        if cached:
            cached.price_aud = price
            cached.updated_at = now
        else:
            db.add(models.PriceCache(metal_type=metal, price_aud=price, updated_at=now))

        point = db.query(models.PriceHistory).filter(
            models.PriceHistory.metal_type == metal,
            models.PriceHistory.recorded_date == today
        ).first()
        if point:
            point.price_aud = price
        else:
            db.add(models.PriceHistory(metal_type=metal, price_aud=price, recorded_date=today))

    db.commit()


async def fetch_live_prices(client: httpx.AsyncClient, api_key: str) -> Optional[dict]:
    """
    Holt Gold/Silber von metals.dev.
    Gibt None zurueck wenn die API nicht erfolgreich antwortet.
    """
    response = await client.get(
        METALS_DEV_URL,
        params={
            "api_key": api_key,
            "currency": PRICE_CURRENCY,
            "unit": PRICE_UNIT
        },
        timeout=REQUEST_TIMEOUT_SECONDS
    )

    if not response.is_success:
        logger.warning("metals.dev Anfrage fehlgeschlagen (%s), nutze Cache", response.status_code)
        return None

    data = response.json()
    if data.get("status") != "success":
        logger.warning("metals.dev meldet Status %r, nutze Cache", data.get("status"))
        return None

    metals = data["metals"]
    return {
        "gold": float(metals["gold"]),
        "silver": float(metals["silver"]),
        "timestamp": (data.get("timestamps") or {}).get("metal"),
    }


async def get_detailed_prices(
    db: Session,
    client: Optional[httpx.AsyncClient] = None,
    now: Optional[datetime] = None
) -> schemas.DetailedPrices:
    """
    Aktuelle Gold- und Silberpreise.

    1. Cache frisch (beide Metalle < 6h alt) -> Cache, kein API-Aufruf
    2. sonst metals.dev abfragen, Cache + Tageshistorie schreiben
    3. bei jedem Fehler -> Cache bzw. Platzhalter

    Wirft nie eine Exception.
    """
    now = now or utcnow()

    try:
        rows = _rows_by_metal(db)
    except SQLAlchemyError as e:
        logger.error("Fehler beim Lesen des Preis-Caches: %s", e)
        db.rollback()
        rows = {}

    if is_cache_fresh(rows, now):
        return _quotes_from_rows(rows, now)

    api_key = METALS_DEV_KEY
    if not api_key:
        logger.warning("METALS_DEV_KEY nicht konfiguriert, nutze Cache")
        return get_cached_prices(db, now)

    try:
        if client is None:
            async with httpx.AsyncClient() as own_client:
                live = await fetch_live_prices(own_client, api_key)
        else:
            live = await fetch_live_prices(client, api_key)

        if live is None:
            return get_cached_prices(db, now)

        timestamp = live["timestamp"] or now
        fresh = schemas.DetailedPrices(
            gold=schemas.PriceQuote(price=live["gold"], timestamp=timestamp),
            silver=schemas.PriceQuote(price=live["silver"], timestamp=timestamp),
        )
    except Exception as e:
        logger.error("Fehler beim Abrufen der Preise von metals.dev: %s", e)
        return get_cached_prices(db, now)

    try:
        update_price_cache(db, live["gold"], live["silver"], now)
        logger.info("Preis-Cache aktualisiert: Gold %.2f, Silber %.2f", live["gold"], live["silver"])
    except SQLAlchemyError as e:
        logger.error("Fehler beim Aktualisieren des Preis-Caches: %s", e)
        db.rollback()

    return fresh


def get_price_history(
    db: Session,
    metal_type: Optional[schemas.MetalType] = None,
    days: int = HISTORY_DEFAULT_DAYS,
    now: Optional[datetime] = None
) -> list[models.PriceHistory]:
    """Tageswerte der letzten `days` Tage, aelteste zuerst. Ohne Metall: Gold."""
    now = now or utcnow()
    days = max(1, min(days, HISTORY_MAX_DAYS))
    metal = metal_type.value if metal_type else schemas.MetalType.GOLD.value
    since = (now - timedelta(days=days)).date()

    return db.query(models.PriceHistory).filter(
        models.PriceHistory.metal_type == metal,
        models.PriceHistory.recorded_date >= since
    ).order_by(models.PriceHistory.recorded_date.asc()).all()
