"""
Scheduler-Script fuer den taeglichen Discord-Digest

Wird vom Plattform-Scheduler taeglich ausgefuehrt (z.B. 08:00 UTC).
Aktualisiert vorher die Spotpreise, falls der Cache veraltet ist.

Usage:
    python scheduler_digest.py
"""
import asyncio
import logging
import os
import sys

from dotenv import load_dotenv
load_dotenv()

from database import SessionLocal, Base, engine
import notification_service
import price_service

logger = logging.getLogger("scheduler_digest")


async def run_digest() -> dict:
    """Preise auffrischen und Digest an alle aktiven Webhooks schicken"""
    db = SessionLocal()
    try:
        prices = await price_service.get_detailed_prices(db)
        logger.info("Spotpreise: Gold %.2f, Silber %.2f", prices.gold.price, prices.silver.price)

        return await notification_service.run_daily_digest(db)
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    Base.metadata.create_all(bind=engine)

    result = asyncio.run(run_digest())
    print(f"Fertig! Gesendet: {result['sent']} von {result['total']}")

    if result["sent"] < result["total"]:
        sys.exit(1)
