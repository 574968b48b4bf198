"""
Discord-Benachrichtigungen: Testnachricht und taeglicher Digest
"""
import logging
import httpx
from typing import Optional

from sqlalchemy.orm import Session

import models
import price_service

logger = logging.getLogger(__name__)

WEBHOOK_TIMEOUT_SECONDS = 10.0

TEST_MESSAGE = (
    "**PreciousVault test** - If you see this, your Discord webhook is working. "
    "You'll receive daily digests here when the daily summary is enabled."
)


class WebhookError(Exception):
    """Webhook hat nicht mit 2xx geantwortet"""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Discord webhook failed ({status_code}): {body[:200]}")


def format_aud(amount: float) -> str:
    """3000 -> $3,000.00"""
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def get_settings(db: Session, user_id: int) -> Optional[models.NotificationSettings]:
    return db.query(models.NotificationSettings).filter(
        models.NotificationSettings.user_id == user_id
    ).first()


async def post_webhook(url: str, content: str, client: Optional[httpx.AsyncClient] = None) -> None:
    """Schickt eine Nachricht an einen Discord-Webhook, wirft WebhookError bei non-2xx"""
    if client is None:
        async with httpx.AsyncClient(timeout=WEBHOOK_TIMEOUT_SECONDS) as own_client:
            response = await own_client.post(url, json={"content": content})
    else:
        response = await client.post(url, json={"content": content})

    if not response.is_success:
        raise WebhookError(response.status_code, response.text)


async def send_test_message(url: str, client: Optional[httpx.AsyncClient] = None) -> None:
    await post_webhook(url, TEST_MESSAGE, client)


def build_digest(gold_price: float, silver_price: float, gold_oz: float, silver_oz: float) -> str:
    """Text des taeglichen Digests"""
    total_value = gold_oz * gold_price + silver_oz * silver_price
    return "\n".join([
        "**PreciousVault Daily Digest**",
        "",
        f"**Spot prices ({price_service.PRICE_CURRENCY}/{price_service.PRICE_UNIT})**",
        f"Gold: {format_aud(gold_price)}",
        f"Silver: {format_aud(silver_price)}",
        "",
        "**Your portfolio**",
        f"Total value: {format_aud(total_value)}",
        f"Gold: {gold_oz:.2f} oz | Silver: {silver_oz:.2f} oz",
    ])


async def run_daily_digest(db: Session, client: Optional[httpx.AsyncClient] = None) -> dict:
    """
    Schickt den Digest an alle User mit aktivem Digest und gesetzter Webhook-URL.
    Fehlgeschlagene Webhooks werden geloggt und uebersprungen, kein Retry.
    """
    enabled = db.query(models.NotificationSettings).filter(
        models.NotificationSettings.daily_digest_enabled.is_(True)
    ).all()
    to_notify = [s for s in enabled if s.discord_webhook_url and s.discord_webhook_url.strip()]

    cached = {row.metal_type: row.price_aud for row in price_service.get_current_prices(db)}
    gold_price = cached.get("gold", 0.0)
    silver_price = cached.get("silver", 0.0)

    sent = 0
    for settings in to_notify:
        holdings = db.query(models.Holding).filter(models.Holding.user_id == settings.user_id).all()
        gold_oz = sum(h.weight_oz * h.quantity for h in holdings if h.metal_type == "gold")
        silver_oz = sum(h.weight_oz * h.quantity for h in holdings if h.metal_type == "silver")
        content = build_digest(gold_price, silver_price, gold_oz, silver_oz)

        try:
            await post_webhook(settings.discord_webhook_url.strip(), content, client)
            sent += 1
        except WebhookError as e:
            logger.error("Discord webhook failed for user %s: %s", settings.user_id, e.status_code)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error("Discord webhook error for user %s: %s", settings.user_id, e)

    logger.info("Daily Digest: %d von %d gesendet", sent, len(to_notify))
    return {"ok": True, "sent": sent, "total": len(to_notify)}
