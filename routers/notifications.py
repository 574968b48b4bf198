"""
Benachrichtigungs-Router - Digest-Einstellungen, Testnachricht, Cron-Trigger
"""
import os
from typing import Optional
from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.orm import Session
import httpx

import models
import schemas
import notification_service
from auth import get_current_user
from database import get_db

router = APIRouter(prefix="/api/notifications", tags=["Benachrichtigungen"])
cron_router = APIRouter(prefix="/api/cron", tags=["Cron"])

CRON_SECRET = os.getenv("CRON_SECRET", "")


@router.get("/settings", response_model=schemas.NotificationSettingsResponse)
async def get_notification_settings(
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Eigene Einstellungen, Standardwerte falls noch nichts gespeichert"""
    settings = notification_service.get_settings(db, user.id)
    if settings is None:
        return schemas.NotificationSettingsResponse(
            user_id=user.id,
            daily_digest_enabled=False,
            discord_webhook_url=None
        )
    return settings


@router.put("/settings", response_model=schemas.NotificationSettingsResponse)
async def update_notification_settings(
    settings_update: schemas.NotificationSettingsUpdate,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Einstellungen speichern (Upsert).
    Nicht uebergebene Felder behalten ihren Wert, leere URL loescht den Webhook.
    """
    existing = notification_service.get_settings(db, user.id)
    update_data = settings_update.model_dump(exclude_unset=True)

    daily_digest_enabled = update_data.get("daily_digest_enabled")
    if daily_digest_enabled is None:
        daily_digest_enabled = existing.daily_digest_enabled if existing else False

    if "discord_webhook_url" in update_data:
        discord_webhook_url = update_data["discord_webhook_url"] or None
    else:
        discord_webhook_url = existing.discord_webhook_url if existing else None

    if existing:
        existing.daily_digest_enabled = daily_digest_enabled
        existing.discord_webhook_url = discord_webhook_url
        settings = existing
    else:
        settings = models.NotificationSettings(
            user_id=user.id,
            daily_digest_enabled=daily_digest_enabled,
            discord_webhook_url=discord_webhook_url
        )
        db.add(settings)

    db.commit()
    db.refresh(settings)
    return settings


@router.post("/test")
async def send_test_message(
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Testnachricht an den gespeicherten Discord-Webhook"""
    settings = notification_service.get_settings(db, user.id)
    webhook_url = (settings.discord_webhook_url or "").strip() if settings else ""
    if not webhook_url:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No Discord webhook URL saved. Save your webhook URL first."
        )

    try:
        await notification_service.send_test_message(webhook_url)
    except notification_service.WebhookError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Discord webhook error: {e}")

    return {"ok": True}


@cron_router.get("/daily-digest", response_model=schemas.DigestResult)
async def daily_digest(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db)
):
    """
    Einmal taeglich vom Scheduler aufgerufen.
    Ist CRON_SECRET gesetzt, muss es als Bearer Token mitkommen.
    """
    if CRON_SECRET and authorization != f"Bearer {CRON_SECRET}":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    return await notification_service.run_daily_digest(db)
