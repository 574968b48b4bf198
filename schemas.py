import httpx
from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import date, datetime, timezone
from typing import Optional
from enum import Enum


class MetalType(str, Enum):
    GOLD = "gold"
    SILVER = "silver"


class FormType(str, Enum):
    BAR = "bar"
    COIN = "coin"


# === PREISE ===

class PriceQuote(BaseModel):
    price: float
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def to_naive_utc(cls, value: datetime) -> datetime:
        """Alle Zeitstempel als UTC ohne tzinfo, wie im Cache"""
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value


class DetailedPrices(BaseModel):
    gold: PriceQuote
    silver: PriceQuote


class PriceCacheEntry(BaseModel):
    id: int
    metal_type: MetalType
    price_aud: float
    updated_at: datetime

    class Config:
        from_attributes = True


class PriceHistoryPoint(BaseModel):
    id: int
    metal_type: MetalType
    price_aud: float
    recorded_date: date
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# === HOLDINGS ===

class HoldingBase(BaseModel):
    metal_type: MetalType
    weight_oz: float = Field(..., gt=0, description="Gewicht pro Stueck in Feinunzen")
    form_type: FormType
    denomination: str
    quantity: int = Field(1, gt=0)
    purchase_price_aud: Optional[float] = Field(None, gt=0, description="Kaufpreis pro Stueck in AUD")
    purchase_date: Optional[datetime] = None
    notes: Optional[str] = None


class HoldingCreate(HoldingBase):
    pass


class HoldingUpdate(BaseModel):
    metal_type: Optional[MetalType] = None
    weight_oz: Optional[float] = Field(None, gt=0)
    form_type: Optional[FormType] = None
    denomination: Optional[str] = None
    quantity: Optional[int] = Field(None, gt=0)
    purchase_price_aud: Optional[float] = Field(None, gt=0)
    purchase_date: Optional[datetime] = None
    notes: Optional[str] = None


class Holding(HoldingBase):
    id: int
    user_id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class HoldingSummary(BaseModel):
    total_value: float
    gold_value: float
    silver_value: float
    total_gold_oz: float
    total_silver_oz: float
    gold_price: float
    silver_price: float
    total_holdings: int
    gold_allocation_percent: float
    silver_allocation_percent: float


class HoldingPerformance(BaseModel):
    id: int
    metal_type: MetalType
    denomination: str
    quantity: int
    current_value_aud: float
    invested_value_aud: float
    profit_loss_aud: float
    profit_loss_percent: float


# === BENACHRICHTIGUNGEN ===

class NotificationSettingsUpdate(BaseModel):
    daily_digest_enabled: Optional[bool] = None
    discord_webhook_url: Optional[str] = None

    @field_validator("discord_webhook_url")
    @classmethod
    def validate_webhook_url(cls, value: Optional[str]) -> Optional[str]:
        """Leerer String loescht die URL, sonst muss es eine http(s)-URL sein"""
        if value is None:
            return None
        value = value.strip()
        if value == "":
            return ""
        if not value.startswith(("http://", "https://")):
            raise ValueError("Webhook-URL muss mit http:// oder https:// beginnen")
        try:
            httpx.URL(value)
        except httpx.InvalidURL as e:
            raise ValueError(f"Ungueltige Webhook-URL: {e}")
        return value


class NotificationSettingsResponse(BaseModel):
    user_id: int
    daily_digest_enabled: bool
    discord_webhook_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DigestResult(BaseModel):
    ok: bool
    sent: int
    total: int


# === AUTH ===

class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    id: int
    email: str
    created_at: Optional[datetime] = None
    holdings_count: int = 0


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class TokenData(BaseModel):
    user_id: int
    email: str
