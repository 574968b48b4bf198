from sqlalchemy import (
    Boolean, Column, Date, DateTime, ForeignKey, Integer, Numeric, String,
    Text, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, nullable=False, unique=True, index=True)
    password_hash = Column(String, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    holdings = relationship("Holding", back_populates="user", cascade="all, delete-orphan")
    notification_settings = relationship(
        "NotificationSettings", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )


class Holding(Base):
    __tablename__ = "holdings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    metal_type = Column(String, nullable=False, index=True)
    weight_oz = Column(Numeric(10, 4, asdecimal=False), nullable=False)
    form_type = Column(String, nullable=False)
    denomination = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    # Kaufpreis pro Stueck
    purchase_price_aud = Column(Numeric(10, 2, asdecimal=False), nullable=True)
    purchase_date = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="holdings")


class PriceCache(Base):
    """Aktueller Spotpreis, genau eine Zeile pro Metall"""
    __tablename__ = "price_cache"

    id = Column(Integer, primary_key=True, index=True)
    metal_type = Column(String, nullable=False, unique=True)
    price_aud = Column(Numeric(10, 2, asdecimal=False), nullable=False)
    updated_at = Column(DateTime, nullable=False, server_default=func.now())


class PriceHistory(Base):
    """Ein Preis pro Metall und Kalendertag fuer die Charts"""
    __tablename__ = "price_history"
    __table_args__ = (
        UniqueConstraint("metal_type", "recorded_date", name="uq_price_history_metal_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    metal_type = Column(String, nullable=False, index=True)
    price_aud = Column(Numeric(10, 4, asdecimal=False), nullable=False)
    recorded_date = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now())


class NotificationSettings(Base):
    __tablename__ = "notification_settings"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    daily_digest_enabled = Column(Boolean, nullable=False, default=False)
    discord_webhook_url = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="notification_settings")
