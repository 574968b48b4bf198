"""
Auth Gate: wer ruft an?

Jeder Endpoint mit User-Daten haengt an `get_current_user`. Tokens sind
HS256-JWTs mit der User-ID als `sub`, Passwoerter liegen als bcrypt-Hash vor.
"""
import os
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

import models
import schemas
from database import get_db

JWT_SECRET = os.getenv("JWT_SECRET", "CHANGE-ME-IN-PRODUCTION-supersecretkey123")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def issue_token(user: models.User) -> schemas.Token:
    """Token-Antwort fuer Login und Registrierung"""
    issued_at = datetime.now(timezone.utc)
    lifetime = timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {
        "sub": str(user.id),
        "email": user.email,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    return schemas.Token(
        access_token=jwt.encode(claims, JWT_SECRET, algorithm=JWT_ALGORITHM),
        expires_in=int(lifetime.total_seconds())
    )


def decode_token(token: str) -> Optional[schemas.TokenData]:
    """None bei abgelaufenem, manipuliertem oder unvollstaendigem Token"""
    try:
        claims = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
        return schemas.TokenData(user_id=int(claims["sub"]), email=claims["email"])
    except (JWTError, KeyError, ValueError):
        return None


def find_user(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.email == email.lower()).first()


def register_user(db: Session, email: str, password: str) -> Optional[models.User]:
    """Legt einen User an; None wenn die Email schon vergeben ist"""
    if find_user(db, email):
        return None

    user = models.User(email=email.lower(), password_hash=pwd_context.hash(password))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def check_credentials(db: Session, email: str, password: str) -> Optional[models.User]:
    user = find_user(db, email)
    if user is None or not user.is_active:
        return None
    return user if pwd_context.verify(password, user.password_hash) else None


def resolve_user(db: Session, token: Optional[str]) -> Optional[models.User]:
    """Aktiver User zum Bearer Token, sonst None"""
    token_data = decode_token(token) if token else None
    if token_data is None:
        return None

    user = db.get(models.User, token_data.user_id)
    return user if user is not None and user.is_active else None


async def get_current_user(
    token: Optional[str] = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> models.User:
    """FastAPI Dependency, 401 ohne gueltigen Token"""
    user = resolve_user(db, token)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Nicht authentifiziert",
            headers={"WWW-Authenticate": "Bearer"}
        )
    return user
