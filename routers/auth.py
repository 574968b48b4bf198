"""
Auth Router - Endpoints fuer Registrierung, Login, aktueller User
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

import models
import schemas
import auth as auth_module
from database import get_db

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/register", response_model=schemas.Token, status_code=status.HTTP_201_CREATED)
async def register(user_data: schemas.UserCreate, db: Session = Depends(get_db)):
    """Neuer User, direkt eingeloggt"""
    user = auth_module.register_user(db, user_data.email, user_data.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email ist bereits registriert"
        )
    return auth_module.issue_token(user)


@router.post("/login", response_model=schemas.Token)
async def login(credentials: schemas.UserLogin, db: Session = Depends(get_db)):
    user = auth_module.check_credentials(db, credentials.email, credentials.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Ungueltige Email oder Passwort",
            headers={"WWW-Authenticate": "Bearer"}
        )
    return auth_module.issue_token(user)


@router.get("/me", response_model=schemas.UserResponse)
async def me(
    user: models.User = Depends(auth_module.get_current_user),
    db: Session = Depends(get_db)
):
    holdings_count = db.query(models.Holding).filter(models.Holding.user_id == user.id).count()

    return schemas.UserResponse(
        id=user.id,
        email=user.email,
        created_at=user.created_at,
        holdings_count=holdings_count
    )


@router.post("/logout")
async def logout():
    """Tokens sind zustandslos, der Client verwirft seinen Token"""
    return {"message": "Erfolgreich ausgeloggt"}
