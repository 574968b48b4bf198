import logging
import os

from dotenv import load_dotenv
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import models  # noqa: F401  (Tabellen registrieren)
from database import engine, Base
from routers import auth, holdings, notifications, prices

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

# Datenbank-Tabellen erstellen
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="PreciousVault API",
    description="API zum Verwalten deines Edelmetall-Portfolios (Gold, Silber) mit Spotpreisen in AUD",
    version="1.0.0"
)

# CORS erlauben
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(prices.router)
app.include_router(holdings.router)
app.include_router(notifications.router)
app.include_router(notifications.cron_router)


@app.get("/", tags=["Root"])
async def root():
    """API Status und Info"""
    return {
        "name": "PreciousVault API",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs"
    }


@app.get("/health", tags=["Root"])
async def health_check():
    """Health Check Endpunkt"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
