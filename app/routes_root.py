# routes_root.py
"""
Root / basic endpoints (health, landing).
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.deps import get_db

router = APIRouter()


@router.get("/")
def read_root():
    """
    Simple landing endpoint.
    """
    return {"message": "Hello from Expense Manager API"}


@router.get("/health")
def health(db: Session = Depends(get_db)):
    """
    Liveness check that also pings the database.
    A failing ping propagates as a 500.
    """
    db.execute(text("SELECT 1"))
    return {
        "status": "ok",
        "database": "up",
        "time": datetime.now(timezone.utc).isoformat(),
    }
