"""Health check API endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session as DBSession

from config import get_settings
from database import get_db, get_db_manager

router = APIRouter(tags=["health"])


@router.get("/")
def read_root():
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": "AI Chatbot Activity Backend",
        "version": "1.0.0"
    }


@router.get("/config/provider")
def get_provider_config():
    """Return the active AI provider and its channel -> model mapping."""
    settings = get_settings()
    return {
        "provider": settings.ai_provider,
        "channels": settings.get_channels(),
        "timeout": settings.ai_timeout,
    }


@router.get("/health/db")
def database_health(db: DBSession = Depends(get_db)):
    """Database health check."""
    try:
        db_manager = get_db_manager()
        is_healthy = db_manager.health_check()

        if is_healthy:
            return {"status": "ok", "database": "connected"}
        else:
            return {"status": "error", "database": "connection_failed"}
    except Exception as e:
        return {"status": "error", "database": f"error: {str(e)}"}
