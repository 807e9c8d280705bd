"""
AI Chatbot Activity Backend - FastAPI Application

Entry point for the chatbot activity API: chat actions, dialog listings,
transcript export and activity administration.
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import get_settings, validate_required_settings
from database import get_db_manager, init_db
from shared.api import health
from chatbot.api import actions, activities, dialogs, transcripts

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Validate configuration on startup
validate_required_settings()

# Initialize FastAPI app
app = FastAPI(
    title="AI Chatbot Activity Backend",
    description="Course chatbot activities with attempt quotas, sharing and transcripts",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router)
app.include_router(actions.router)
app.include_router(dialogs.router)
app.include_router(transcripts.router)
app.include_router(activities.router)


@app.on_event("startup")
async def startup_event():
    """Create the schema and validate the database connection."""
    logger.info("Starting AI Chatbot Activity Backend...")

    init_db()
    if not get_db_manager().health_check():
        logger.warning("Database health check failed on startup")
    else:
        logger.info("Database connection healthy")

    logger.info(f"AI provider: {settings.ai_provider}, channels: {list(settings.get_channels())}")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True
    )
