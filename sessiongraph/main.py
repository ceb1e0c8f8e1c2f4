"""
SessionGraph - Main FastAPI Application
Relationship index and reasoning-path queries over clinical session analyses
"""

import logging
from datetime import datetime
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from sessiongraph.config import settings
from sessiongraph.routes import sessions as session_routes
from sessiongraph.services.session_store import get_session_store

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


# =============================================================================
# Application Lifecycle
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info("Starting SessionGraph application...")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Session store capacity: {settings.max_sessions}")

    yield

    logger.info("Shutting down SessionGraph application...")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="SessionGraph",
    description="Relationship index and reasoning paths for clinical session analyses",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(session_routes.router)


@app.get("/health", tags=["health"])
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": "1.0.0",
        "environment": settings.environment,
        "loaded_sessions": len(get_session_store().list_sessions())
    }


if __name__ == "__main__":
    uvicorn.run(
        "sessiongraph.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower()
    )
