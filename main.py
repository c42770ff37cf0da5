"""
Stockbook - Raw Material & Finished Goods Inventory
FastAPI Application Entry Point
"""
import logging
import uvicorn
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stockbook.core import settings, engine, Base, get_db
from stockbook.core.errors import register_exception_handlers
from stockbook.core.logging_config import setup_logging
from stockbook.api.router import api_router

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# Lifespan for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Create tables if not exist
    Base.metadata.create_all(bind=engine)
    logger.info(f"{settings.APP_NAME} starting on port {settings.APP_PORT}")
    yield
    logger.info(f"{settings.APP_NAME} shutting down")

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Raw material, finished goods and production batch inventory",
    version="1.0.0",
    lifespan=lifespan
)

register_exception_handlers(app)

# Include routers
app.include_router(api_router, prefix="/api")

# Health check
@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check database failure: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "app": settings.APP_NAME, "database": "unreachable"},
        )
    return {"status": "healthy", "app": settings.APP_NAME, "database": "ok"}

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.APP_PORT,
        reload=settings.DEBUG
    )
