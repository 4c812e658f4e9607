"""Main FastAPI application for the HomeOps calendar engine."""
import logging

from fastapi import FastAPI

from homeops.config import get_settings
from homeops.db.init import init_db
from homeops.middleware.cors import add_cors_middleware
from homeops.routers import calendar, schedules, tasks
from homeops.utils.metrics import metrics_collector

settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# Create FastAPI application
app = FastAPI(
    title="HomeOps Calendar API",
    description="Unified household calendar: tasks, leave, child logs, important dates and shifts",
    version="1.0.0",
)

# Add CORS middleware
add_cors_middleware(app, settings)


@app.on_event("startup")
async def startup_event():
    """Initialize database on startup."""
    try:
        init_db()
        print("[SUCCESS] Database tables initialized successfully.")
    except Exception as e:
        print(f"[WARNING] Database initialization failed: {str(e)}")
        print("[WARNING] Server will continue but database operations may fail.")
        print("[WARNING] Please check your DATABASE_URL and network connection.")

    print("[SUCCESS] Application startup complete.")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "1.0.0"}


@app.get("/metrics")
async def get_metrics():
    """Aggregator counters and timers."""
    return metrics_collector.get_metrics()


app.include_router(calendar.router, prefix="/api")  # /api/calendar/events, /api/dashboard/counts
app.include_router(schedules.router, prefix="/api")  # /api/schedules/{schedule_id}/overrides/{date}
app.include_router(tasks.router, prefix="/api")  # /api/tasks

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "homeops.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.environment == "development",
    )
