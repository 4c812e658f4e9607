"""CORS configuration for the calendar frontend."""
from fastapi.middleware.cors import CORSMiddleware

from homeops.config import Settings

# Base allowed origins for development
DEV_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


def allowed_origins(settings: Settings) -> list:
    origins = list(DEV_ORIGINS)
    if settings.frontend_url and settings.frontend_url not in origins:
        origins.append(settings.frontend_url)
    return origins


def add_cors_middleware(app, settings: Settings):
    """Add CORS middleware to the FastAPI application."""
    origins = allowed_origins(settings)
    if settings.environment == "production":
        # Only the configured frontend is trusted in production
        origins = [settings.frontend_url]
    print(f"[CORS] Environment: {settings.environment}, allowed origins: {origins}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
