"""
Clubhouse - FastAPI web server
Multi-tenant club membership and invitation API

Data source: Supabase (tables + auth)
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from dotenv import load_dotenv

from app.auth.router import router as auth_router
from app.auth.config import CORS_ALLOW_HEADERS, CORS_ALLOW_METHODS, get_auth_settings
from app.club.router import router as club_router
from app.envelope import register_exception_handlers, success_response

# Load environment variables
load_dotenv()


def create_app() -> FastAPI:
    """Application factory"""
    settings = get_auth_settings()

    app = FastAPI(
        title="Clubhouse",
        description="Club membership, invitation and onboarding API",
        version="1.0.0"
    )

    # Browser clients call from the club subdomains
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=CORS_ALLOW_METHODS,
        allow_headers=CORS_ALLOW_HEADERS,
    )

    register_exception_handlers(app)

    app.include_router(auth_router)
    app.include_router(club_router)

    @app.on_event("startup")
    async def startup_event():
        logger.info("Server started - Supabase data source")

    @app.on_event("shutdown")
    async def shutdown_event():
        logger.info("Server stopped")

    @app.get("/health")
    async def health():
        return success_response({"status": "ok"})

    return app


app = create_app()
