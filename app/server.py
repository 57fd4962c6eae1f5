"""
SportsPanel - FastAPI server
Multi-tenant club management API

Data source: Supabase
"""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from dotenv import load_dotenv

load_dotenv()

from app.auth.router import router as auth_router
from app.club import club_router, public_router
from app.club.dependencies import get_locale
from app.club.errors import ClubError
from app.config import scheduler_config
from app.i18n import translate
from scheduler import ClubScheduler, create_scheduler

app = FastAPI(
    title="SportsPanel",
    description="Club management for amateur sports clubs",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router, prefix="/api")
app.include_router(club_router, prefix="/api")
app.include_router(public_router, prefix="/api")

_scheduler: Optional[ClubScheduler] = None


@app.exception_handler(ClubError)
async def club_error_handler(request: Request, exc: ClubError):
    """Localized error body: {"detail": message, "code": key}"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": translate(exc.key, get_locale(request), **exc.params),
            "code": exc.key,
        },
    )


@app.on_event("startup")
async def startup_event():
    """Start background jobs"""
    global _scheduler
    if scheduler_config.scheduler_enabled:
        _scheduler = create_scheduler()
        _scheduler.start()
    logger.info("Server started")


@app.on_event("shutdown")
async def shutdown_event():
    global _scheduler
    if _scheduler:
        _scheduler.stop()
        _scheduler = None
    logger.info("Server stopped")


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "scheduler": _scheduler.get_status() if _scheduler else None,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.server:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
