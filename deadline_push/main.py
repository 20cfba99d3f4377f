from contextlib import asynccontextmanager
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import Depends, FastAPI, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from deadline_push.api.router import api_router
from deadline_push.config import get_settings
from deadline_push.db.database import get_db, init_db
from deadline_push.models.pending_notification import PendingNotification
from deadline_push.notifications.clock import from_storage, to_reference
from deadline_push.scheduler.jobs import sync_engine
from deadline_push.scheduler.runner import start_scheduler

settings = get_settings()
scheduler: Optional[BackgroundScheduler] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    global scheduler
    logger.info("Starting reminder service")
    await init_db()
    scheduler = start_scheduler()

    yield

    scheduler.shutdown()
    scheduler = None
    sync_engine.dispose()
    logger.info("Reminder service stopped")


app = FastAPI(
    title="Deadline Push API",
    description="Daily push reminders until a schedule's deadline",
    version="0.1.0",
    lifespan=lifespan,
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None,
)

origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins or ["http://localhost:3000"],
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["Content-Type"],
)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    return {"status": "ok"}


def _require_admin(x_admin_key: Optional[str] = Header(None)) -> None:
    if not settings.is_production:
        return
    if not settings.admin_api_key:
        raise HTTPException(status_code=503, detail="Admin API not configured")
    if x_admin_key != settings.admin_api_key:
        raise HTTPException(status_code=401, detail="Invalid admin key")


@app.get("/api/admin/queue", dependencies=[Depends(_require_admin)])
async def queue_status(db: AsyncSession = Depends(get_db)):
    """Queue depth, entries left behind by a failed attempt, next dispatch."""
    pending, awaiting_retry, next_fire_at = (
        await db.execute(
            select(
                func.count(PendingNotification.id),
                func.count(PendingNotification.id).filter(PendingNotification.retry_count > 0),
                func.min(PendingNotification.fire_at),
            )
        )
    ).one()

    job = scheduler.get_job("hourly_dispatch") if scheduler else None
    return {
        "scheduler_running": bool(scheduler and scheduler.running),
        "next_dispatch": job.next_run_time.isoformat() if job and job.next_run_time else None,
        "pending": pending,
        "awaiting_retry": awaiting_retry,
        "next_fire_at": (
            to_reference(from_storage(next_fire_at)).isoformat() if next_fire_at else None
        ),
    }
