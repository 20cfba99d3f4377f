from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from loguru import logger

from deadline_push.scheduler.jobs import run_hourly_dispatch


def create_scheduler() -> BackgroundScheduler:
    scheduler = BackgroundScheduler()

    # 每小時整點發送到期提醒
    scheduler.add_job(
        run_hourly_dispatch,
        CronTrigger(minute=0, timezone="UTC"),
        id="hourly_dispatch",
        name="Hourly Reminder Dispatch",
    )

    logger.info("Scheduler configured with jobs")
    return scheduler


def start_scheduler():
    scheduler = create_scheduler()
    scheduler.start()
    logger.info("Scheduler started")
    return scheduler
