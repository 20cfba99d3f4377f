import argparse
from datetime import datetime

from loguru import logger
from sqlalchemy import create_engine

from deadline_push.config import get_settings
from deadline_push.db.database import Base, ensure_sqlite_directory

settings = get_settings()


def init_database():
    """初始化資料庫"""
    import deadline_push.models  # noqa: F401

    ensure_sqlite_directory(settings.sync_database_url)
    engine = create_engine(settings.sync_database_url)
    Base.metadata.create_all(engine)
    logger.info("Database initialized")


def run_dispatch(at: str = None):
    """Drain one hour of the queue (the current hour unless --at is given)."""
    from deadline_push.scheduler.jobs import run_hourly_dispatch

    now = datetime.fromisoformat(at) if at else None
    summary = run_hourly_dispatch(now)
    logger.info(f"Result: {summary}")


def run_cancel(owner_id: str, schedule_id: int):
    from deadline_push.notifications.canceller import ScheduleCanceller
    from deadline_push.notifications.events import ScheduleDeleted
    from deadline_push.scheduler.jobs import get_sync_session

    with get_sync_session() as session:
        removed = ScheduleCanceller(session).cancel(
            ScheduleDeleted(owner_id=owner_id, schedule_id=schedule_id)
        )
    logger.info(f"Result: {removed} reminders removed")


def main():
    parser = argparse.ArgumentParser(description="Deadline Push CLI")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # init command
    subparsers.add_parser("init", help="Initialize database")

    # dispatch command
    dispatch_parser = subparsers.add_parser("dispatch", help="Deliver reminders due this hour")
    dispatch_parser.add_argument(
        "--at", "-a", help="ISO datetime inside the hour to drain (naive = UTC)"
    )

    # cancel command
    cancel_parser = subparsers.add_parser("cancel", help="Remove a schedule's reminders")
    cancel_parser.add_argument("owner_id", help="Owner user id")
    cancel_parser.add_argument("schedule_id", type=int, help="Schedule id")

    # serve command
    subparsers.add_parser("serve", help="Start API server")

    args = parser.parse_args()

    if args.command == "init":
        init_database()
    elif args.command == "dispatch":
        run_dispatch(args.at)
    elif args.command == "cancel":
        run_cancel(args.owner_id, args.schedule_id)
    elif args.command == "serve":
        import uvicorn

        uvicorn.run(
            "deadline_push.main:app",
            host=settings.api_host,
            port=settings.api_port,
            reload=settings.debug,
        )
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
