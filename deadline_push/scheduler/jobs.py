from __future__ import annotations

from datetime import datetime
from typing import Optional

from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from deadline_push.config import get_settings
from deadline_push.notifications.dispatcher import DispatchSummary, NotificationDispatcher
from deadline_push.notifications.events import HourlyTick

settings = get_settings()

# 同步版本的資料庫連線（給排程使用），整個 process 共用一個連線池
sync_engine = create_engine(settings.sync_database_url)


def get_sync_session() -> Session:
    return Session(sync_engine)


def run_hourly_dispatch(now: Optional[datetime] = None) -> DispatchSummary:
    """每小時整點：發送本小時到期的提醒"""
    tick = HourlyTick(now=now) if now is not None else HourlyTick()
    logger.info(f"Starting hourly dispatch at {tick.now.isoformat()}")

    with get_sync_session() as session:
        try:
            summary = NotificationDispatcher(session).dispatch(tick.now)
        except SQLAlchemyError as e:
            logger.error(f"Hourly dispatch aborted, queue query failed: {e}")
            raise

    logger.info(f"Hourly dispatch completed: {summary}")
    return summary
