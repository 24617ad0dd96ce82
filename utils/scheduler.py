import logging
import os
import threading
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from database import SessionLocal
from schemas.blog import GenerationResult
from services.blog import BlogGenerator
from utils.exceptions import ConflictError

logger = logging.getLogger(__name__)

BLOG_CRON_HOUR = int(os.getenv("BLOG_CRON_HOUR", "9"))
BLOG_CRON_MINUTE = int(os.getenv("BLOG_CRON_MINUTE", "0"))
BLOG_TIMEZONE = os.getenv("BLOG_TIMEZONE", "Asia/Kolkata")


def default_generator() -> BlogGenerator:
    from dependencies import get_openai_client, get_storage_manager_instance
    return BlogGenerator(get_openai_client(), get_storage_manager_instance())


class DailyBlogScheduler:
    """Runs the blog generator once a day. Overlapping runs are never started."""

    def __init__(
        self,
        session_factory: Callable = SessionLocal,
        generator_factory: Callable[[], BlogGenerator] = default_generator,
    ):
        self.session_factory = session_factory
        self.generator_factory = generator_factory
        self._lock = threading.Lock()
        self._scheduler: Optional[BackgroundScheduler] = None

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    def run_now(self) -> GenerationResult:
        if not self._lock.acquire(blocking=False):
            raise ConflictError("Blog generation is already in progress")
        try:
            db = self.session_factory()
            try:
                return self.generator_factory().run(db)
            finally:
                db.close()
        finally:
            self._lock.release()

    def _scheduled_run(self) -> None:
        if self.is_running:
            logger.warning("Skipping scheduled blog generation: previous run still in progress")
            return
        try:
            result = self.run_now()
            logger.info("Scheduled blog generation done: %s", result.model_dump())
        except ConflictError:
            logger.warning("Skipping scheduled blog generation: previous run still in progress")
        except Exception:
            logger.exception("Scheduled blog generation failed")

    def start(self) -> None:
        if self._scheduler is not None and self._scheduler.running:
            logger.info("Blog scheduler already running")
            return
        self._scheduler = BackgroundScheduler(daemon=True, timezone=BLOG_TIMEZONE)
        self._scheduler.add_job(
            self._scheduled_run,
            trigger=CronTrigger(hour=BLOG_CRON_HOUR, minute=BLOG_CRON_MINUTE, timezone=BLOG_TIMEZONE),
            id="daily_blog_generation",
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info("Blog scheduler started: daily at %02d:%02d %s", BLOG_CRON_HOUR, BLOG_CRON_MINUTE, BLOG_TIMEZONE)

    def stop(self) -> None:
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Blog scheduler stopped")
        self._scheduler = None
