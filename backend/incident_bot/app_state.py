"""
Application state shared by request handlers and background work.

Built once in the application lifespan. Everything here is either
immutable configuration or a component that manages its own
synchronization (clients, throttle, pools). Database sessions are not
shared: each unit of work opens one from ``session_factory``.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from sqlalchemy.orm import Session

from incident_bot.clients.slack_client import SlackClient
from incident_bot.clients.statuspage_client import StatuspageClient
from incident_bot.core.config import Settings
from incident_bot.jobs.dispatcher import JobDispatcher
from incident_bot.jobs.statuspage_sync import StatuspageSyncHandler
from incident_bot.jobs.work_pool import CommandWorkPool
from incident_bot.services.notification_service import DMThrottle, NotificationService


@dataclass
class AppState:
    settings: Settings
    slack: SlackClient
    statuspage: Optional[StatuspageClient]
    throttle: DMThrottle
    dispatcher: JobDispatcher
    work_pool: CommandWorkPool
    session_factory: Callable[[], Session]

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
        finally:
            db.close()

    def notifications(self, db: Session) -> NotificationService:
        return NotificationService(db, self.slack, self.settings, self.throttle)

    def shutdown(self) -> None:
        self.dispatcher.stop()
        self.work_pool.shutdown()
        self.slack.close()
        if self.statuspage is not None:
            self.statuspage.close()


def build_app_state(settings: Settings, session_factory: Callable[[], Session]) -> AppState:
    """Construct clients, throttle and pools from settings. Nothing is started."""
    slack = SlackClient(
        token=settings.SLACK_BOT_TOKEN,
        base_url=settings.SLACK_API_BASE_URL,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )

    statuspage = None
    if settings.statuspage_enabled:
        statuspage = StatuspageClient(
            api_key=settings.STATUSPAGE_API_KEY,
            page_id=settings.STATUSPAGE_PAGE_ID,
            base_url=settings.STATUSPAGE_API_BASE_URL,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )

    return AppState(
        settings=settings,
        slack=slack,
        statuspage=statuspage,
        throttle=DMThrottle(window_seconds=settings.DM_THROTTLE_SECONDS),
        dispatcher=JobDispatcher(
            StatuspageSyncHandler(statuspage),
            max_workers=settings.JOB_WORKER_POOL_SIZE,
        ),
        work_pool=CommandWorkPool(slack, max_workers=settings.COMMAND_WORKER_POOL_SIZE),
        session_factory=session_factory,
    )
