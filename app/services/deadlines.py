"""
Deadline reminders.

A polling loop that, every interval, looks for tasks due within the horizon whose
stored status is still In Progress and reminds the owner and all collaborators.

Reminders are not remembered between sweeps: a task that stays inside the window
for several intervals is reminded on every one of them.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta

from sqlmodel import Session, select, col

from app.core.clock import as_utc, utcnow
from app.models.notification import NotificationType
from app.models.task import Task, TaskStatus
from app.realtime.registry import ConnectionRegistry
from app.services.email import Mailer
from app.services.notifications import NotificationDispatcher

logger = logging.getLogger(__name__)

DEFAULT_HORIZON = timedelta(hours=1)


def find_due_tasks(db: Session, now: datetime, horizon: timedelta = DEFAULT_HORIZON) -> list[Task]:
    now = as_utc(now)
    statement = (
        select(Task)
        .where(
            col(Task.due_date) >= now,
            col(Task.due_date) <= now + horizon,
            Task.status == TaskStatus.IN_PROGRESS.value,
        )
        .order_by(col(Task.due_date))
    )
    return list(db.exec(statement).all())


def scan_due_tasks(
    db: Session,
    dispatcher: NotificationDispatcher,
    *,
    now: datetime | None = None,
    horizon: timedelta = DEFAULT_HORIZON,
) -> int:
    """
    Run one sweep. Returns the number of tasks reminders were sent for.

    Eligibility looks at the stored status only; the display-time Timed Out
    override plays no part here.
    """
    now = as_utc(now or utcnow())
    tasks = find_due_tasks(db, now, horizon)

    # Collect first: each notify() commits, which expires the loaded tasks
    reminders = [(task.id, task.title, task.member_ids()) for task in tasks]
    for task_id, title, members in reminders:
        dispatcher.notify(members, NotificationType.DEADLINE, f"Task '{title}' is due soon!", task_id=task_id)

    if reminders:
        logger.info("deadline sweep reminded %d task(s)", len(reminders))
    return len(reminders)


def _sweep_once(engine, mailer: Mailer, registry: ConnectionRegistry, horizon: timedelta) -> int:
    with Session(engine) as db:
        dispatcher = NotificationDispatcher(db, mailer, registry)
        return scan_due_tasks(db, dispatcher, horizon=horizon)


async def run_deadline_scanner(
        engine,
        mailer: Mailer,
        registry: ConnectionRegistry,
        *,
        interval_seconds: float = 300.0,
        horizon: timedelta = DEFAULT_HORIZON,
) -> None:
    """
    Sweep every interval_seconds until cancelled.

    The sweep itself is synchronous database work, so it runs in a worker thread.
    A failed sweep is logged and the loop carries on with the next interval.
    """
    sleep_s = max(1.0, float(interval_seconds))
    logger.info("deadline scanner started interval=%ss horizon=%s", sleep_s, horizon)

    while True:
        await asyncio.sleep(sleep_s)
        try:
            await asyncio.to_thread(_sweep_once, engine, mailer, registry, horizon)
        except Exception:
            logger.exception("deadline sweep failed")
