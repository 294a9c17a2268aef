"""Periodic expiry sweep.

Notifications are normally scheduled right after an inventory change. An
item can cross into the alert window without any change, so this job re-runs
the scheduling pass for every user on a cron schedule.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


async def run_sweep(inventory_db, notifier) -> int:
    """Run one scheduling pass per user with active items.

    Returns:
        Number of notifications created.
    """
    logger.info("Running expiry sweep...")
    try:
        user_ids = inventory_db.get_active_user_ids()
    except Exception:
        logger.exception("Expiry sweep failed to list users")
        return 0

    created = 0
    for user_id in user_ids:
        created += len(await notifier.schedule(user_id))
    logger.info("Expiry sweep created %d notifications for %d users", created, len(user_ids))
    return created


class ExpirySweeper:
    """Runs the expiry scheduling pass for all users on a cron trigger.

    Uses APScheduler for cron-based scheduling.
    """

    def __init__(self, config, inventory_db, notifier) -> None:
        """Initialize the sweeper.

        Args:
            config: FreshkeepConfig instance.
            inventory_db: InventoryDB used to find users with active items.
            notifier: ExpiryNotifier that performs each pass.

        Raises:
            ImportError: If apscheduler is not installed.
        """
        try:
            from apscheduler.schedulers.asyncio import AsyncIOScheduler
            from apscheduler.triggers.cron import CronTrigger
        except ImportError:
            raise ImportError(
                "apscheduler is required: pip install 'freshkeep[scheduler]'"
            )

        self._config = config
        self._inventory = inventory_db
        self._notifier = notifier
        self._scheduler = AsyncIOScheduler()
        self._CronTrigger = CronTrigger
        self._running = False

    def setup_jobs(self) -> None:
        """Register the sweep job based on config."""
        if not self._config.sweeper.enabled:
            logger.info("Expiry sweep is disabled")
            return
        schedule = self._config.sweeper.schedule
        self._scheduler.add_job(
            self.sweep,
            trigger=self._parse_cron(schedule),
            id="expiry_sweep",
            name="Expiry notification sweep",
            replace_existing=True,
        )
        logger.info("Registered expiry sweep job: %s", schedule)

    def start(self) -> None:
        """Start the scheduler. Must be called with a running event loop."""
        self.setup_jobs()
        self._scheduler.start()
        self._running = True
        logger.info("Sweeper started")

    def stop(self) -> None:
        if self._running:
            self._scheduler.shutdown(wait=False)
            self._running = False
            logger.info("Sweeper stopped")

    @property
    def running(self) -> bool:
        return self._running

    def get_jobs(self) -> list[dict]:
        """Return info about scheduled jobs."""
        jobs = []
        for job in self._scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": str(next_run) if next_run else None,
            })
        return jobs

    def _parse_cron(self, expr: str):
        """Parse a cron expression into a CronTrigger."""
        parts = expr.split()
        if len(parts) == 5:
            return self._CronTrigger(
                minute=parts[0],
                hour=parts[1],
                day=parts[2],
                month=parts[3],
                day_of_week=parts[4],
            )
        raise ValueError(f"Invalid cron expression: {expr}")

    async def sweep(self) -> int:
        return await run_sweep(self._inventory, self._notifier)
