import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from tracker.core.config import ingestion_config_from
from tracker.services.ingestion import IngestionService

logger = logging.getLogger("scheduler")

MODES = ("off", "loop", "cron")


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


class SchedulerService:
    """
    Periodic ingestion trigger living inside the API process.

    off  -> nothing runs; ingestion only via /api/run or /api/cron/scrape
    loop -> one run every REFRESH_INTERVAL_MINUTES, first one at startup
    cron -> one run at startup; an external cron calls /api/cron/scrape afterwards
    """

    def __init__(self, app):
        self.app = app
        self.task: Optional[asyncio.Task] = None
        self.running = False
        self._lock: Optional[asyncio.Lock] = None

        cfg = app.state.config
        self.mode = cfg.scheduler_mode if cfg.scheduler_mode in MODES else "off"
        self.interval_minutes = cfg.refresh_interval_minutes

        # status fields
        self.runs_completed = 0
        self.last_run_id: Optional[str] = None
        self.last_trigger: Optional[str] = None
        self.last_run_started_at: Optional[str] = None
        self.last_run_finished_at: Optional[str] = None
        self.last_run_stats: Optional[Dict[str, Any]] = None
        self.last_error: Optional[str] = None
        self.next_run_at: Optional[str] = None

    @property
    def lock(self) -> asyncio.Lock:
        # bound to the running event loop
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    async def start(self) -> None:
        logger.info("[scheduler] mode=%s interval_minutes=%s", self.mode, self.interval_minutes)

        if self.mode == "cron":
            await self.run_once(trigger="startup-cron")
            return

        if self.mode == "loop" and not self.running:
            self.running = True
            self.task = asyncio.create_task(self.loop_runner())

    async def stop(self) -> None:
        self.running = False
        self.next_run_at = None
        task, self.task = self.task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def _ingestion_service(self) -> IngestionService:
        return IngestionService(
            self.app.state.db,
            ingestion_config_from(self.app.state.config),
            fetcher=getattr(self.app.state, "fetcher", None),
        )

    async def run_once(self, trigger: str = "manual") -> Optional[Dict[str, Any]]:
        """
        Runs one ingestion in a worker thread. Calls that arrive while a run is
        in flight wait for it instead of starting a second one in parallel.
        """
        async with self.lock:
            self.last_error = None
            self.last_trigger = trigger
            self.last_run_started_at = now_utc().isoformat()
            logger.info("[scheduler] run started trigger=%s", trigger)

            service = self._ingestion_service()
            try:
                result = await asyncio.to_thread(service.run_once, trigger)
            except Exception as e:
                self.last_error = f"{type(e).__name__}: {e}"
                logger.exception("[scheduler] run failed trigger=%s", trigger)
                return None
            finally:
                self.last_run_finished_at = now_utc().isoformat()

            self.runs_completed += 1
            self.last_run_id = result.get("run_id")
            self.last_run_stats = result.get("stats")
            logger.info(
                "[scheduler] run complete run_id=%s inserted=%s source_errors=%s",
                self.last_run_id,
                (self.last_run_stats or {}).get("inserted"),
                len((self.last_run_stats or {}).get("source_errors") or {}),
            )
            return result

    async def loop_runner(self) -> None:
        interval = timedelta(minutes=self.interval_minutes)
        while self.running:
            deadline = now_utc() + interval
            await self.run_once(trigger="loop")
            self.next_run_at = deadline.isoformat()

            remaining = (deadline - now_utc()).total_seconds()
            if remaining > 0:
                await asyncio.sleep(remaining)

    def status(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "interval_minutes": self.interval_minutes,
            "running": bool(self.running),
            "busy": self._lock is not None and self._lock.locked(),
            "runs_completed": self.runs_completed,
            "last_run_id": self.last_run_id,
            "last_trigger": self.last_trigger,
            "last_run_started_at": self.last_run_started_at,
            "last_run_finished_at": self.last_run_finished_at,
            "last_run_stats": self.last_run_stats,
            "last_error": self.last_error,
            "next_run_at": self.next_run_at,
        }
