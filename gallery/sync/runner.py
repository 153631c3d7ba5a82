"""
Continuous sync: run the pipeline on a fixed interval until stopped.
"""

import logging
import signal
import threading
from datetime import datetime, timezone
from typing import Optional, Protocol

from gallery.config import Settings, get_settings
from gallery.sync.orchestrator import SyncOrchestrator, SyncStats

logger = logging.getLogger(__name__)


class Runnable(Protocol):
    def run(self, cleanup: bool = False) -> SyncStats:
        ...


class ContinuousSync:
    """
    Repeatedly syncs with cleanup, waiting `interval` seconds between runs
    and `retry_delay` seconds after a run that raised.

    stop() is safe to call from a signal handler or another thread: no new
    run starts afterwards and any pending wait returns immediately. A run
    already in progress is allowed to finish.

    Usage:
        runner = ContinuousSync()
        runner.install_signal_handlers()
        runner.start()  # blocks until stop()
    """

    def __init__(
        self,
        orchestrator: Optional[Runnable] = None,
        settings: Optional[Settings] = None,
        interval: Optional[float] = None,
        retry_delay: Optional[float] = None,
    ):
        settings = settings or get_settings()
        self.orchestrator = orchestrator or SyncOrchestrator(settings)
        self.interval = interval if interval is not None else settings.sync_interval_seconds
        self.retry_delay = retry_delay if retry_delay is not None else settings.sync_retry_delay_seconds

        self._stop = threading.Event()
        self.runs = 0
        self.failures = 0
        self.last_sync_time: Optional[datetime] = None

    @property
    def is_running(self) -> bool:
        return not self._stop.is_set()

    def stop(self) -> None:
        self._stop.set()

    def install_signal_handlers(self) -> None:
        """Stop on SIGINT / SIGTERM."""

        def handler(signum, frame):
            logger.info(f"Stopping auto-sync (signal {signum})...")
            self.stop()

        signal.signal(signal.SIGINT, handler)
        signal.signal(signal.SIGTERM, handler)

    def run_once(self) -> SyncStats:
        stats = self.orchestrator.run(cleanup=True)
        self.runs += 1
        self.last_sync_time = datetime.now(timezone.utc)
        return stats

    def start(self) -> None:
        """Run the sync loop in the calling thread until stop() is called."""
        logger.info(f"Auto-sync started - checking Google Drive every {self.interval:g} seconds")

        while not self._stop.is_set():
            try:
                stats = self.run_once()
            except Exception as e:
                self.failures += 1
                logger.exception(f"Auto-sync error: {e}")
                self._stop.wait(self.retry_delay)
                continue

            logger.info(
                f"Published {stats.published} videos; next sync in {self.interval:g} seconds"
            )
            self._stop.wait(self.interval)

        logger.info("Auto-sync stopped")
