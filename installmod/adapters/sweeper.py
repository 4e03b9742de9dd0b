"""
Background sweeper that promotes due scheduled posts.

Runs PublishService.sweep_due on a daemon thread every poll interval.
Production can call the `publish-due` CLI command from cron instead.
"""

from __future__ import annotations

import logging
import threading

from installmod.core.services.publish import PublishService, SweepResult

logger = logging.getLogger(__name__)


class PublishSweeper:
    def __init__(
        self,
        publisher: PublishService,
        poll_interval_seconds: float = 60.0,
    ) -> None:
        self._publisher = publisher
        self._poll_interval = poll_interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._running = False

    def start(self) -> None:
        """Start the background sweeper."""
        if self._running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._poll_loop, daemon=True)
        self._thread.start()
        self._running = True
        logger.info("Publish sweeper started (poll interval: %.1fs)", self._poll_interval)

    def stop(self) -> None:
        """Stop the sweeper gracefully."""
        if not self._running:
            return

        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5.0)
        self._running = False
        logger.info("Publish sweeper stopped")

    def trigger_now(self) -> SweepResult:
        return self._publisher.sweep_due()

    @property
    def is_running(self) -> bool:
        return self._running

    def wait(self) -> None:
        """Block until stop() is called (foreground mode)."""
        self._stop_event.wait()

    def _poll_loop(self) -> None:
        while not self._stop_event.wait(timeout=self._poll_interval):
            try:
                result = self._publisher.sweep_due()
                if result.total_processed > 0:
                    logger.info(
                        "Sweep processed %d posts: %d published, %d failed",
                        result.total_processed,
                        len(result.promoted),
                        len(result.failed),
                    )
            except Exception:
                logger.exception("Error in publish sweeper loop")
