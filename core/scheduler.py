from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from core.store import LoadResult, RecordStore


logger = logging.getLogger(__name__)


class PeriodicReloader:
    """Background thread that reloads the record store on a fixed interval."""

    def __init__(self, store: RecordStore, load: Callable[[], LoadResult], interval_seconds: float) -> None:
        self.store = store
        self.load = load
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.interval_seconds <= 0 or self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="hospital-data-refresh", daemon=True)
        self._thread.start()
        logger.info("Hot reload scheduled every %s seconds", self.interval_seconds)

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            logger.info("Hot reload: checking for updated data")
            try:
                self.store.reload(self.load)
            except Exception:
                logger.exception("Scheduled reload failed; keeping generation %s", self.store.snapshot().generation)
