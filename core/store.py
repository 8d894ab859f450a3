from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

import pandas as pd


logger = logging.getLogger(__name__)

COLLECTIONS = ("doctors", "patients", "visits", "financial", "quality", "performance")


@dataclass(frozen=True)
class LoadResult:
    tables: Dict[str, pd.DataFrame]
    source: str


@dataclass(frozen=True)
class RecordSnapshot:
    """One ingestion generation of the six hospital collections.

    Report builders treat the frames as read-only; a reload builds a new snapshot.
    """

    doctors: pd.DataFrame = field(default_factory=pd.DataFrame)
    patients: pd.DataFrame = field(default_factory=pd.DataFrame)
    visits: pd.DataFrame = field(default_factory=pd.DataFrame)
    financial: pd.DataFrame = field(default_factory=pd.DataFrame)
    quality: pd.DataFrame = field(default_factory=pd.DataFrame)
    performance: pd.DataFrame = field(default_factory=pd.DataFrame)
    generation: int = 0
    source: str = "empty"
    loaded_at: Optional[datetime] = None
    started_at: float = 0.0

    @classmethod
    def from_tables(
        cls,
        tables: Dict[str, pd.DataFrame],
        *,
        generation: int,
        source: str,
        started_at: float = 0.0,
    ) -> "RecordSnapshot":
        frames = {name: tables.get(name, pd.DataFrame()) for name in COLLECTIONS}
        return cls(
            **frames,
            generation=generation,
            source=source,
            loaded_at=datetime.now(timezone.utc),
            started_at=started_at,
        )

    def counts(self) -> Dict[str, int]:
        return {name: int(len(getattr(self, name))) for name in COLLECTIONS}

    def is_empty(self) -> bool:
        return not any(self.counts().values())


class RecordStore:
    """Holds the current snapshot and swaps it as a single reference."""

    def __init__(self, snapshot: Optional[RecordSnapshot] = None) -> None:
        self._snapshot = snapshot or RecordSnapshot()
        self._swap_lock = threading.Lock()
        self._reload_lock = threading.Lock()

    def snapshot(self) -> RecordSnapshot:
        return self._snapshot

    def replace(self, tables: Dict[str, pd.DataFrame], source: str, *, started_at: float = 0.0) -> RecordSnapshot:
        with self._swap_lock:
            snap = RecordSnapshot.from_tables(
                tables,
                generation=self._snapshot.generation + 1,
                source=source,
                started_at=started_at,
            )
            self._snapshot = snap
        logger.info("Record store now at generation %s (source=%s) %s", snap.generation, snap.source, snap.counts())
        return snap

    def reload(self, load: Callable[[], LoadResult]) -> RecordSnapshot:
        """Run `load` and swap in its result, one reload at a time.

        A caller that queued behind a reload which began after its own request
        returns that fresher snapshot instead of loading again.
        """
        requested_at = time.monotonic()
        with self._reload_lock:
            current = self._snapshot
            if current.generation > 0 and current.started_at >= requested_at:
                logger.info("Reload satisfied by concurrent generation %s", current.generation)
                return current
            started_at = time.monotonic()
            result = load()
            return self.replace(result.tables, result.source, started_at=started_at)
