"""In-process single-flight guard for sync runs.

The guard only sees runs started by this process. Deployments with several
writer processes need an external lock; this one is not it.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from .errors import SyncConflictError

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID


class SingleFlightGuard:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._active: set[UUID] = set()

    @property
    def in_progress(self) -> bool:
        with self._lock:
            return bool(self._active)

    @property
    def active_runs(self) -> frozenset[UUID]:
        with self._lock:
            return frozenset(self._active)

    def acquire(self, start: Callable[[], UUID], *, force: bool = False) -> UUID:
        """Run ``start`` and register the id it returns, unless a run is active.

        Checking, starting and registering happen under one lock, so two callers
        can never both observe an idle guard. ``force`` registers alongside any
        active run.
        """

        with self._lock:
            if self._active and not force:
                raise SyncConflictError(frozenset(self._active))
            run_id = start()
            self._active.add(run_id)
            return run_id

    def release(self, run_id: UUID) -> None:
        with self._lock:
            self._active.discard(run_id)
