from __future__ import annotations

from uuid import UUID, uuid4

import pytest

from catalogsync.domain.reconciliation import SingleFlightGuard, SyncConflictError


def test_guard_rejects_second_run_without_starting_it() -> None:
    guard = SingleFlightGuard()
    first = guard.acquire(uuid4)
    started: list[UUID] = []

    def start() -> UUID:
        started.append(uuid4())
        return started[-1]

    with pytest.raises(SyncConflictError) as excinfo:
        guard.acquire(start)

    assert started == []
    assert excinfo.value.active == frozenset({first})


def test_forced_runs_register_alongside() -> None:
    guard = SingleFlightGuard()
    first = guard.acquire(uuid4)
    second = guard.acquire(uuid4, force=True)

    assert guard.active_runs == frozenset({first, second})

    guard.release(first)
    assert guard.in_progress
    guard.release(second)
    assert not guard.in_progress


def test_release_is_idempotent() -> None:
    guard = SingleFlightGuard()
    run_id = guard.acquire(uuid4)

    guard.release(run_id)
    guard.release(run_id)

    assert not guard.in_progress
    guard.acquire(uuid4)
