"""Batched "catalog updated" notices built from a finished sync run."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from catalogsync.domain.model import ChangeType

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from uuid import UUID

    from catalogsync.domain.model import SyncChange

log = logging.getLogger(__name__)

NAMES_PER_NOTICE = 5


class NoticeKind(StrEnum):
    NEW_INTEGRATIONS = "new_integrations"
    UPDATED_INTEGRATIONS = "updated_integrations"
    DEPRECATED_INTEGRATIONS = "deprecated_integrations"


class NoticeLevel(StrEnum):
    INFO = "info"
    WARNING = "warning"


@dataclass(frozen=True, slots=True, kw_only=True)
class UpdateNotice:
    sync_id: UUID
    kind: NoticeKind
    level: NoticeLevel
    title: str
    message: str
    domains: tuple[str, ...] = field(default_factory=tuple)

    @property
    def count(self) -> int:
        return len(self.domains)


@runtime_checkable
class CatalogUpdateNotifier(Protocol):
    """Receives the notices of a completed run; delivery is up to the implementation."""

    def notify(self, notices: Sequence[UpdateNotice]) -> None: ...


class LoggingNotifier:
    def notify(self, notices: Sequence[UpdateNotice]) -> None:
        for notice in notices:
            level = logging.WARNING if notice.level is NoticeLevel.WARNING else logging.INFO
            log.log(level, "%s: %s", notice.title, notice.message)


_TEMPLATES: dict[ChangeType, tuple[NoticeKind, NoticeLevel, str, str]] = {
    ChangeType.NEW: (
        NoticeKind.NEW_INTEGRATIONS,
        NoticeLevel.INFO,
        "New Integrations Available",
        "added",
    ),
    ChangeType.UPDATED: (
        NoticeKind.UPDATED_INTEGRATIONS,
        NoticeLevel.INFO,
        "Integration Updates Available",
        "updated",
    ),
    ChangeType.DEPRECATED: (
        NoticeKind.DEPRECATED_INTEGRATIONS,
        NoticeLevel.WARNING,
        "Integrations Deprecated",
        "removed upstream",
    ),
}


def summarize_names(names: Sequence[str], *, limit: int = NAMES_PER_NOTICE) -> str:
    """``"A, B, C"`` or ``"A, B, C, D, E and 3 more"``."""

    shown = ", ".join(names[:limit])
    remaining = len(names) - limit
    if remaining > 0:
        return f"{shown} and {remaining} more"
    return shown


def build_update_notices(
    sync_id: UUID,
    changes: Sequence[SyncChange],
    *,
    names: Mapping[str, str] | None = None,
) -> list[UpdateNotice]:
    """Group a run's changes into at most one notice per change type.

    ``names`` maps domains to display names; unknown domains are shown as-is.
    """

    display_names = names or {}
    notices: list[UpdateNotice] = []
    for change_type, (kind, level, title, verb) in _TEMPLATES.items():
        domains = tuple(change.domain for change in changes if change.change_type is change_type)
        if not domains:
            continue
        noun = "integration" if len(domains) == 1 else "integrations"
        labels = [display_names.get(domain, domain) for domain in domains]
        notices.append(
            UpdateNotice(
                sync_id=sync_id,
                kind=kind,
                level=level,
                title=title,
                message=f"{len(domains)} {noun} {verb}: {summarize_names(labels)}",
                domains=domains,
            )
        )
    return notices
