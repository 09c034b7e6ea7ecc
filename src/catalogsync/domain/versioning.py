"""Content hashing and change detection for catalog entries.

A version hash covers only the descriptive fields of an entry. Sync bookkeeping
(status, timestamps, the hash itself) never contributes, so re-hashing a stored
row reproduces the hash it was stored with.
"""

from __future__ import annotations

import hashlib
import json
from typing import TYPE_CHECKING, Any, Final

if TYPE_CHECKING:
    from catalogsync.domain.model import CatalogEntry

HASHED_FIELDS: Final[tuple[str, ...]] = (
    "name",
    "description",
    "icon",
    "supports_devices",
    "is_cloud",
    "documentation_url",
    "flow_type",
    "flow_config",
    "handler_class",
    "metadata",
    "brand_image_url",
)


def _normalize(value: Any) -> Any:
    # "", [] and {} hash like a missing value.
    if value is None:
        return None
    if isinstance(value, (str, list, dict, tuple, set)) and not value:
        return None
    if isinstance(value, set):
        return sorted(value)
    return value


def canonical_json(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


def hash_document(entry: CatalogEntry) -> dict[str, Any]:
    """Return the normalized field map that :func:`compute_version_hash` digests."""

    return {name: _normalize(getattr(entry, name)) for name in HASHED_FIELDS}


def compute_version_hash(entry: CatalogEntry) -> str:
    payload = canonical_json(hash_document(entry))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def diff_fields(
    old_hash: str | None,
    new_hash: str | None,
    old_entry: CatalogEntry,
    new_entry: CatalogEntry,
) -> list[str]:
    """Return the names of hashed fields that differ, in hashing order.

    Equal hashes short-circuit to an empty list without looking at the entries.
    """

    if old_hash is not None and old_hash == new_hash:
        return []
    old_document = hash_document(old_entry)
    new_document = hash_document(new_entry)
    return [
        name
        for name in HASHED_FIELDS
        if canonical_json(old_document[name]) != canonical_json(new_document[name])
    ]


__all__ = ["HASHED_FIELDS", "canonical_json", "compute_version_hash", "diff_fields", "hash_document"]
