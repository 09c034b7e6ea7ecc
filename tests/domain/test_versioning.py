from __future__ import annotations

import hashlib
import json

from catalogsync.domain.versioning import HASHED_FIELDS, compute_version_hash, diff_fields
from tests.helpers.catalog import make_entry


def test_hash_is_deterministic_for_equal_content() -> None:
    first = make_entry("light", metadata={"iot_class": "local_push"})
    second = make_entry("light", metadata={"iot_class": "local_push"})

    assert compute_version_hash(first) == compute_version_hash(second)
    assert len(compute_version_hash(first)) == 64


def test_hash_ignores_key_order_of_structured_fields() -> None:
    first = make_entry("hue", flow_config={"discovery_protocols": {"ssdp": [], "zeroconf": []}})
    second = make_entry("hue", flow_config={"discovery_protocols": {"zeroconf": [], "ssdp": []}})

    assert compute_version_hash(first) == compute_version_hash(second)


def test_hash_treats_empty_values_as_missing() -> None:
    blank = make_entry("demo", description="", documentation_url="", metadata={})
    missing = make_entry("demo", description=None, documentation_url=None, metadata=None)

    assert compute_version_hash(blank) == compute_version_hash(missing)


def test_hash_ignores_sync_bookkeeping() -> None:
    entry = make_entry("demo")
    before = compute_version_hash(entry)

    entry.mark_synced(before)

    assert compute_version_hash(entry) == before


def test_hash_matches_canonical_json_digest() -> None:
    entry = make_entry("demo", metadata={"b": 1, "a": 2})
    document = {name: getattr(entry, name) for name in HASHED_FIELDS}
    payload = json.dumps(document, sort_keys=True, separators=(",", ":"))

    assert compute_version_hash(entry) == hashlib.sha256(payload.encode()).hexdigest()


def test_any_hashed_field_changes_the_hash() -> None:
    base = make_entry("demo")

    assert compute_version_hash(base) != compute_version_hash(make_entry("demo", icon="mdi:fan"))
    assert compute_version_hash(base) != compute_version_hash(
        make_entry("demo", brand_image_url="https://brands.home-assistant.io/demo/icon.png")
    )


def test_diff_fields_reports_description_only() -> None:
    old = make_entry("switch_y", description="Old")
    new = make_entry("switch_y", description="New")

    changed = diff_fields(compute_version_hash(old), compute_version_hash(new), old, new)

    assert changed == ["description"]


def test_diff_fields_is_empty_for_equal_hashes() -> None:
    old = make_entry("demo", description="Old")
    new = make_entry("demo", description="New")

    assert diff_fields("same", "same", old, new) == []


def test_diff_fields_lists_changes_in_hash_order() -> None:
    old = make_entry("demo", metadata={"codeowners": ["@a"]}, name="Demo")
    new = make_entry("demo", metadata={"codeowners": ["@b"]}, name="Demo 2")

    changed = diff_fields(compute_version_hash(old), compute_version_hash(new), old, new)

    assert changed == ["name", "metadata"]
