from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from catalogsync.domain.catalog import CatalogService
from catalogsync.domain.versioning import compute_version_hash
from tests.helpers.catalog import make_entry

if TYPE_CHECKING:
    from collections.abc import Callable

    from catalogsync.adapters.sqlalchemy.unit_of_work import SqlAlchemyCatalogUnitOfWork


@pytest.fixture
def service(sqlite_unit_of_work: Callable[[], SqlAlchemyCatalogUnitOfWork]) -> CatalogService:
    entries = [
        make_entry("hue", name="Philips Hue", flow_config={"discovery_protocols": ["zeroconf"]}),
        make_entry("zwave_js", name="Z-Wave"),
        make_entry("sonos", name="Sonos"),
        make_entry("old_light", name="Old Light"),
    ]
    with sqlite_unit_of_work() as uow:
        for entry in entries:
            entry.mark_synced(compute_version_hash(entry))
            uow.repositories.catalog.add(entry)
        entries[-1].deprecate()
        uow.commit()
    return CatalogService(
        unit_of_work=sqlite_unit_of_work,
        configured_domains=lambda: {"sonos"},
    )


def test_listing_excludes_deprecated_and_orders_by_name(service: CatalogService) -> None:
    listing = service.list_integrations()

    assert [item.domain for item in listing.items] == ["hue", "sonos", "zwave_js"]
    assert listing.total == 3
    assert [item.is_configured for item in listing.items] == [False, True, False]


def test_search_matches_name_or_domain_case_insensitively(service: CatalogService) -> None:
    assert [item.domain for item in service.list_integrations(query="PHILIPS").items] == ["hue"]
    assert [item.domain for item in service.list_integrations(query="zwave").items] == [
        "zwave_js"
    ]
    assert service.list_integrations(query="old").total == 0


def test_pagination_keeps_total(service: CatalogService) -> None:
    page = service.list_integrations(limit=1, offset=1)

    assert [item.domain for item in page.items] == ["sonos"]
    assert (page.total, page.limit, page.offset) == (3, 1, 1)


@pytest.mark.parametrize(("limit", "offset"), [(0, 0), (10, -1)])
def test_invalid_paging_is_rejected(service: CatalogService, limit: int, offset: int) -> None:
    with pytest.raises(ValueError, match="limit|offset"):
        service.list_integrations(limit=limit, offset=offset)


def test_flow_config_lookup(service: CatalogService) -> None:
    assert service.get_flow_config("hue") == {
        "flow_type": "manual",
        "flow_config": {"discovery_protocols": ["zeroconf"]},
    }
    assert service.get_flow_config("missing") is None
    entry = service.get_integration("old_light")
    assert entry is not None
    assert not entry.is_active
