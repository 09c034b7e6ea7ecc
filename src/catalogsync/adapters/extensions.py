"""Load locally installed custom integrations into the catalog."""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING

from catalogsync.adapters.github.schema import Manifest
from catalogsync.adapters.github.translator import translate_manifest

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

    from catalogsync.domain.model import CatalogEntry

log = getLogger(__name__)

MANIFEST_FILENAME = "manifest.json"
CUSTOM_COMPONENTS_DIR = "custom_components"


def discover_manifests(directory: Path) -> Iterator[tuple[Path, str]]:
    """Yield ``(manifest path, fallback domain)`` for every extension below ``directory``.

    An extension either carries ``manifest.json`` at its root or, HACS style, one
    per ``custom_components/<domain>/`` folder.
    """

    for extension in sorted(directory.iterdir()):
        if not extension.is_dir():
            continue
        root_manifest = extension / MANIFEST_FILENAME
        if root_manifest.is_file():
            yield root_manifest, extension.name
            continue
        components = extension / CUSTOM_COMPONENTS_DIR
        if not components.is_dir():
            log.debug("No manifest or %s in %s", CUSTOM_COMPONENTS_DIR, extension.name)
            continue
        for component in sorted(components.iterdir()):
            manifest = component / MANIFEST_FILENAME
            if component.is_dir() and manifest.is_file():
                yield manifest, component.name


def read_extension_manifest(path: Path, fallback_domain: str) -> CatalogEntry:
    document = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(document, dict):
        raise ValueError("manifest is not a JSON object")
    manifest = Manifest.model_validate(document)
    domain = manifest.domain or fallback_domain
    if manifest.domain is None:
        manifest = manifest.model_copy(update={"domain": domain})
    return translate_manifest(manifest, domain)


def load_extensions(
    directory: Path,
    import_entry: Callable[[CatalogEntry], object],
) -> list[str]:
    """Import every extension manifest under ``directory``; return the imported domains."""

    if not directory.is_dir():
        log.info("No extensions directory at %s; skipping custom integrations", directory)
        return []

    loaded: list[str] = []
    for path, fallback_domain in discover_manifests(directory):
        try:
            entry = read_extension_manifest(path, fallback_domain)
        except (OSError, ValueError) as exc:
            log.warning("Skipping extension manifest %s: %s", path, exc)
            continue
        import_entry(entry)
        log.info("Loaded custom integration %s (%s)", entry.name, entry.domain)
        loaded.append(entry.domain)
    return loaded
