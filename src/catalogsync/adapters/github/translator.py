"""Translate integration manifests into catalog entries."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final

from catalogsync.domain.model import CatalogEntry, FlowType

if TYPE_CHECKING:
    from catalogsync.domain.model import JSONDocument

    from .schema import Manifest

DEFAULT_ICON: Final[str] = "mdi:puzzle"

ICON_BY_DOMAIN: Final[dict[str, str]] = {
    "light": "mdi:lightbulb",
    "switch": "mdi:toggle-switch",
    "sensor": "mdi:gauge",
    "climate": "mdi:thermostat",
    "cover": "mdi:window-shutter",
    "fan": "mdi:fan",
    "lock": "mdi:lock",
    "camera": "mdi:cctv",
    "media_player": "mdi:play-circle",
    "weather": "mdi:weather-cloudy",
    "zigbee": "mdi:zigbee",
    "zwave": "mdi:zwave",
    "mqtt": "mdi:message-text",
    "bluetooth": "mdi:bluetooth",
    "wifi": "mdi:wifi",
}

CLOUD_IOT_CLASSES: Final[frozenset[str]] = frozenset({"cloud_polling", "cloud_push"})
DISCOVERY_PROTOCOLS: Final[tuple[str, ...]] = ("dhcp", "zeroconf", "ssdp", "homekit")
OAUTH_KEYWORDS: Final[tuple[str, ...]] = ("oauth", "authlib", "google", "spotify", "nest")
METADATA_KEYS: Final[tuple[str, ...]] = (
    "requirements",
    "dependencies",
    "after_dependencies",
    "codeowners",
    "iot_class",
)


def translate_manifest(manifest: Manifest, domain: str) -> CatalogEntry:
    """Map a manifest fetched from the ``domain`` directory onto a catalog entry."""

    name = manifest.name or humanize_domain(domain)
    description = f"Home Assistant {name} integration"
    if manifest.config_flow:
        description += " (supports config flow)"

    return CatalogEntry(
        domain=manifest.domain or domain,
        name=name,
        description=description,
        icon=infer_icon(domain),
        supports_devices=_supports_devices(manifest),
        is_cloud=manifest.iot_class in CLOUD_IOT_CLASSES,
        documentation_url=_documentation_url(manifest.documentation),
        flow_type=detect_flow_type(manifest).value,
        flow_config=_flow_config(manifest),
        handler_class=None,
        metadata=_metadata(manifest),
    )


def translate_missing_manifest(domain: str) -> CatalogEntry:
    """Fallback entry for a directory without a manifest."""

    return CatalogEntry(
        domain=domain,
        name=humanize_domain(domain),
        description=f"Home Assistant {domain} integration",
        icon=DEFAULT_ICON,
        supports_devices=False,
        is_cloud=False,
    )


def humanize_domain(domain: str) -> str:
    """``light_x`` -> ``Light X``."""

    return " ".join(word[:1].upper() + word[1:] for word in domain.split("_"))


def infer_icon(domain: str) -> str:
    normalized = domain.lower()
    exact = ICON_BY_DOMAIN.get(normalized)
    if exact is not None:
        return exact
    for key, icon in ICON_BY_DOMAIN.items():
        if key in normalized:
            return icon
    return DEFAULT_ICON


def detect_flow_type(manifest: Manifest) -> FlowType:
    if not manifest.config_flow:
        return FlowType.NONE
    if _has_oauth_indicators(manifest):
        return FlowType.OAUTH
    if _discovery_protocols(manifest):
        return FlowType.DISCOVERY
    return FlowType.MANUAL


def _has_oauth_indicators(manifest: Manifest) -> bool:
    packages = [*(manifest.dependencies or ()), *(manifest.requirements or ())]
    return any(keyword in package.lower() for package in packages for keyword in OAUTH_KEYWORDS)


def _discovery_protocols(manifest: Manifest) -> dict[str, Any]:
    # Presence counts, even an empty matcher list.
    protocols: dict[str, Any] = {}
    for protocol in DISCOVERY_PROTOCOLS:
        value = getattr(manifest, protocol)
        if value is not None:
            protocols[protocol] = value
    return protocols


def _supports_devices(manifest: Manifest) -> bool:
    if manifest.config_flow:
        return True
    return manifest.iot_class is not None or bool(_discovery_protocols(manifest))


def _documentation_url(documentation: str | list[str] | None) -> str | None:
    if isinstance(documentation, str):
        return documentation or None
    if documentation:
        return documentation[0]
    return None


def _flow_config(manifest: Manifest) -> JSONDocument | None:
    protocols = _discovery_protocols(manifest)
    if not protocols:
        return None
    return {"discovery_protocols": protocols}


def _metadata(manifest: Manifest) -> JSONDocument | None:
    metadata: JSONDocument = {}
    for key in METADATA_KEYS:
        value = getattr(manifest, key)
        if value is not None:
            metadata[key] = value
    return metadata or None
