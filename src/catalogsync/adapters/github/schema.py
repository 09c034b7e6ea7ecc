"""GitHub contents API and integration manifest schemas."""

from __future__ import annotations

import logging
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict

log = logging.getLogger(__name__)

type ContentType = Literal["file", "dir", "symlink", "submodule"]


class GitHubContent(BaseModel):
    """One item of a contents listing, or a single file with its payload."""

    model_config = ConfigDict(extra="ignore")

    name: str
    path: str
    type: ContentType
    download_url: str | None = None
    content: str | None = None
    encoding: str | None = None

    @property
    def is_dir(self) -> bool:
        return self.type == "dir"


class Manifest(BaseModel):
    """An integration's ``manifest.json``.

    Only the keys the translator reads are modelled; everything else is kept as
    extra data. Unknown keys are logged once per process.
    """

    model_config = ConfigDict(extra="allow")
    _logged_extra_keys: ClassVar[set[str]] = set()

    domain: str | None = None
    name: str | None = None
    documentation: str | list[str] | None = None
    requirements: list[str] | None = None
    dependencies: list[str] | None = None
    after_dependencies: list[str] | None = None
    codeowners: list[str] | None = None
    config_flow: bool | None = None
    iot_class: str | None = None
    integration_type: str | None = None
    dhcp: list[Any] | None = None
    zeroconf: list[Any] | None = None
    ssdp: list[Any] | None = None
    homekit: dict[str, Any] | None = None

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug("Manifest: unmodeled keys: %s", ", ".join(sorted(new_keys)))
