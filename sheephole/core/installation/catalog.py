from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable

from packaging.version import InvalidVersion, Version

from core.installation.models import (
    Installable,
    InstallableVersion,
    InstallationInstruction,
    InstructionType,
)
from core.profiles.models import PlatformType

REQUIRED_KEYS = (
    "body",
    "title",
    "drupal_internal__nid",
    "field_project_machine_name",
    "field_active_installs_total",
    "field_security_advisory_coverage",
)

CATALOG_FILES = {
    10: "drupal_modules_d10.json",
    11: "drupal_modules_d11.json",
}

PROJECT_LINK = "https://www.drupal.org/node/{nid}"


class CatalogError(ValueError):
    pass


def parse_installable(entry: dict[str, Any], version: InstallableVersion) -> Installable:
    attributes = entry.get("attributes")
    if not isinstance(attributes, dict):
        raise CatalogError(f"catalog entry has no attributes: {entry!r}")

    for key in REQUIRED_KEYS:
        if key not in attributes:
            raise CatalogError(f"missing key '{key}' from {attributes!r}")

    body = attributes.get("body")
    if isinstance(body, dict):
        body = body.get("value")
    description = body if isinstance(body, str) else ""

    namespace = attributes.get("field_composer_namespace")
    instructions = []
    if isinstance(namespace, str) and namespace.strip() != "":
        instructions.append(InstallationInstruction(InstructionType.COMPOSER_NAMESPACE, namespace.strip()))

    installs_total = attributes.get("field_active_installs_total")
    return Installable(
        title=str(attributes["title"]),
        machine_name=str(attributes["field_project_machine_name"]),
        description=description,
        link=PROJECT_LINK.format(nid=attributes["drupal_internal__nid"]),
        platform_type=PlatformType.DRUPAL,
        version=version,
        instructions=instructions,
        extra={
            "installs_total": str(installs_total if isinstance(installs_total, int) else 0),
            "security_coverage": str(attributes.get("field_security_advisory_coverage") or ""),
        },
    )


def load_catalog_file(path: Path, version: InstallableVersion) -> list[Installable]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
        raise CatalogError(f"catalog {path} has no data list")
    return [parse_installable(entry, version) for entry in payload["data"]]


class Catalog:
    def __init__(self, installables: dict[int, list[Installable]], logger: logging.Logger | None = None) -> None:
        self._installables = installables
        self._logger = logger or logging.getLogger("sheephole.catalog")
        for major in sorted(installables):
            self._logger.info("Catalog for %s.x has %s installables", major, len(installables[major]))

    @classmethod
    def load(cls, catalog_dir: Path, logger: logging.Logger | None = None) -> Catalog:
        installables: dict[int, list[Installable]] = {}
        for major, file_name in CATALOG_FILES.items():
            path = catalog_dir / file_name
            if not path.exists():
                installables[major] = []
                continue
            installables[major] = load_catalog_file(path, InstallableVersion(major))
        return cls(installables, logger=logger)

    def for_version(self, version: str) -> list[Installable]:
        try:
            major = Version(version).major
        except InvalidVersion:
            major = 11
        if major == 10:
            return self._installables.get(10, [])
        return self._installables.get(11, [])

    def find(self, machine_name: str) -> list[Installable]:
        matches: list[Installable] = []
        for major in sorted(self._installables):
            matches.extend(item for item in self._installables[major] if item.machine_name == machine_name)
        return matches

    def search(self, text: str, version: str) -> list[Installable]:
        return [item for item in self.for_version(version) if item.is_match_for(text)]

    @staticmethod
    def pick_compatible(installables: Iterable[Installable], version: str) -> Installable | None:
        for installable in installables:
            if installable.version.is_compatible(version):
                return installable
        return None
