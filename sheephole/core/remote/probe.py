from __future__ import annotations

from dataclasses import dataclass
import logging
import re

from core.remote.errors import ManifestMissing, RootPathMissing, VersionFileMissing, VersionPatternNotFound
from core.remote.session import CommandResult, join_remote, quote_shell
from core.remote.session_factory import Session, SessionFactory

PATH_PRESENT_TOKEN = "sheephole-path-present"
PATH_ABSENT_TOKEN = "sheephole-path-absent"

MANIFEST_NAME = "composer.json"

# Packaged web-root layout first, bare-root layout second.
VERSION_FILE_CANDIDATES = (
    "web/core/lib/Drupal.php",
    "core/lib/Drupal.php",
)

VERSION_PATTERN = re.compile(r"\sconst\sVERSION\s=\s(.*);")


@dataclass(frozen=True, slots=True)
class InstallationInfo:
    root_dir: str
    source_file: str
    version: str


class RemoteInstallationProbe:
    def __init__(self, session_factory: SessionFactory, logger: logging.Logger | None = None) -> None:
        self._session_factory = session_factory
        self._logger = logger or logging.getLogger("sheephole.remote")

    async def get_installation_info(
        self,
        username: str,
        password: str,
        host: str,
        root_dir: str,
    ) -> InstallationInfo:
        session = self._session_factory(host, username, password)
        try:
            await session.connect()

            if not await self.check_path_exists(session, root_dir, is_file=False):
                raise RootPathMissing(root_dir)

            await self.require_manifest(session, root_dir)

            source_file = await self._find_version_file(session, root_dir)
            contents = (await self.read_file(session, source_file)).output

            version = parse_version_declaration(contents)
            if version is None:
                raise VersionPatternNotFound(source_file)

            self._logger.info("Detected version %s at %s on %s", version, source_file, host)
            return InstallationInfo(root_dir=root_dir, source_file=source_file, version=version)
        finally:
            await session.close()

    async def check_path_exists(self, session: Session, path: str, is_file: bool) -> bool:
        test = "-f" if is_file else "-d"
        command = f"[ {test} {quote_shell(path)} ] && echo '{PATH_PRESENT_TOKEN}' || echo '{PATH_ABSENT_TOKEN}'"
        result = await session.execute(command)
        self._logger.info("path check %s status=%s result=%s", path, result.exit_status, result.output)
        return PATH_PRESENT_TOKEN in result.output

    async def require_manifest(self, session: Session, root_dir: str) -> None:
        if not await self.check_path_exists(session, join_remote(root_dir, MANIFEST_NAME), is_file=True):
            raise ManifestMissing(root_dir)

    async def read_file(self, session: Session, path: str) -> CommandResult:
        return await session.execute(f"cat {quote_shell(path)}")

    async def _find_version_file(self, session: Session, root_dir: str) -> str:
        candidate = ""
        for relative in VERSION_FILE_CANDIDATES:
            candidate = join_remote(root_dir, relative)
            if await self.check_path_exists(session, candidate, is_file=True):
                return candidate
        raise VersionFileMissing(candidate)


def parse_version_declaration(contents: str) -> str | None:
    match = VERSION_PATTERN.search(contents)
    if match is None:
        return None
    version = match.group(1).replace('"', "").replace("'", "").strip()
    return version or None
