from __future__ import annotations

from dataclasses import dataclass, field
import logging

from core.profiles.models import Profile
from core.remote.errors import NoInstallCommandSucceeded
from core.remote.probe import RemoteInstallationProbe
from core.remote.session import quote_shell
from core.remote.session_factory import SessionFactory

SUCCESS_MARKER = "sheephole-install-ok"

INSTALL_TIMEOUT_SECONDS = 600.0

ALLOW_DEV_STABILITY = "composer config minimum-stability dev && composer config prefer-stable true"


@dataclass(slots=True)
class InstallReport:
    command: str
    output: str
    attempted: list[str] = field(default_factory=list)


def build_install_commands(directory: str, namespace: str) -> list[str]:
    change_dir = f"cd {quote_shell(directory)}"
    require = f"composer require {quote_shell(namespace)}"
    marker = f"echo '{SUCCESS_MARKER}'"

    return [
        " && ".join((change_dir, require, marker)),
        " && ".join((change_dir, ALLOW_DEV_STABILITY, require, marker)),
    ]


class RemoteInstaller:
    def __init__(
        self,
        session_factory: SessionFactory,
        probe: RemoteInstallationProbe,
        install_timeout_seconds: float = INSTALL_TIMEOUT_SECONDS,
        logger: logging.Logger | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._probe = probe
        self._install_timeout_seconds = install_timeout_seconds
        self._logger = logger or logging.getLogger("sheephole.remote")

    async def install_package(self, profile: Profile, password: str, namespace: str) -> InstallReport:
        session = self._session_factory(profile.host, profile.username, password)
        try:
            await session.connect()
            await self._probe.require_manifest(session, profile.directory)

            commands = build_install_commands(profile.directory, namespace)
            self._logger.info("about to try these composer commands: %s", commands)

            attempted: list[str] = []
            for command in commands:
                attempted.append(command)
                self._logger.info("  about to try: %s", command)
                try:
                    result = await session.execute(command, timeout=self._install_timeout_seconds)
                except Exception as error:
                    self._logger.info("caught exception trying cmd: %s, exc=%s", command, error)
                    continue

                if SUCCESS_MARKER in result.output:
                    self._logger.info("    successful res from cmd: status=%s", result.exit_status)
                    return InstallReport(command=command, output=result.output, attempted=attempted)

                self._logger.info("    unsuccessful res from cmd: status=%s output=%s", result.exit_status, result.output)

            raise NoInstallCommandSucceeded(attempted)
        finally:
            await session.close()
