from __future__ import annotations

import logging
from typing import Callable, Protocol

from core.config import AppConfig
from core.remote.session import CommandResult, RemoteSession


class Session(Protocol):
    async def connect(self) -> None: ...

    async def execute(self, command: str, timeout: float | None = None) -> CommandResult: ...

    async def close(self) -> None: ...


SessionFactory = Callable[[str, str, str], Session]


def create_session_factory(config: AppConfig, logger: logging.Logger) -> SessionFactory:
    timeout_seconds = config.get_command_timeout_seconds()
    known_hosts = config.get_known_hosts_path()

    def create_session(host: str, username: str, password: str) -> Session:
        return RemoteSession(
            host=host,
            username=username,
            password=password,
            known_hosts=known_hosts,
            timeout_seconds=timeout_seconds,
            logger=logger,
        )

    return create_session
