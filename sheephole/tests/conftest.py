from __future__ import annotations

from typing import Callable

import pytest

from core.remote.session import CommandResult, quote_shell


class FakeSession:
    def __init__(self, responder: Callable[[str], CommandResult | Exception]) -> None:
        self._responder = responder
        self.commands: list[str] = []
        self.timeouts: list[float | None] = []
        self.connected = False
        self.closed = False

    async def connect(self) -> None:
        self.connected = True

    async def execute(self, command: str, timeout: float | None = None) -> CommandResult:
        self.commands.append(command)
        self.timeouts.append(timeout)
        response = self._responder(command)
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self) -> None:
        self.closed = True


class FakeSessionFactory:
    def __init__(self, responder: Callable[[str], CommandResult | Exception]) -> None:
        self._responder = responder
        self.sessions: list[FakeSession] = []
        self.calls: list[tuple[str, str, str]] = []

    def __call__(self, host: str, username: str, password: str) -> FakeSession:
        self.calls.append((host, username, password))
        session = FakeSession(self._responder)
        self.sessions.append(session)
        return session

    @property
    def session(self) -> FakeSession:
        return self.sessions[-1]


@pytest.fixture
def make_session_factory() -> Callable[[Callable[[str], CommandResult | Exception]], FakeSessionFactory]:
    return FakeSessionFactory


def path_check_responder(
    present: set[str],
    by_prefix: dict[str, CommandResult | Exception] | None = None,
) -> Callable[[str], CommandResult | Exception]:
    """Answer path checks from ``present`` and other commands by prefix from ``by_prefix``."""

    def respond(command: str) -> CommandResult | Exception:
        if command.startswith("[ "):
            for path in present:
                if f"{quote_shell(path)} ]" in command:
                    return CommandResult(exit_status=0, output="sheephole-path-present")
            return CommandResult(exit_status=1, output="sheephole-path-absent")
        for prefix, response in (by_prefix or {}).items():
            if command.startswith(prefix):
                return response
        return CommandResult(exit_status=127, output="command not found")

    return respond


@pytest.fixture
def path_responder() -> Callable[..., Callable[[str], CommandResult | Exception]]:
    return path_check_responder


@pytest.fixture(scope="session")
def qt_app():
    from PySide6.QtCore import QCoreApplication

    return QCoreApplication.instance() or QCoreApplication([])
