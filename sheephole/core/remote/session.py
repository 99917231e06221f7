from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
from pathlib import Path, PurePosixPath

import asyncssh

from core.remote.errors import AuthError, CommandExecutionError, RemoteConnectionError


@dataclass(frozen=True, slots=True)
class CommandResult:
    exit_status: int
    output: str


class RemoteSession:
    """One SSH connection that runs commands to completion, one at a time.

    Connecting also authenticates. A non-zero exit status is reported in the
    returned CommandResult and left for the caller to interpret.
    """

    def __init__(
        self,
        host: str,
        username: str,
        password: str,
        *,
        port: int = 22,
        known_hosts: Path | str | None = None,
        timeout_seconds: float = 5.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self._host, self._port = _split_host_port(host, port)
        self._username = username
        self._password = password
        self._known_hosts = known_hosts
        self._timeout_seconds = timeout_seconds
        self._logger = logger or logging.getLogger("sheephole.remote")
        self._connection: asyncssh.SSHClientConnection | None = None

    @property
    def host(self) -> str:
        return self._host

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    async def connect(self) -> None:
        if self._connection is not None:
            return

        options: dict[str, object] = {}
        if self._known_hosts is not None:
            options["known_hosts"] = str(self._known_hosts)

        try:
            self._connection = await asyncio.wait_for(
                asyncssh.connect(
                    host=self._host,
                    port=self._port,
                    username=self._username,
                    password=self._password,
                    login_timeout=self._timeout_seconds,
                    **options,
                ),
                timeout=self._timeout_seconds * 2,
            )
        except asyncssh.PermissionDenied as error:
            raise AuthError(f"Authentication failed for {self._username}@{self._host}: {error}") from error
        except (asyncssh.Error, OSError, asyncio.TimeoutError) as error:
            raise RemoteConnectionError(f"Cannot connect to {self._host}:{self._port}: {error}") from error

        self._logger.info("Connected to %s:%s as %s", self._host, self._port, self._username)

    async def execute(self, command: str, timeout: float | None = None) -> CommandResult:
        if self._connection is None:
            raise CommandExecutionError(command, "Session is not connected")

        limit = self._timeout_seconds if timeout is None else timeout
        try:
            completed = await asyncio.wait_for(self._connection.run(command, check=False), timeout=limit)
        except asyncio.TimeoutError as error:
            raise CommandExecutionError(command, f"Timed out after {limit} seconds") from error
        except (asyncssh.Error, OSError) as error:
            raise CommandExecutionError(command, str(error)) from error

        exit_status = completed.exit_status if completed.exit_status is not None else -1
        output = _combine_output(completed.stdout, completed.stderr)
        self._logger.debug("cmd=%s status=%s output=%s", command, exit_status, output)
        return CommandResult(exit_status=exit_status, output=output)

    async def close(self) -> None:
        connection = self._connection
        self._connection = None
        if connection is None:
            return

        try:
            connection.close()
            await connection.wait_closed()
        except Exception as error:
            self._logger.debug("Ignoring error while closing session to %s: %s", self._host, error)

    async def __aenter__(self) -> RemoteSession:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


def quote_shell(value: str) -> str:
    return "'" + value.replace("'", "'\\''") + "'"


def join_remote(root: str, name: str) -> str:
    return str(PurePosixPath(root) / name)


def _combine_output(stdout: object, stderr: object) -> str:
    parts = []
    for stream in (stdout, stderr):
        if stream is None:
            continue
        text = stream.decode("utf-8", errors="replace") if isinstance(stream, bytes) else str(stream)
        if text.strip() != "":
            parts.append(text.strip())
    return "\n".join(parts).strip()


def _split_host_port(host: str, default_port: int) -> tuple[str, int]:
    cleaned = host.strip()
    if cleaned.count(":") == 1:
        name, _, port_text = cleaned.partition(":")
        try:
            return name, int(port_text)
        except ValueError:
            return cleaned, default_port
    return cleaned, default_port
