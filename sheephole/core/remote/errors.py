from __future__ import annotations


class RemoteError(Exception):
    """Base class for failures raised by the remote execution layer."""


class RemoteConnectionError(RemoteError):
    pass


class AuthError(RemoteError):
    pass


class CommandExecutionError(RemoteError):
    def __init__(self, command: str, message: str) -> None:
        super().__init__(f"{message} (command: {command})")
        self.command = command


class PreconditionError(RemoteError):
    def __init__(self, path: str, message: str) -> None:
        super().__init__(message)
        self.path = path


class RootPathMissing(PreconditionError):
    def __init__(self, path: str) -> None:
        super().__init__(path, f"Root path does not exist: {path}")


class ManifestMissing(PreconditionError):
    def __init__(self, path: str) -> None:
        super().__init__(path, f"composer.json does not exist in {path}")


class VersionFileMissing(PreconditionError):
    def __init__(self, path: str) -> None:
        super().__init__(path, f"Drupal.php does not exist at {path}")


class VersionPatternNotFound(RemoteError):
    def __init__(self, path: str) -> None:
        super().__init__(f"Cannot get VERSION from Drupal.php at {path}")
        self.path = path


class NoInstallCommandSucceeded(RemoteError):
    def __init__(self, commands: list[str]) -> None:
        super().__init__(f"No composer commands worked: {commands}")
        self.commands = list(commands)
