from __future__ import annotations

from dataclasses import dataclass
import queue

from core.installation.models import ProjectType
from core.profiles.models import PlatformType


@dataclass(frozen=True, slots=True)
class InstallRequest:
    machine_name: str
    platform_type: PlatformType = PlatformType.DRUPAL
    project_type: ProjectType = ProjectType.EXTENSION


class InstallRequestChannel:
    """Thread-safe hand-off of install requests from the listener to the app."""

    def __init__(self, maxsize: int = 0) -> None:
        self._queue: queue.Queue[InstallRequest] = queue.Queue(maxsize=maxsize)

    def post(self, request: InstallRequest) -> None:
        self._queue.put(request)

    def get(self, timeout: float | None = None) -> InstallRequest | None:
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> list[InstallRequest]:
        requests: list[InstallRequest] = []
        while True:
            try:
                requests.append(self._queue.get_nowait())
            except queue.Empty:
                return requests

    def __len__(self) -> int:
        return self._queue.qsize()
