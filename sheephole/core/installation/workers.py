from __future__ import annotations

import asyncio
import logging

from PySide6.QtCore import QObject, QThread, Signal

from core.installation.models import OperationResult
from core.installation.service import SiteService
from core.loopback.channel import InstallRequest


class InstallWorker(QObject):
    finished = Signal(object)
    failed = Signal(str)

    def __init__(self, service: SiteService, request: InstallRequest, profile_id: int, password: str) -> None:
        super().__init__()
        self._service = service
        self._request = request
        self._profile_id = profile_id
        self._password = password

    def run(self) -> None:
        try:
            result = asyncio.run(self._service.handle_install_request(self._request, self._profile_id, self._password))
            self.finished.emit(result)
        except Exception as error:
            self.failed.emit(str(error))


class InstallRunner(QObject):
    """Runs one InstallWorker per requested package on its own QThread."""

    install_started = Signal(str)
    install_finished = Signal(str, bool, str)

    def __init__(self, service: SiteService, profile_id: int, password: str, logger: logging.Logger) -> None:
        super().__init__()
        self._service = service
        self._profile_id = profile_id
        self._password = password
        self._logger = logger
        self._running_threads: dict[str, QThread] = {}
        self._workers: dict[str, InstallWorker] = {}

    def is_running(self, machine_name: str) -> bool:
        return machine_name in self._running_threads

    def run_request(self, request: InstallRequest) -> None:
        machine_name = request.machine_name
        if machine_name in self._running_threads:
            self._logger.info("Install of %s already running, skipping request", machine_name)
            return

        thread = QThread(self)
        worker = InstallWorker(
            service=self._service,
            request=request,
            profile_id=self._profile_id,
            password=self._password,
        )
        worker.moveToThread(thread)
        thread.started.connect(worker.run)
        worker.finished.connect(lambda result, name=machine_name: self._on_worker_finished(name, result))
        worker.failed.connect(lambda message, name=machine_name: self._finalize(name, False, message))
        worker.finished.connect(thread.quit)
        worker.failed.connect(thread.quit)
        thread.finished.connect(worker.deleteLater)
        thread.finished.connect(thread.deleteLater)
        thread.finished.connect(lambda name=machine_name: self._cleanup(name))

        self._running_threads[machine_name] = thread
        self._workers[machine_name] = worker
        self.install_started.emit(machine_name)
        thread.start()

    def _on_worker_finished(self, machine_name: str, result: object) -> None:
        if isinstance(result, OperationResult):
            self._finalize(machine_name, result.ok, result.message or result.status.value)
            return
        self._finalize(machine_name, False, "unexpected install result")

    def _finalize(self, machine_name: str, ok: bool, message: str) -> None:
        if ok:
            self._logger.info("Install of %s finished", machine_name)
        else:
            self._logger.error("Install of %s failed: %s", machine_name, message)
        self.install_finished.emit(machine_name, ok, message)

    def _cleanup(self, machine_name: str) -> None:
        self._running_threads.pop(machine_name, None)
        self._workers.pop(machine_name, None)
