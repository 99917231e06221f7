from __future__ import annotations

import asyncio
import logging
import time

from core.installation.models import OperationResult
from core.installation.workers import InstallRunner, InstallWorker
from core.loopback.channel import InstallRequest


class StubService:
    def __init__(self, result: OperationResult | None = None, error: Exception | None = None, delay: float = 0) -> None:
        self.result = result or OperationResult.success()
        self.error = error
        self.delay = delay
        self.requests: list[tuple[str, int, str]] = []

    async def handle_install_request(self, request: InstallRequest, profile_id: int, password: str) -> OperationResult:
        self.requests.append((request.machine_name, profile_id, password))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


def _wait_for(qt_app, condition, timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    while not condition():
        if time.monotonic() > deadline:
            raise AssertionError("timed out waiting for worker")
        qt_app.processEvents()
        time.sleep(0.01)


def test_install_worker_reports_unexpected_error(qt_app) -> None:
    worker = InstallWorker(StubService(error=RuntimeError("boom")), InstallRequest("token"), 1, "secret")
    failures: list[str] = []
    worker.failed.connect(failures.append)

    worker.run()

    assert failures == ["boom"]


def test_runner_reports_outcome(qt_app) -> None:
    service = StubService(result=OperationResult.bad_arguments("No password provided"))
    runner = InstallRunner(service, 3, "secret", logging.getLogger("sheephole.tests"))
    started: list[str] = []
    finished: list[tuple[str, bool, str]] = []
    runner.install_started.connect(started.append)
    runner.install_finished.connect(lambda name, ok, message: finished.append((name, ok, message)))

    runner.run_request(InstallRequest("token"))
    _wait_for(qt_app, lambda: finished and not runner.is_running("token"))

    assert started == ["token"]
    assert finished == [("token", False, "No password provided")]
    assert service.requests == [("token", 3, "secret")]


def test_runner_skips_duplicate_request_while_running(qt_app) -> None:
    service = StubService(delay=0.2)
    runner = InstallRunner(service, 1, "secret", logging.getLogger("sheephole.tests"))
    finished: list[tuple[str, bool, str]] = []
    runner.install_finished.connect(lambda name, ok, message: finished.append((name, ok, message)))

    runner.run_request(InstallRequest("pathauto"))
    runner.run_request(InstallRequest("pathauto"))
    assert runner.is_running("pathauto")

    _wait_for(qt_app, lambda: finished and not runner.is_running("pathauto"))

    assert finished == [("pathauto", True, "success")]
    assert len(service.requests) == 1
