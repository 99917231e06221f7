from __future__ import annotations

from PySide6.QtCore import QObject, QTimer, Signal

from core.loopback.channel import InstallRequestChannel


class InstallRequestPump(QObject):
    request_received = Signal(object)
    state_changed = Signal(bool)

    def __init__(self, channel: InstallRequestChannel, interval_ms: int = 250) -> None:
        super().__init__()
        self._channel = channel
        self._timer = QTimer(self)
        self._timer.setInterval(max(50, interval_ms))
        self._timer.timeout.connect(self.tick)

    def start(self) -> None:
        if self._timer.isActive():
            return
        self._timer.start()
        self.state_changed.emit(True)

    def stop(self) -> None:
        if not self._timer.isActive():
            return
        self._timer.stop()
        self.state_changed.emit(False)

    def is_running(self) -> bool:
        return self._timer.isActive()

    def tick(self) -> int:
        requests = self._channel.drain()
        for install_request in requests:
            self.request_received.emit(install_request)
        return len(requests)
