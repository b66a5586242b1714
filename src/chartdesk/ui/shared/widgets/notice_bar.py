"""
Single-line notice display for chart notifications.
"""
from datetime import datetime

from PySide6.QtCore import QTimer
from PySide6.QtWidgets import QLabel, QWidget

from chartdesk.application.events import Notice, NoticeLevel

_LEVEL_COLORS = {
    NoticeLevel.INFO: "#78B8FF",
    NoticeLevel.OK: "#5BD28B",
    NoticeLevel.WARN: "#F1C66D",
    NoticeLevel.ERROR: "#FF7A7A",
}


class NoticeBar(QLabel):
    def __init__(self, parent: QWidget = None, *, clear_after_ms: int = 6000) -> None:
        super().__init__(parent)
        self._clear_timer = QTimer(self)
        self._clear_timer.setSingleShot(True)
        self._clear_timer.setInterval(clear_after_ms)
        self._clear_timer.timeout.connect(self.clear)
        self._last_notice = None

    @property
    def last_notice(self):
        return self._last_notice

    def show_notice(self, notice: Notice) -> None:
        self._last_notice = notice
        stamp = datetime.now().strftime("%H:%M:%S")
        color = _LEVEL_COLORS.get(notice.level, "#c9d1d9")
        self.setStyleSheet(f"color: {color};")
        self.setText(f"[{stamp}] [{notice.level.value}] {notice.message}")
        self._clear_timer.start()
