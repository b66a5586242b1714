from __future__ import annotations

from PySide6.QtCore import QEvent, QObject, Qt

from chartdesk.application.chart.drag_controller import Cursor, DragController, DragState

CURSOR_SHAPES = {
    Cursor.DEFAULT: Qt.ArrowCursor,
    Cursor.GRAB: Qt.OpenHandCursor,
    Cursor.GRABBING: Qt.ClosedHandCursor,
    Cursor.NOT_ALLOWED: Qt.ForbiddenCursor,
}


class ChartPointerFilter(QObject):
    """
    Event filter on the plot viewport that feeds the DragController.

    Presses and moves that belong to a marker drag are consumed so the view
    box does not pan at the same time.
    """

    def __init__(self, plot, controller: DragController) -> None:
        super().__init__(plot)
        self._plot = plot
        self._controller = controller
        viewport = plot.viewport()
        viewport.setMouseTracking(True)
        viewport.installEventFilter(self)

    def apply_cursor(self, cursor: Cursor) -> None:
        self._plot.viewport().setCursor(CURSOR_SHAPES[cursor])

    def _scene_y(self, event) -> float:
        return float(self._plot.mapToScene(event.position().toPoint()).y())

    def eventFilter(self, watched, event) -> bool:
        event_type = event.type()
        if event_type == QEvent.MouseMove:
            self._controller.pointer_move(self._scene_y(event))
            return self._controller.state == DragState.DRAGGING
        if event_type == QEvent.MouseButtonPress and event.button() == Qt.LeftButton:
            if self._controller.state == DragState.HOVERING:
                # Consumed even when refused, so the view box does not start a pan.
                self._controller.pointer_down(self._scene_y(event))
                return True
            return False
        if event_type == QEvent.MouseButtonRelease and event.button() == Qt.LeftButton:
            dragging = self._controller.state == DragState.DRAGGING
            self._controller.pointer_up(self._scene_y(event))
            return dragging
        if event_type == QEvent.Leave and self._controller.state != DragState.DRAGGING:
            self._controller.cancel()
        return False
