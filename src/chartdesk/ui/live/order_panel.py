from __future__ import annotations

from PySide6.QtCore import Signal
from PySide6.QtWidgets import (
    QButtonGroup,
    QDoubleSpinBox,
    QFormLayout,
    QGroupBox,
    QPushButton,
    QRadioButton,
    QSpinBox,
    QVBoxLayout,
    QWidget,
)

from chartdesk.domain.orders import OrderTicket, TicketOrderType


class OrderPanel(QGroupBox):
    """Quantity / order type / point distances for a trade without an order yet."""

    orderTypeChanged = Signal(object)
    placeOrderRequested = Signal()

    def __init__(self, ticket: OrderTicket, parent: QWidget | None = None) -> None:
        super().__init__("Order", parent)
        self._ticket = ticket
        layout = QVBoxLayout(self)
        form = QFormLayout()

        self._qty_input = QSpinBox()
        self._qty_input.setRange(0, 100000)
        self._qty_input.setValue(ticket.quantity)
        self._qty_input.valueChanged.connect(self._handle_qty_changed)
        form.addRow("Qty", self._qty_input)

        self._limit_radio = QRadioButton("Limit")
        self._market_radio = QRadioButton("Market")
        group = QButtonGroup(self)
        group.addButton(self._limit_radio)
        group.addButton(self._market_radio)
        if ticket.order_type == TicketOrderType.LIMIT:
            self._limit_radio.setChecked(True)
        else:
            self._market_radio.setChecked(True)
        self._limit_radio.toggled.connect(self._handle_type_toggled)
        form.addRow(self._limit_radio)
        form.addRow(self._market_radio)

        self._sl_points_input = self._points_input(ticket.stop_loss_points)
        self._sl_points_input.valueChanged.connect(self._handle_sl_points_changed)
        self._tp_points_input = self._points_input(ticket.take_profit_points)
        self._tp_points_input.valueChanged.connect(self._handle_tp_points_changed)
        form.addRow("SL (pts)", self._sl_points_input)
        form.addRow("TP (pts)", self._tp_points_input)
        layout.addLayout(form)

        self._place_button = QPushButton("Place Order")
        self._place_button.clicked.connect(self.placeOrderRequested.emit)
        layout.addWidget(self._place_button)
        self._sync_points_visibility()

    @staticmethod
    def _points_input(value: float) -> QDoubleSpinBox:
        spin = QDoubleSpinBox()
        spin.setRange(0.0, 100000.0)
        spin.setDecimals(2)
        spin.setValue(value)
        return spin

    def _handle_qty_changed(self, value: int) -> None:
        self._ticket.quantity = int(value)

    def _handle_sl_points_changed(self, value: float) -> None:
        self._ticket.stop_loss_points = float(value)

    def _handle_tp_points_changed(self, value: float) -> None:
        self._ticket.take_profit_points = float(value)

    def _handle_type_toggled(self, _checked: bool) -> None:
        order_type = TicketOrderType.LIMIT if self._limit_radio.isChecked() else TicketOrderType.MARKET
        if order_type == self._ticket.order_type:
            return
        self._ticket.order_type = order_type
        self._sync_points_visibility()
        self.orderTypeChanged.emit(order_type)

    def _sync_points_visibility(self) -> None:
        market = self._ticket.order_type == TicketOrderType.MARKET
        self._sl_points_input.setEnabled(market)
        self._tp_points_input.setEnabled(market)
