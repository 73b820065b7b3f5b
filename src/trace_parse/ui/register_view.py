# src/trace_parse/ui/register_view.py
"""
レジスタ(x0-x30, SP, PC)を表示するウィジェット。
直前のステップから値が変化したレジスタをハイライトします。
"""
from typing import Dict, Optional, Set

from PySide6.QtWidgets import QWidget, QVBoxLayout, QGridLayout, QLabel, QGroupBox
from PySide6.QtCore import Qt

from trace_parse.common.types import ChangedRegisters
from trace_parse.core.record import TraceRecord, get_register_layout
from trace_parse.ui.fonts import get_monospace_font_family

NORMAL_COLOR = "#BBBBBB"
CHANGED_COLOR = "#FFD700" # Gold
ZERO_COLOR = "#555555"

COLUMNS = 4

# @intent:responsibility レジスタ値を表示し、変化したレジスタを強調表示するUIウィジェットを提供します。
class RegisterView(QWidget):
    """
    トレースレコードのレジスタ状態を表示するウィジェット。
    """
    def __init__(self, parent=None):
        super().__init__(parent)
        self.setStyleSheet("background-color: #121212; color: #BBBBBB;")

        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(5, 5, 5, 5)

        self._font_family = get_monospace_font_family()
        self._value_labels: Dict[str, QLabel] = {}
        self._index_to_name: Dict[int, str] = {}
        self._register_widths: Dict[str, int] = {}
        self.highlighted: Set[str] = set()

        self._setup_ui()

    # @intent:responsibility レジスタのレイアウト定義に従ってグループごとのグリッドを構築します。
    def _setup_ui(self):
        for group in get_register_layout():
            group_box = QGroupBox(group.group_name)
            group_box.setStyleSheet("QGroupBox { font-weight: bold; color: #00AAAA; border: 1px solid #222; margin-top: 16px; }")
            grid = QGridLayout(group_box)
            grid.setContentsMargins(10, 15, 10, 10)
            grid.setHorizontalSpacing(12)

            for position, reg in enumerate(group.registers):
                row, column = divmod(position, COLUMNS)
                name_label = QLabel(f"{reg.name}:")
                name_label.setStyleSheet(f"font-weight: bold; color: {NORMAL_COLOR};")
                self._register_widths[reg.name] = (reg.width + 3) // 4 # 64bit -> 16文字
                value_label = QLabel(self._format_value(reg.name, 0))
                value_label.setAlignment(Qt.AlignRight)
                value_label.setStyleSheet(self._value_style(NORMAL_COLOR))

                grid.addWidget(name_label, row, column * 2)
                grid.addWidget(value_label, row, column * 2 + 1)
                self._value_labels[reg.name] = value_label
                self._index_to_name[reg.index] = reg.name

            self.layout.addWidget(group_box)

        self.layout.addStretch()

    def _format_value(self, name: str, value: int) -> str:
        return f"0x{value:0{self._register_widths[name]}x}"

    def _value_style(self, color: str) -> str:
        return f"font-family: '{self._font_family}', monospace; color: {color};"

    def value_text(self, name: str) -> str:
        return self._value_labels[name].text()

    # @intent:responsibility レコードの値を表示し、changedに含まれるレジスタをハイライトします。
    # @intent:pre-condition recordがNoneの場合（未ロード/解析失敗）は表示をクリアします。
    def update_registers(self, record: Optional[TraceRecord], changed: ChangedRegisters = frozenset()):
        self.highlighted = set()
        if record is None:
            for label in self._value_labels.values():
                label.setText("-")
                label.setStyleSheet(self._value_style(ZERO_COLOR))
            return

        values = record.tracked_values()
        for index, name in self._index_to_name.items():
            value = values[index]
            label = self._value_labels[name]
            label.setText(self._format_value(name, value))

            if index in changed:
                self.highlighted.add(name)
                label.setStyleSheet(self._value_style(CHANGED_COLOR) + " font-weight: bold;")
            elif value == 0:
                label.setStyleSheet(self._value_style(ZERO_COLOR))
            else:
                label.setStyleSheet(self._value_style(NORMAL_COLOR))
