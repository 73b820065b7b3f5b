"""
トレース行の一覧を表示するウィジェット。
"""
from PySide6.QtWidgets import QWidget, QVBoxLayout, QTableWidget, QTableWidgetItem, QHeaderView
from PySide6.QtGui import QColor

from trace_parse.config.models import TRACE_VIEW_ROWS
from trace_parse.core.window import WindowedTraceStore
from trace_parse.ui.fonts import get_monospace_font

# @intent:responsibility カーソル周辺のトレース行を表形式で表示し、現在行をハイライトするUIウィジェットを提供します。
class TraceView(QWidget):
    """
    カーソルを中心とした前後の行を表示するウィジェット。
    ウィンドウ外の行は "loading..."、解析に失敗した行は "<malformed>" と表示します。
    """
    def __init__(self, parent=None, visible_rows: int = TRACE_VIEW_ROWS):
        super().__init__(parent)
        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(0, 0, 0, 0)

        self.table = QTableWidget()
        self.table.setColumnCount(4)
        self.table.setHorizontalHeaderLabels(["Line", "Step", "Address", "Instruction"])
        header = self.table.horizontalHeader()
        header.setSectionResizeMode(0, QHeaderView.ResizeToContents)
        header.setSectionResizeMode(1, QHeaderView.ResizeToContents)
        header.setSectionResizeMode(2, QHeaderView.ResizeToContents)
        header.setSectionResizeMode(3, QHeaderView.Stretch)

        self.table.setFont(get_monospace_font(10))
        self.table.verticalHeader().setVisible(False)
        self.table.setEditTriggers(QTableWidget.NoEditTriggers)
        self.table.setSelectionBehavior(QTableWidget.SelectRows)
        self.table.setShowGrid(False)
        self.table.setStyleSheet("background-color: #101010; color: #BBBBBB; gridline-color: #303030;")

        self.layout.addWidget(self.table)

        self.visible_rows = visible_rows
        self.first_line = 0
        self.current_row = -1

    # @intent:responsibility カーソル周辺の行を問い合わせて表を再構築します。
    # @intent:rationale 1回の描画では1つのウィンドウのスナップショットのみを参照します。ウィンドウ外の行は再ロードを要求せず、
    #                  カーソル移動による再ロードの完了通知で再描画されます。
    def update_lines(self, store: WindowedTraceStore):
        total = store.total()
        cursor = store.cursor
        window = store.window
        if total == 0:
            self.table.setRowCount(0)
            self.current_row = -1
            return

        start = max(0, min(cursor - self.visible_rows // 2, total - self.visible_rows))
        end = min(start + self.visible_rows, total)
        self.first_line = start
        self.table.setRowCount(end - start)

        highlight = QColor("#404000") # Dark Yellow
        normal = QColor("#101010")

        for row, index in enumerate(range(start, end)):
            record = window.get(index) if window.contains(index) else None
            if record is not None:
                cells = [str(index + 1), f"{record.step:x}", f"0x{record.address:x}", record.instruction]
            elif window.contains(index):
                cells = [str(index + 1), "", "", "<malformed>"]
            else:
                cells = [str(index + 1), "", "", "loading..."]

            background = highlight if index == cursor else normal
            for column, text in enumerate(cells):
                item = QTableWidgetItem(text)
                item.setBackground(background)
                self.table.setItem(row, column, item)

        self.current_row = cursor - start
        self.table.scrollToItem(self.table.item(self.current_row, 0), QTableWidget.PositionAtCenter)

    def row_text(self, row: int, column: int) -> str:
        item = self.table.item(row, column)
        return item.text() if item else ""
