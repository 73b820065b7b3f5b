# src/trace_parse/ui/log_view.py
"""
補助ログ（コールログ/メモリアクセスログ）のエントリとメモリダンプを表示するウィジェット。
"""
from typing import List, Optional, Sequence

from PySide6.QtWidgets import QWidget, QVBoxLayout, QPlainTextEdit, QLabel
from PySide6.QtGui import QTextOption

from trace_parse.logs.entries import CallLogEntry, LogEntry, MemoryAccessType, MemoryLogEntry
from trace_parse.ui.fonts import get_monospace_font

# @intent:responsibility 現在のステップに対応する補助ログエントリを表示するUIウィジェットを提供します。
class LogView(QWidget):
    """
    ステップに対応するログエントリをテキストで表示するウィジェット。
    エントリのステップが現在のステップより前の場合は、直近のイベントであることを示します。
    """
    def __init__(self, title: str, parent=None):
        super().__init__(parent)
        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(0, 0, 0, 0)

        self.title_label = QLabel(title)
        self.title_label.setStyleSheet("font-weight: bold; color: #00AAAA;")
        self.layout.addWidget(self.title_label)

        self.editor = QPlainTextEdit(self)
        self.editor.setFont(get_monospace_font(10))
        self.editor.setReadOnly(True)
        self.editor.setWordWrapMode(QTextOption.NoWrap)
        self.editor.setStyleSheet("background-color: #101010; color: #BBBBBB;")
        self.layout.addWidget(self.editor)

    # @intent:responsibility エントリ一覧を整形して表示します。
    def update_entries(self, entries: Sequence[LogEntry], current_step: Optional[int] = None):
        lines: List[str] = []
        if not entries:
            lines.append("(no entries)")

        for entry in entries:
            if current_step is not None and entry.step != current_step:
                lines.append(f"[nearest preceding step {entry.step}]")
            lines.append(self._describe(entry))
            lines.extend(getattr(entry, "memory_dump", ()))
            lines.append("")

        self.editor.setPlainText("\n".join(lines).rstrip("\n"))

    def _describe(self, entry: LogEntry) -> str:
        if isinstance(entry, CallLogEntry):
            function = entry.function or "?"
            return f"{entry.step}: call {entry.address} -> {function}"
        if isinstance(entry, MemoryLogEntry):
            target = entry.address if entry.offset is None else f"{entry.address}+{entry.offset}"
            kind = "write" if entry.access_type == MemoryAccessType.WRITE else "read"
            return f"{entry.step}: {kind} {target}"
        return entry.raw

    def text(self) -> str:
        return self.editor.toPlainText()

    def clear(self):
        self.editor.clear()
