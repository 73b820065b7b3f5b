# src/trace_parse/ui/main_window.py
"""
メインウィンドウの実装。
トレース一覧、レジスタ、補助ログ、コマンド入力を保持し、レイアウトを管理します。
"""
from typing import Optional

from PySide6.QtWidgets import (
    QMainWindow, QApplication, QWidget, QVBoxLayout, QDockWidget, QTabWidget,
    QToolBar, QLabel, QLineEdit, QFileDialog, QMessageBox,
)
from PySide6.QtGui import QPalette, QColor, QAction, QCloseEvent, QKeySequence, QShortcut
from PySide6.QtCore import Qt, QObject, QTimer, Signal, Slot

from trace_parse.config.loader import ConfigLoader
from trace_parse.config.models import ViewerConfig
from trace_parse.core.registers import register_name
from trace_parse.core.window import LineStatus, TraceWindow
from trace_parse.debugger.commands import CommandParser, CommandType
from trace_parse.debugger.session import TraceSession
from .fonts import get_monospace_font_family
from .log_view import LogView
from .register_view import RegisterView
from .trace_view import TraceView


# @intent:responsibility バックグラウンドスレッドでの再ロード完了をGUIスレッドへ通知します。
class ReloadNotifier(QObject):
    """
    WindowedTraceStoreのリスナーはワーカースレッドから呼ばれるため、
    Signal経由（キュー接続）でGUIスレッドに転送します。
    """
    window_reloaded = Signal(int, int)

    def __call__(self, window: TraceWindow):
        self.window_reloaded.emit(window.start, window.end)


# @intent:responsibility アプリケーションのメインウィンドウを定義し、UIの主要なコンポーネントを組み立てます。
class MainWindow(QMainWindow):
    """
    アプリケーションのメインウィンドウクラス。
    """
    def __init__(self, config: Optional[ViewerConfig] = None, parent=None):
        super(MainWindow, self).__init__(parent)
        self.setWindowTitle("TraceParse")
        self.setGeometry(100, 100, 1400, 850)
        self.setDockNestingEnabled(True)

        self._config = config or ViewerConfig()
        self.parser = CommandParser()
        self.reload_notifier = ReloadNotifier()
        self.reload_notifier.window_reloaded.connect(self._on_window_reloaded)
        self._setup_session(self._config)

        self.auto_step_timer = QTimer(self)
        self.auto_step_timer.timeout.connect(self._auto_step)

        self._set_dark_theme()
        self._create_toolbar()
        self._create_central_view()
        self._create_status_inspector()
        self._create_log_pane()
        self._create_menus()
        self._create_shortcuts()

    # @intent:responsibility 新しいTraceSessionを生成し、再ロード通知を接続します。
    def _setup_session(self, config: ViewerConfig):
        self.session = TraceSession(config)
        self.session.add_reload_listener(self.reload_notifier)

    def _create_menus(self):
        file_menu = self.menuBar().addMenu("File")

        self.open_action = QAction("Open Trace...", self)
        self.open_action.setShortcut("Ctrl+O")
        self.open_action.triggered.connect(self._open_trace_dialog)
        file_menu.addAction(self.open_action)

        self.load_config_action = QAction("Load Config...", self)
        self.load_config_action.triggered.connect(self._load_config_dialog)
        file_menu.addAction(self.load_config_action)

    def _create_toolbar(self):
        toolbar = QToolBar("Navigation")
        self.addToolBar(toolbar)

        self.prev_action = QAction("Prev", self)
        self.prev_action.triggered.connect(lambda: self.run_command("p"))
        toolbar.addAction(self.prev_action)

        self.next_action = QAction("Next", self)
        self.next_action.triggered.connect(lambda: self.run_command("n"))
        toolbar.addAction(self.next_action)

        self.run_action = QAction("Run", self)
        self.run_action.triggered.connect(lambda: self.run_command("run"))
        toolbar.addAction(self.run_action)

        self.stop_action = QAction("Stop", self)
        self.stop_action.triggered.connect(lambda: self.run_command("stop"))
        toolbar.addAction(self.stop_action)

    # @intent:responsibility 中央にトレース一覧、下部にステータス行とコマンド入力欄を配置します。
    def _create_central_view(self):
        central = QWidget()
        layout = QVBoxLayout(central)
        layout.setContentsMargins(4, 4, 4, 4)

        self.trace_view = TraceView()
        layout.addWidget(self.trace_view)

        self.status_label = QLabel("Welcome to TraceParse. Open a trace file (Ctrl+O).")
        self.status_label.setStyleSheet("color: #E0E0E0;")
        layout.addWidget(self.status_label)

        self.message_label = QLabel("")
        self.message_label.setStyleSheet("color: #AAAAAA;")
        layout.addWidget(self.message_label)

        self.command_input = QLineEdit()
        self.command_input.setPlaceholderText("Command: n, p, g <line>, run, stop, step <ms>, h")
        self.command_input.returnPressed.connect(self._on_command_entered)
        layout.addWidget(self.command_input)

        self.setCentralWidget(central)

    def _create_status_inspector(self):
        dock = QDockWidget("Registers", self)
        dock.setAllowedAreas(Qt.RightDockWidgetArea)
        self.register_view = RegisterView()
        dock.setWidget(self.register_view)
        self.addDockWidget(Qt.RightDockWidgetArea, dock)

    def _create_log_pane(self):
        dock = QDockWidget("Logs", self)
        dock.setAllowedAreas(Qt.RightDockWidgetArea | Qt.BottomDockWidgetArea)
        tab_widget = QTabWidget()
        self.call_log_view = LogView("Call Log")
        tab_widget.addTab(self.call_log_view, "Calls")
        self.memory_log_view = LogView("Memory Log")
        tab_widget.addTab(self.memory_log_view, "Memory")
        dock.setWidget(tab_widget)
        self.addDockWidget(Qt.RightDockWidgetArea, dock)

    # @intent:responsibility 矢印キーでの移動と "]" での直前コマンドの繰り返しを登録します。
    def _create_shortcuts(self):
        bindings = (("Right", "n"), ("Left", "p"), ("]", ""))
        self.shortcuts = []
        for key, text in bindings:
            shortcut = QShortcut(QKeySequence(key), self)
            shortcut.activated.connect(lambda text=text: self.run_command(text))
            self.shortcuts.append(shortcut)

    # @intent:responsibility トレースファイルを開き、全ビューを更新します。失敗時はダイアログで通知します。
    def open_trace(self, path: str) -> bool:
        self.auto_step_timer.stop()
        try:
            report = self.session.open(path)
        except OSError as e:
            QMessageBox.critical(self, "Error", f"Failed to open trace file: {e}")
            return False

        self.setWindowTitle(f"TraceParse - {path}")
        if report.warnings:
            self.message_label.setText("Warning: " + " / ".join(report.warnings))
        else:
            loaded = [p for p in (report.call_log_path, report.memory_log_path) if p]
            self.message_label.setText("Loaded logs: " + ", ".join(loaded) if loaded else "")
        self.refresh()
        return True

    @Slot()
    def _open_trace_dialog(self):
        file_name, _ = QFileDialog.getOpenFileName(self, "Open Trace File", "", "Trace Logs (*.log *.txt);;All Files (*)")
        if file_name:
            self.open_trace(file_name)

    @Slot()
    def _load_config_dialog(self):
        file_name, _ = QFileDialog.getOpenFileName(self, "Load Config", "", "YAML Files (*.yaml *.yml);;All Files (*)")
        if not file_name:
            return
        try:
            config = ConfigLoader().load_from_file(file_name)
        except (OSError, ValueError) as e:
            QMessageBox.critical(self, "Error", f"Failed to load config: {e}")
            return

        # 新しいウィンドウサイズを反映するためにセッションを作り直し、開いていたファイルを再度開く
        current_file = self.session.store.filename
        self.auto_step_timer.stop()
        self.session.close()
        self._config = config
        self._setup_session(config)
        if current_file:
            self.open_trace(current_file)
        self.message_label.setText(f"Loaded config from {file_name}")

    @Slot()
    def _on_command_entered(self):
        text = self.command_input.text()
        self.command_input.clear()
        self.run_command(text)

    # @intent:responsibility コマンド文字列を解析・実行し、表示を更新します。
    def run_command(self, text: str):
        command = self.parser.parse(text)
        if command is None:
            return

        if command.command_type == CommandType.QUIT:
            self.close()
            return
        if command.command_type == CommandType.CLEAR:
            self.message_label.setText("")
            return

        result = self.session.execute(command)
        if result.message:
            self.message_label.setText(result.message)

        if command.command_type == CommandType.RUN:
            self.auto_step_timer.start(self.session.step_delay_ms)
        elif command.command_type == CommandType.STOP:
            self.auto_step_timer.stop()
        elif command.command_type == CommandType.STEP and self.auto_step_timer.isActive():
            self.auto_step_timer.setInterval(self.session.step_delay_ms)

        if result.updated:
            self.refresh()

    @Slot()
    def _auto_step(self):
        if not self.session.auto_step or self.session.next() == 0:
            self.session.auto_step = False
            self.auto_step_timer.stop()
            self.message_label.setText("Auto-step stopped")
        self.refresh()

    @Slot(int, int)
    def _on_window_reloaded(self, start: int, end: int):
        self.refresh()

    # @intent:responsibility 現在のカーソル位置の情報を全ビューに反映します。
    def refresh(self):
        view = self.session.inspect()
        self.trace_view.update_lines(self.session.store)

        record = view.record
        self.register_view.update_registers(record, view.changed_registers)

        if view.total == 0:
            self.status_label.setText("No instructions loaded")
        elif view.line.status == LineStatus.PENDING:
            self.status_label.setText(f"Line {view.index + 1} / {view.total} | loading...")
        elif record is None:
            self.status_label.setText(f"Line {view.index + 1} / {view.total} | malformed line")
        else:
            changed = ", ".join(register_name(i) for i in sorted(view.changed_registers))
            self.status_label.setText(
                f"Step: {record.step:x} | Addr: 0x{record.address:x} | Total: {view.total} | "
                f"Current: {view.index + 1} | Changed: {changed or '-'}"
            )

        step = record.step if record is not None else None
        self.call_log_view.update_entries(view.calls, step)
        self.memory_log_view.update_entries(view.memory, step)

    def _set_dark_theme(self):
        dark_palette = QPalette()
        dark_palette.setColor(QPalette.Window, QColor(29, 29, 29))
        dark_palette.setColor(QPalette.WindowText, QColor(224, 224, 224))
        dark_palette.setColor(QPalette.Base, QColor(30, 30, 30))
        dark_palette.setColor(QPalette.Text, QColor(224, 224, 224))
        dark_palette.setColor(QPalette.Button, QColor(53, 53, 53))
        dark_palette.setColor(QPalette.ButtonText, QColor(224, 224, 224))
        dark_palette.setColor(QPalette.Highlight, QColor(42, 130, 218))
        QApplication.setPalette(dark_palette)

        font_family = get_monospace_font_family()
        self.setStyleSheet(f"""
            QWidget {{ font-family: '{font_family}', monospace; font-size: 10pt; }}
            QMainWindow, QToolBar {{ background-color: #1D1D1D; border: none; }}
            QDockWidget::title {{ text-align: left; background: #101010; padding: 4px; font-weight: bold; }}
            QLineEdit {{ background-color: #2F4F4F; color: #E0E0E0; padding: 3px; }}
        """)

    # @intent:responsibility ウィンドウ終了時に自動ステップと再ロードワーカーを停止します。
    def closeEvent(self, event: QCloseEvent):
        self.auto_step_timer.stop()
        self.session.close()
        event.accept()
