# trace_parse/debugger/session.py
"""
トレースセッションモジュール。

トレースストア、補助ログストア、レジスタ変化検出をひとつにまとめ、
プレゼンテーション層からのナビゲーション操作と問い合わせを受け付ける責務を負います。
"""
import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from trace_parse.common.types import ChangedRegisters
from trace_parse.config.models import CompanionConfig, ViewerConfig
from trace_parse.core.record import TraceRecord
from trace_parse.core.registers import RegisterChangeTracker
from trace_parse.core.window import LineLookup, ReloadListener, WindowedTraceStore
from trace_parse.debugger.commands import HELP_TEXT, Command, CommandResult, CommandType
from trace_parse.logs.entries import CallLogEntry, MemoryLogEntry
from trace_parse.logs.store import AuxiliaryLogStore, load_call_log, load_memory_log

logger = logging.getLogger(__name__)

# @intent:responsibility トレースファイルを開いた結果を呼び出し側に報告します。
@dataclass(frozen=True)
class OpenReport:
    """
    補助ログが見つからない/読めない場合は warnings に記録されますが、オープン自体は成功扱いです。
    """
    trace_path: str
    total: int
    call_log_path: Optional[str] = None
    memory_log_path: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

# @intent:responsibility 現在のカーソル位置について、表示に必要な情報をまとめます。
@dataclass(frozen=True)
class StepView:
    index: int
    total: int
    line: LineLookup
    calls: List[CallLogEntry] = field(default_factory=list)
    memory: List[MemoryLogEntry] = field(default_factory=list)
    changed_registers: ChangedRegisters = frozenset()

    @property
    def record(self) -> Optional[TraceRecord]:
        return self.line.record


# @intent:responsibility トレースファイル名から、同じディレクトリにある補助ログのパスを推定します。
# @intent:return トレースファイル名が規約に合わない場合は (None, None)。
def discover_companions(trace_path: str, config: CompanionConfig) -> Tuple[Optional[str], Optional[str]]:
    directory, base_name = os.path.split(trace_path)
    if not base_name.endswith(config.trace_suffix):
        return None, None
    return os.path.join(directory, config.call_log), os.path.join(directory, config.memory_log)


# @intent:responsibility トレースのナビゲーションと補助ログ・レジスタ変化の問い合わせを統合します。
class TraceSession:
    """
    1つのトレースファイルに対する解析セッション。
    カーソルとレジスタ状態の書き込みは、ナビゲーションを行う単一の呼び出し側に限られます。
    """
    def __init__(self, config: Optional[ViewerConfig] = None):
        self._config = config or ViewerConfig()
        self._store = WindowedTraceStore(
            window_size=self._config.window.size,
            reload_margin=self._config.window.reload_margin,
        )
        self._logs = AuxiliaryLogStore()
        self._tracker = RegisterChangeTracker()
        self._inspected_index: Optional[int] = None
        self._changed: ChangedRegisters = frozenset()

        self.auto_step: bool = False
        self.step_delay_ms: int = self._config.navigation.step_delay_ms

    @property
    def store(self) -> WindowedTraceStore:
        return self._store

    @property
    def logs(self) -> AuxiliaryLogStore:
        return self._logs

    @property
    def config(self) -> ViewerConfig:
        return self._config

    # @intent:responsibility トレースファイルを開き、レジスタ追跡をリセットし、補助ログを読み込みます。
    # @intent:post-condition トレースファイルのI/Oエラーは送出されます。補助ログのエラーは警告として報告されます。
    def open(self, trace_path: str) -> OpenReport:
        self._store.open(trace_path)

        # 新しいファイルでは以前のレジスタ値との差分は意味を持たない
        self._tracker = RegisterChangeTracker()
        self._inspected_index = None
        self._changed = frozenset()
        self.auto_step = False

        warnings: List[str] = []
        call_path, memory_path = discover_companions(trace_path, self._config.companions)
        if call_path is None:
            logger.info("No companion logs expected for %s", trace_path)

        calls = None
        if call_path is not None:
            try:
                calls = load_call_log(call_path)
            except OSError as e:
                warnings.append(f"Could not load call log: {e}")
                call_path = None

        memory = None
        if memory_path is not None:
            try:
                memory = load_memory_log(memory_path)
            except OSError as e:
                warnings.append(f"Could not load memory log: {e}")
                memory_path = None

        for message in warnings:
            logger.warning(message)

        self._logs = AuxiliaryLogStore(calls, memory)
        return OpenReport(
            trace_path=trace_path,
            total=self._store.total(),
            call_log_path=call_path,
            memory_log_path=memory_path,
            warnings=warnings,
        )

    def add_reload_listener(self, listener: ReloadListener) -> None:
        self._store.add_reload_listener(listener)

    # @intent:responsibility 最大count行進みます。
    # @intent:return 実際に進んだ行数。
    def next(self, count: int = 1) -> int:
        moved = 0
        while moved < count and self._store.next():
            moved += 1
        return moved

    # @intent:responsibility 最大count行戻ります。
    # @intent:return 実際に戻った行数。
    def prev(self, count: int = 1) -> int:
        moved = 0
        while moved < count and self._store.prev():
            moved += 1
        return moved

    def goto(self, index: int) -> bool:
        return self._store.goto(index)

    # @intent:responsibility 現在のカーソル位置のレコード、補助ログ、変化したレジスタをまとめて返します。
    # @intent:rationale 同じ位置を再表示しても差分が消えないよう、レジスタ追跡は新しい位置を初めて観測したときだけ更新します。
    def inspect(self) -> StepView:
        index = self._store.cursor
        line = self._store.get_line(index)
        record = line.record

        if record is None:
            return StepView(index=index, total=self._store.total(), line=line)

        if index != self._inspected_index:
            self._changed = self._tracker.update(record)
            self._inspected_index = index

        return StepView(
            index=index,
            total=self._store.total(),
            line=line,
            calls=self._logs.lookup_calls(record.step),
            memory=self._logs.lookup_memory(record.step),
            changed_registers=self._changed,
        )

    # @intent:responsibility 解析済みのコマンドを実行し、表示メッセージを返します。
    def execute(self, command: Optional[Command]) -> CommandResult:
        if command is None:
            return CommandResult()

        command_type = command.command_type
        if command_type == CommandType.NEXT:
            return self._step_many(command, forward=True)
        if command_type == CommandType.PREV:
            return self._step_many(command, forward=False)

        if command_type == CommandType.GOTO:
            if not command.args:
                return CommandResult("Please specify a line number")
            try:
                line = int(command.args[0])
            except ValueError:
                return CommandResult(f"Invalid line number: {command.args[0]}")
            if self.goto(line):
                return CommandResult(f"Jumped to line {line}", True)
            return CommandResult(f"Invalid line number: {line}")

        if command_type == CommandType.RUN:
            self.auto_step = True
            return CommandResult("Auto-step started. Enter 'stop' to stop.", True)
        if command_type == CommandType.STOP:
            self.auto_step = False
            return CommandResult("Auto-step stopped", True)
        if command_type == CommandType.STEP:
            if command.args and command.args[0].isdigit() and int(command.args[0]) > 0:
                self.step_delay_ms = int(command.args[0])
            return CommandResult(f"Step delay set to {self.step_delay_ms} ms")
        if command_type in (CommandType.REG, CommandType.CLEAR):
            # レジスタ表示の再描画のみ
            return CommandResult("", True)
        if command_type == CommandType.HELP:
            return CommandResult(HELP_TEXT)
        if command_type == CommandType.QUIT:
            return CommandResult("Quitting...")
        if command_type == CommandType.UNKNOWN:
            return CommandResult(f"Unknown command: {command.raw}")
        return CommandResult()

    def _step_many(self, command: Command, forward: bool) -> CommandResult:
        count = 1
        if command.args and command.args[0].isdigit():
            count = max(int(command.args[0]), 1)

        moved = self.next(count) if forward else self.prev(count)
        direction = "forward" if forward else "backward"
        edge = "end" if forward else "beginning"

        if moved == 0:
            first_or_last = "last" if forward else "first"
            return CommandResult(f"Already at {first_or_last} instruction")
        if moved < count:
            return CommandResult(f"Stepped {moved} instructions (reached {edge})", True)
        if count > 1:
            return CommandResult(f"Stepped {count} instructions {direction}", True)
        target = "next" if forward else "previous"
        return CommandResult(f"Stepped to {target} instruction", True)

    # @intent:responsibility バックグラウンドの再ロードワーカーを停止します。
    def close(self) -> None:
        self.auto_step = False
        self._store.close()
