# trace_parse/core/window.py
"""
Core Layer (ウィンドウ付きトレースストア)

このモジュールは、メモリに載り切らない巨大なトレースファイルに対して、
有限サイズのウィンドウとナビゲーションカーソルによるランダムアクセスを提供します。
ウィンドウの再ロードはバックグラウンドで非同期に行われ、呼び出し側をブロックしません。
"""
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from itertools import islice
from typing import Callable, List, Optional, Tuple

from trace_parse.core.parser import TraceParseError, parse_line
from trace_parse.core.record import TraceRecord

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SIZE = 2000
DEFAULT_RELOAD_MARGIN = 100

ParseErrorCallback = Callable[[int, TraceParseError], None]
ReloadListener = Callable[["TraceWindow"], None]


# @intent:responsibility get_lineの結果を4種類に分類します。
class LineStatus(Enum):
    LOADED = "LOADED"             # ウィンドウ内にあり、解析に成功した
    MALFORMED = "MALFORMED"       # ウィンドウ内にあるが、解析に失敗した行
    PENDING = "PENDING"           # ファイル内に存在するがウィンドウ外（再ロードを要求済み）
    OUT_OF_RANGE = "OUT_OF_RANGE" # ファイルの範囲外 (total()のみで判定)


# @intent:responsibility 1行分の問い合わせ結果を保持します。
@dataclass(frozen=True)
class LineLookup:
    index: int
    status: LineStatus
    record: Optional[TraceRecord] = None

    @property
    def is_loaded(self) -> bool:
        """
        行がウィンドウ内に存在するかどうか（解析の成否は問わない）。
        """
        return self.status in (LineStatus.LOADED, LineStatus.MALFORMED)


# @intent:responsibility メモリ上に展開されたトレース行の連続区間を不変に保持します。
# @intent:rationale 再ロードは新しいTraceWindowを丸ごと差し替えることで行い、
#                  読み手が部分的に置き換えられたバッファを観測しないようにします。
@dataclass(frozen=True)
class TraceWindow:
    """
    [start, end) の範囲のトレースレコード。
    解析に失敗した行は None として保持されます。
    """
    start: int
    end: int
    records: Tuple[Optional[TraceRecord], ...] = ()
    malformed_count: int = 0

    def __len__(self) -> int:
        return self.end - self.start

    def contains(self, index: int) -> bool:
        return self.start <= index < self.end

    def get(self, index: int) -> Optional[TraceRecord]:
        return self.records[index - self.start]

    @property
    def midpoint(self) -> int:
        return self.start + len(self) // 2

    @property
    def bounds(self) -> Tuple[int, int]:
        return self.start, self.end


EMPTY_WINDOW = TraceWindow(start=0, end=0)


# @intent:responsibility トレースファイルへのウィンドウ付きランダムアクセスとカーソル移動を提供します。
class WindowedTraceStore:
    """
    巨大なトレースファイルをウィンドウ単位でメモリに展開するストア。

    - open() でファイル全体を1度だけスキャンして総行数を確定し、先頭付近のウィンドウを同期ロードします。
    - ウィンドウ外の行を要求すると、その行を中心とした再ロードをバックグラウンドで開始し、
      即座に PENDING を返します。
    - 再ロードは同時に1つしか実行されません。実行中に届いた要求は破棄されます（キューイングしない）。
    """
    # @intent:pre-condition window_sizeは1以上、reload_marginは0以上である必要があります。
    def __init__(self,
                 window_size: int = DEFAULT_WINDOW_SIZE,
                 reload_margin: int = DEFAULT_RELOAD_MARGIN,
                 on_parse_error: Optional[ParseErrorCallback] = None):
        if window_size <= 0:
            raise ValueError("window_size must be a positive integer.")
        if reload_margin < 0:
            raise ValueError("reload_margin must not be negative.")

        self._window_size = window_size
        self._reload_margin = reload_margin
        self._on_parse_error = on_parse_error

        # ウィンドウ、カーソル、再ロード状態は全て _lock で保護する
        self._lock = threading.Lock()
        self._filename: Optional[str] = None
        self._total = 0
        self._cursor = 0
        self._window: TraceWindow = EMPTY_WINDOW
        self._generation = 0 # open()のたびに増加し、古いファイルの再ロード結果を破棄するために使う
        self._reloading = False
        self._reload_future: Optional[Future] = None
        self._skipped_lines = 0
        self._listeners: List[ReloadListener] = []
        self._closed = False

        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="trace-reload")

    # ------------------------------------------------------------------
    # ファイルのオープンとウィンドウの読み込み
    # ------------------------------------------------------------------

    # @intent:responsibility トレースファイルを開き、総行数を数え、先頭のウィンドウをロードします。
    # @intent:post-condition I/Oエラーの場合は例外を送出し、ストアの状態は変更されません。
    def open(self, filename: str) -> None:
        total = self._count_lines(filename)
        start, end = self._compute_bounds(0, total)
        window = self._read_window(filename, start, end)

        with self._lock:
            self._generation += 1
            self._filename = filename
            self._total = total
            self._cursor = 0
            self._window = window
            self._skipped_lines = window.malformed_count

        logger.info("Opened trace %s (%d lines, window %d-%d)", filename, total, start, end)

    @staticmethod
    def _count_lines(filename: str) -> int:
        with open(filename, 'r', encoding="utf-8", errors="replace") as f:
            return sum(1 for _ in f)

    # @intent:responsibility 中心行からウィンドウ範囲 [start, end) を計算します。
    def _compute_bounds(self, center: int, total: int) -> Tuple[int, int]:
        start = min(center - self._window_size // 2, total - self._window_size)
        start = max(start, 0)
        end = min(start + self._window_size, total)
        return start, end

    # @intent:responsibility ファイルを先頭から走査し、[start, end) の行だけを解析して新しいウィンドウを生成します。
    # @intent:rationale 範囲外の行は解析せずに読み飛ばします。I/Oコストはstartに比例しますが、
    #                  再ロードは1ステップ移動に比べて稀なため、実装の単純さを優先します。
    def _read_window(self, filename: str, start: int, end: int) -> TraceWindow:
        records: List[Optional[TraceRecord]] = []
        malformed = 0

        with open(filename, 'r', encoding="utf-8", errors="replace") as f:
            for line_index, line in enumerate(islice(f, start, end), start):
                try:
                    records.append(parse_line(line))
                except TraceParseError as e:
                    # 解析できない行はスキップするが、位置を保つために None を置く
                    logger.debug("Skipping malformed trace line %d: %s", line_index + 1, e)
                    records.append(None)
                    malformed += 1
                    if self._on_parse_error:
                        self._on_parse_error(line_index, e)

        # ファイルが想定より短い場合でも start <= end <= total を保つ
        return TraceWindow(
            start=start,
            end=start + len(records),
            records=tuple(records),
            malformed_count=malformed,
        )

    # ------------------------------------------------------------------
    # 非同期再ロード
    # ------------------------------------------------------------------

    # @intent:responsibility 指定行を中心としたウィンドウの再ロードをバックグラウンドで開始します。
    # @intent:return 再ロードを開始した場合はFuture、破棄(実行中)または不要(同一範囲)の場合はNone。
    def request_reload(self, center: int) -> Optional[Future]:
        with self._lock:
            if self._filename is None or self._closed:
                return None
            if self._reloading:
                logger.debug("Reload around line %d dropped: another reload is in flight", center)
                return None

            start, end = self._compute_bounds(center, self._total)
            if (start, end) == self._window.bounds:
                return None

            self._reloading = True
            generation = self._generation
            filename = self._filename
            future = self._executor.submit(self._reload, generation, filename, start, end, center, self._cursor)
            self._reload_future = future
            return future

    # @intent:post-condition カーソルは再ロードの中心がカーソル自身だった場合にのみ移動します。
    #                       要求後にカーソルが移動してウィンドウ外になった場合は、カーソルを中心に再ロードし直します。
    def _reload(self, generation: int, filename: str, start: int, end: int,
                center: int, requested_cursor: int) -> TraceWindow:
        try:
            window = self._read_window(filename, start, end)
        except Exception as e:
            logger.warning("Failed to reload trace window %d-%d from %s: %s", start, end, filename, e)
            with self._lock:
                self._reloading = False
            raise

        with self._lock:
            self._reloading = False
            if generation != self._generation:
                # 再ロード中に別のファイルが開かれた
                logger.debug("Discarding stale window %d-%d for %s", start, end, filename)
                return window
            self._window = window
            self._skipped_lines += window.malformed_count
            follow_cursor = None
            if len(window) and not window.contains(self._cursor):
                if center == self._cursor:
                    # 境界でのクランプによりカーソルがウィンドウ外になった
                    self._cursor = window.midpoint
                elif self._cursor != requested_cursor:
                    # 実行中に移動したカーソルの要求は破棄されているため、ここで追従する
                    follow_cursor = self._cursor
            listeners = list(self._listeners)

        logger.info("Reloaded trace window %d-%d", start, end)
        for listener in listeners:
            listener(window)
        if follow_cursor is not None:
            self.request_reload(follow_cursor)
        return window

    # @intent:responsibility 再ロード完了時に呼ばれるリスナーを登録します。
    # @intent:rationale リスナーはバックグラウンドスレッドから呼ばれます。UIスレッドへの転送は呼び出し側の責務です。
    def add_reload_listener(self, listener: ReloadListener) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove_reload_listener(self, listener: ReloadListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    @property
    def is_reloading(self) -> bool:
        with self._lock:
            return self._reloading

    # @intent:responsibility 実行中の再ロードがあれば完了まで待機します。
    # @intent:rationale 完了時にカーソル追従の再ロードが続けて開始された場合は、それも待機します。
    # @intent:return 待機後のウィンドウ。再ロードが失敗した場合はその例外を、タイムアウト時はTimeoutErrorを送出します。
    def wait_for_reload(self, timeout: Optional[float] = None) -> TraceWindow:
        with self._lock:
            future = self._reload_future
        while future is not None:
            future.result(timeout)
            with self._lock:
                if self._reload_future is future:
                    break
                future = self._reload_future
        return self.window

    # @intent:responsibility バックグラウンドワーカーを停止します。
    def close(self) -> None:
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=True)

    # ------------------------------------------------------------------
    # 問い合わせ
    # ------------------------------------------------------------------

    def total(self) -> int:
        """
        ファイルの総行数を返します。境界判定の唯一の基準です。
        """
        return self._total

    @property
    def filename(self) -> Optional[str]:
        return self._filename

    @property
    def window_size(self) -> int:
        return self._window_size

    @property
    def window(self) -> TraceWindow:
        """
        現在ロードされているウィンドウ（不変スナップショット）を返します。
        """
        with self._lock:
            return self._window

    @property
    def cursor(self) -> int:
        with self._lock:
            return self._cursor

    @property
    def skipped_lines(self) -> int:
        """
        これまでにロードしたウィンドウで解析に失敗した行数の累計。
        """
        with self._lock:
            return self._skipped_lines

    # @intent:responsibility 指定行のレコードを返します。ウィンドウ外なら再ロードを要求し、ブロックせずにPENDINGを返します。
    def get_line(self, index: int) -> LineLookup:
        with self._lock:
            total = self._total
            window = self._window

        if not 0 <= index < total:
            return LineLookup(index, LineStatus.OUT_OF_RANGE)

        if window.contains(index):
            record = window.get(index)
            status = LineStatus.LOADED if record is not None else LineStatus.MALFORMED
            return LineLookup(index, status, record)

        self.request_reload(index)
        return LineLookup(index, LineStatus.PENDING)

    def get_current(self) -> LineLookup:
        return self.get_line(self.cursor)

    # ------------------------------------------------------------------
    # カーソル移動
    # ------------------------------------------------------------------

    # @intent:responsibility カーソルを1行進めます。ウィンドウ末尾に近づいたら先行して再ロードします。
    # @intent:post-condition 最終行では失敗(False)し、カーソルは変化しません。
    def next(self) -> bool:
        with self._lock:
            if self._cursor >= self._total - 1:
                return False
            self._cursor += 1
            cursor = self._cursor
            near_edge = not self._window.contains(cursor) or cursor >= self._window.end - self._reload_margin

        if near_edge:
            self.request_reload(cursor)
        return True

    # @intent:responsibility カーソルを1行戻します。ウィンドウ先頭に近づいたら先行して再ロードします。
    # @intent:post-condition 先頭行では失敗(False)し、カーソルは変化しません。
    def prev(self) -> bool:
        with self._lock:
            if self._cursor <= 0:
                return False
            self._cursor -= 1
            cursor = self._cursor
            near_edge = not self._window.contains(cursor) or cursor <= self._window.start + self._reload_margin

        if near_edge:
            self.request_reload(cursor)
        return True

    # @intent:responsibility カーソルを指定行へ移動し、その行を中心とした再ロードを要求します。
    # @intent:post-condition 範囲外の場合は失敗(False)し、カーソルは変化しません。
    def goto(self, index: int) -> bool:
        with self._lock:
            if not 0 <= index < self._total:
                return False
            self._cursor = index

        self.request_reload(index)
        return True
