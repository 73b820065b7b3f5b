# trace_parse/logs/store.py
"""
補助ログストア

コールログ(bl.log)とメモリアクセスログ(rw.log)を解析し、ステップ番号で索引付けします。
ストアはロード時に同期的に構築され、以後は読み取り専用です（同期なしで並行に参照できます）。

両ログとも「ヘッダ行 + 後続のメモリダンプ行」という継続形式です。
ヘッダ行の後、次のヘッダ行までに現れる `|` を含む行は、そのヘッダのメモリダンプとして収集されます。
"""
import logging
import re
from bisect import bisect_right
from dataclasses import replace
from typing import Callable, Dict, Generic, Iterable, List, Optional, Tuple, TypeVar

from trace_parse.logs.entries import CallLogEntry, LogEntry, MemoryAccessType, MemoryLogEntry

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=LogEntry)

# ヘッダらしい行（"<token>: [" / "<token>: (r)"）。厳密な書式に合わない場合は不正なヘッダとして読み飛ばす
_CALL_HEADER_CANDIDATE_RE = re.compile(r"^\s*[^\s:|]+\s*:\s*\[")
_CALL_HEADER_RE = re.compile(r"^\s*(?P<step>\d+)\s*:\s*\[(?P<address>[^\]]+)\](?P<rest>.*)$")
_FUNCTION_RE = re.compile(r"^[^:]*:\s*(?P<function>.*?)\s*$")

_MEMORY_HEADER_CANDIDATE_RE = re.compile(r"^\s*[^\s:|]+\s*:\s*\([rw]\)")
_MEMORY_HEADER_RE = re.compile(
    r"^\s*(?P<step>\d+)\s*:\s*\((?P<kind>[rw])\)"
    r"\(\s*(?P<address>[^+)\s]+)\s*(?:\+\s*(?P<offset>[^)\s]+)\s*)?\)"
)

DUMP_DELIMITER = "|"


# @intent:responsibility ステップ番号で整列された索引を保持し、「ステップS以前の最も近いイベント」を返します。
# @intent:rationale ステップの昇順リストに対する二分探索で、対数時間の検索を行います。
class StepIndex(Generic[E]):
    """
    ステップ → エントリ列 の不変な索引。
    同じステップのエントリはファイル中の出現順に並びます。
    """
    def __init__(self, entries: Iterable[E] = (), skipped_headers: int = 0):
        grouped: Dict[int, List[E]] = {}
        for entry in entries:
            grouped.setdefault(entry.step, []).append(entry)

        self._entries: Dict[int, Tuple[E, ...]] = {step: tuple(items) for step, items in grouped.items()}
        self._steps: List[int] = sorted(self._entries)
        self._count = sum(len(items) for items in self._entries.values())
        self.skipped_headers = skipped_headers

    def __len__(self) -> int:
        return self._count

    @property
    def steps(self) -> Tuple[int, ...]:
        return tuple(self._steps)

    # @intent:responsibility 指定ステップ以前で最も大きい記録済みステップを返します。
    def nearest_step(self, step: int) -> Optional[int]:
        position = bisect_right(self._steps, step)
        if position == 0:
            return None
        return self._steps[position - 1]

    def lookup(self, step: int) -> List[E]:
        """
        指定ステップのエントリを返します。完全一致がなければ、それより前で最も近いステップのエントリを返します。
        該当するエントリがなければ空リストを返します。
        """
        nearest = self.nearest_step(step)
        if nearest is None:
            return []
        return list(self._entries[nearest])


# @intent:responsibility コールログのヘッダ行を解析します。
# @intent:return 書式に合わない場合はNone。
def parse_call_header(line: str) -> Optional[CallLogEntry]:
    match = _CALL_HEADER_RE.match(line)
    if not match:
        return None

    function = None
    function_match = _FUNCTION_RE.match(match.group("rest"))
    if function_match and function_match.group("function"):
        function = function_match.group("function")

    return CallLogEntry(
        step=int(match.group("step")),
        raw=line,
        address=match.group("address").strip(),
        function=function,
    )


# @intent:responsibility メモリアクセスログのヘッダ行を解析します。
# @intent:return 書式に合わない場合はNone。
def parse_memory_header(line: str) -> Optional[MemoryLogEntry]:
    match = _MEMORY_HEADER_RE.match(line)
    if not match:
        return None

    return MemoryLogEntry(
        step=int(match.group("step")),
        raw=line,
        access_type=MemoryAccessType(match.group("kind")),
        address=match.group("address"),
        offset=match.group("offset"),
    )


def _parse_entries(lines: Iterable[str],
                   is_header: Callable[[str], bool],
                   parse_header: Callable[[str], Optional[E]]) -> StepIndex[E]:
    entries: List[E] = []
    skipped = 0
    current: Optional[E] = None
    dump: List[str] = []

    for line_num, line in enumerate(lines, 1):
        line = line.rstrip("\r\n")
        if not line.strip():
            continue

        if is_header(line):
            # 直前のエントリを確定する
            if current is not None:
                entries.append(replace(current, memory_dump=tuple(dump)))
            current, dump = None, []

            entry = parse_header(line)
            if entry is None:
                # 不正なヘッダはロード全体を失敗させない。後続のダンプ行は次のヘッダまで無視される
                logger.debug("Skipping malformed log header on line %d: %s", line_num, line)
                skipped += 1
                continue
            current = entry
        elif current is not None and DUMP_DELIMITER in line:
            dump.append(line)

    if current is not None:
        entries.append(replace(current, memory_dump=tuple(dump)))

    return StepIndex(entries, skipped_headers=skipped)


def parse_call_log(lines: Iterable[str]) -> StepIndex[CallLogEntry]:
    return _parse_entries(lines, lambda line: bool(_CALL_HEADER_CANDIDATE_RE.match(line)), parse_call_header)


def parse_memory_log(lines: Iterable[str]) -> StepIndex[MemoryLogEntry]:
    return _parse_entries(lines, lambda line: bool(_MEMORY_HEADER_CANDIDATE_RE.match(line)), parse_memory_header)


# @intent:responsibility コールログファイルを読み込みます。I/Oエラーはそのまま送出します。
def load_call_log(path: str) -> StepIndex[CallLogEntry]:
    with open(path, 'r', encoding="utf-8", errors="replace") as f:
        index = parse_call_log(f)
    logger.info("Loaded %d call log entries from %s", len(index), path)
    return index


# @intent:responsibility メモリアクセスログファイルを読み込みます。I/Oエラーはそのまま送出します。
def load_memory_log(path: str) -> StepIndex[MemoryLogEntry]:
    with open(path, 'r', encoding="utf-8", errors="replace") as f:
        index = parse_memory_log(f)
    logger.info("Loaded %d memory log entries from %s", len(index), path)
    return index


# @intent:responsibility 2種類の補助ログの索引をまとめて保持し、ステップ単位の問い合わせに答えます。
class AuxiliaryLogStore:
    """
    コールログとメモリアクセスログの読み取り専用ストア。
    """
    def __init__(self,
                 calls: Optional[StepIndex[CallLogEntry]] = None,
                 memory: Optional[StepIndex[MemoryLogEntry]] = None):
        self._calls: StepIndex[CallLogEntry] = calls if calls is not None else StepIndex()
        self._memory: StepIndex[MemoryLogEntry] = memory if memory is not None else StepIndex()

    # @intent:responsibility 指定されたパスのログを読み込んでストアを構築します。Noneのログは空として扱います。
    # @intent:post-condition ファイルのI/Oエラーは送出され、部分的に構築されたストアは返しません。
    @classmethod
    def load(cls, call_log_path: Optional[str] = None, memory_log_path: Optional[str] = None) -> "AuxiliaryLogStore":
        calls = load_call_log(call_log_path) if call_log_path else None
        memory = load_memory_log(memory_log_path) if memory_log_path else None
        return cls(calls, memory)

    @property
    def calls(self) -> StepIndex[CallLogEntry]:
        return self._calls

    @property
    def memory(self) -> StepIndex[MemoryLogEntry]:
        return self._memory

    def lookup_calls(self, step: int) -> List[CallLogEntry]:
        return self._calls.lookup(step)

    def lookup_memory(self, step: int) -> List[MemoryLogEntry]:
        return self._memory.lookup(step)
