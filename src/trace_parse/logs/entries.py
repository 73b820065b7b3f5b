# trace_parse/logs/entries.py
"""
補助ログ（コールログ、メモリアクセスログ）のエントリ定義。
エントリはロード時に一度だけ生成され、以後変更されません。
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


# @intent:responsibility メモリアクセスの種類を定義します。
class MemoryAccessType(Enum):
    READ = "r"
    WRITE = "w"


# @intent:responsibility 全ての補助ログエントリに共通する情報（ステップと元の行）を保持します。
@dataclass(frozen=True)
class LogEntry:
    step: int
    raw: str


# @intent:responsibility 分岐/呼び出しイベントと、それに続くメモリダンプ行を保持します。
@dataclass(frozen=True)
class CallLogEntry(LogEntry):
    """
    例: "19584: [0x7fda1a4240][0]: __memset_chk"
    """
    address: str = ""
    function: Optional[str] = None
    memory_dump: Tuple[str, ...] = field(default_factory=tuple)


# @intent:responsibility メモリの読み書きイベントと、それに続くメモリダンプ行を保持します。
@dataclass(frozen=True)
class MemoryLogEntry(LogEntry):
    """
    例: "1: (w)(0x7fda1a4210+0x8)"
    """
    access_type: MemoryAccessType = MemoryAccessType.READ
    address: str = ""
    offset: Optional[str] = None
    memory_dump: Tuple[str, ...] = field(default_factory=tuple)
