# trace_parse/debugger/commands.py
"""
ナビゲーションコマンドの解析モジュール。

コマンド入力欄に入力された文字列（n, p5, g 100, run など）を Command に変換します。
空入力は直前の移動コマンドの繰り返しとして扱います。
"""
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

# @intent:responsibility コマンドの種類を定義します。
class CommandType(Enum):
    NEXT = "NEXT"
    PREV = "PREV"
    GOTO = "GOTO"
    REG = "REG"
    CLEAR = "CLEAR"
    HELP = "HELP"
    QUIT = "QUIT"
    RUN = "RUN"     # 自動ステップ開始
    STOP = "STOP"   # 自動ステップ停止
    STEP = "STEP"   # 自動ステップ間隔の設定
    UNKNOWN = "UNKNOWN"

# @intent:responsibility 解析済みのコマンドを保持します。
@dataclass(frozen=True)
class Command:
    command_type: CommandType
    args: List[str] = field(default_factory=list)
    raw: str = ""

# @intent:responsibility コマンド実行結果（表示メッセージと再描画の要否）を保持します。
@dataclass(frozen=True)
class CommandResult:
    message: str = ""
    updated: bool = False

_ALIASES = {
    "n": CommandType.NEXT, "next": CommandType.NEXT,
    "p": CommandType.PREV, "prev": CommandType.PREV, "previous": CommandType.PREV,
    "g": CommandType.GOTO, "goto": CommandType.GOTO,
    "r": CommandType.REG, "reg": CommandType.REG, "registers": CommandType.REG,
    "c": CommandType.CLEAR, "clear": CommandType.CLEAR,
    "h": CommandType.HELP, "help": CommandType.HELP, "?": CommandType.HELP,
    "q": CommandType.QUIT, "quit": CommandType.QUIT, "exit": CommandType.QUIT,
    "run": CommandType.RUN,
    "stop": CommandType.STOP,
    "step": CommandType.STEP,
}

# "n5", "prev12" のような回数付きの短縮形
_COUNTED_RE = re.compile(r"^(?P<name>n|next|p|prev|previous)(?P<count>\d+)$")

# 空入力で繰り返し可能なコマンド
_REPEATABLE = (CommandType.NEXT, CommandType.PREV, CommandType.RUN)

HELP_TEXT = """Commands:
  n, next [N]   - 次の命令へ (n5 で5ステップ)
  p, prev [N]   - 前の命令へ (p3 で3ステップ)
  g <line>      - 指定行へジャンプ (数字のみでも可)
  run           - 自動ステップ開始
  stop          - 自動ステップ停止
  step <ms>     - 自動ステップ間隔を設定
  (空入力) / ]  - 直前のコマンドを繰り返す
  q, quit       - 終了"""


# @intent:responsibility 入力文字列をCommandに変換し、繰り返し用に直前のコマンドを記憶します。
class CommandParser:
    """
    コマンド文字列のパーサ。
    next/prev/run は繰り返し対象として記憶され、空入力で再実行されます。
    """
    def __init__(self):
        self.last_command: Optional[Command] = None
        self.repeat_count: int = 0

    def parse(self, text: str) -> Optional[Command]:
        text = text.strip()
        if not text:
            return self._repeat_last()

        parts = text.split()
        name = parts[0].lower()
        args = parts[1:]

        counted = _COUNTED_RE.match(name)
        if counted and not args:
            command = Command(_ALIASES[counted.group("name")], [counted.group("count")], text)
        elif name in _ALIASES:
            command = Command(_ALIASES[name], args[:1] if args else [], text)
        elif re.fullmatch(r"\d+", name):
            # 数字のみの入力は指定行へのジャンプ
            command = Command(CommandType.GOTO, [name], text)
        else:
            command = Command(CommandType.UNKNOWN, args, text)

        if command.command_type in _REPEATABLE:
            self.last_command = command
            self.repeat_count = 1
        else:
            self.last_command = None
            self.repeat_count = 0
        return command

    def _repeat_last(self) -> Optional[Command]:
        if self.last_command is None:
            return None
        self.repeat_count += 1
        return self.last_command
