# trace_parse/core/parser.py
"""
トレース行パーサ

1行の生テキストを TraceRecord に変換する純粋関数を提供します。
このモジュールは状態を持たず、1行の分類のみを責務とします。
行をスキップしてスキャンを続けるかどうかは呼び出し側が決定します。
"""
import re
from typing import List

from trace_parse.core.record import GPR_COUNT, STEP_BITS, VALUE_BITS, TraceRecord

FIELD_COUNT = 37

# フィールド位置
STEP_FIELD = 0
ADDRESS_FIELD = 1
OFFSET_FIELD = 2
INSTRUCTION_FIELD = 3
FIRST_GPR_FIELD = 4 # x0-x28 は 4-32、x29/x30 は 33-34
SP_FIELD = 35
PC_FIELD = 36

_HEX_DIGITS_RE = re.compile(r"[0-9a-fA-F]+")
_DEC_DIGITS_RE = re.compile(r"[0-9]+")


# @intent:responsibility 解析に失敗したフィールドと値を保持する例外です。
class TraceParseError(ValueError):
    """
    トレース行の解析エラー。
    field はフィールド名（"fields", "step", "address", "x3", "sp" など）、
    value は問題となった生の値を表します。
    """
    def __init__(self, field: str, value: str, message: str):
        super().__init__(message)
        self.field = field
        self.value = value


def _parse_step(value: str) -> int:
    # stepは常に16進数（0xプレフィックスなし）
    if not _HEX_DIGITS_RE.fullmatch(value):
        raise TraceParseError("step", value, f"Invalid step value: {value!r}")
    step = int(value, 16)
    if step >= 1 << STEP_BITS:
        raise TraceParseError("step", value, f"Step value out of 32-bit range: {value!r}")
    return step


# @intent:utility_function "0x"付きの16進数、または10進数の文字列を64bit符号なし整数に変換します。
def parse_number(field: str, value: str) -> int:
    if value[:2] in ("0x", "0X"):
        digits = value[2:]
        if not _HEX_DIGITS_RE.fullmatch(digits):
            raise TraceParseError(field, value, f"Invalid {field} value: {value!r}")
        number = int(digits, 16)
    elif _DEC_DIGITS_RE.fullmatch(value):
        number = int(value)
    else:
        raise TraceParseError(field, value, f"Invalid {field} value: {value!r}")

    if number >= 1 << VALUE_BITS:
        raise TraceParseError(field, value, f"{field} value out of 64-bit range: {value!r}")
    return number


def _strip_quotes(text: str) -> str:
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        return text[1:-1]
    return text


def register_field_index(register: int) -> int:
    """
    汎用レジスタ番号(0-30)に対応するフィールド位置を返します。
    """
    return FIRST_GPR_FIELD + register


# @intent:responsibility 1行分のテキストを解析し、TraceRecordを生成します。
# @intent:post-condition 解析に失敗した場合はTraceParseErrorを送出し、部分的なレコードは返しません。
def parse_line(raw: str) -> TraceRecord:
    """
    `|`区切りで37フィールドのトレース行を解析します。

    フィールド構成:
        0: step (16進数), 1: address, 2: offset, 3: 命令テキスト,
        4-34: x0-x30, 35: SP, 36: PC
    """
    fields: List[str] = [f.strip() for f in raw.rstrip("\r\n").split("|")]
    if len(fields) != FIELD_COUNT:
        raise TraceParseError(
            "fields", str(len(fields)),
            f"Invalid field count: expected {FIELD_COUNT}, got {len(fields)}"
        )

    step = _parse_step(fields[STEP_FIELD])
    address = parse_number("address", fields[ADDRESS_FIELD])
    offset = parse_number("offset", fields[OFFSET_FIELD])
    instruction = _strip_quotes(fields[INSTRUCTION_FIELD])

    registers = tuple(
        parse_number(f"x{i}", fields[register_field_index(i)]) for i in range(GPR_COUNT)
    )
    sp = parse_number("sp", fields[SP_FIELD])
    pc = parse_number("pc", fields[PC_FIELD])

    return TraceRecord(
        step=step,
        address=address,
        offset=offset,
        instruction=instruction,
        registers=registers,
        sp=sp,
        pc=pc,
    )

