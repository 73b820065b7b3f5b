# trace_parse/core/registers.py
"""
レジスタ変化検出モジュール。

連続するステップ間で値が変化したレジスタを検出し、UIでのハイライトに用いる
インデックス集合を提供します。
"""
from typing import Optional, Tuple

from trace_parse.common.types import ChangedRegisters
from trace_parse.core.record import GPR_COUNT, PC_INDEX, SP_INDEX, TRACKED_REGISTER_COUNT, TraceRecord


# @intent:responsibility レジスタのインデックスを表示名に変換します。
def register_name(index: int) -> str:
    if 0 <= index < GPR_COUNT:
        return f"x{index}"
    if index == SP_INDEX:
        return "SP"
    if index == PC_INDEX:
        return "PC"
    return ""


# @intent:responsibility 直前に観測したレジスタ値を保持し、更新ごとに変化したインデックスを返します。
class RegisterChangeTracker:
    """
    x0-x30 (0-30)、SP (31)、PC (32) の33個の値を追跡します。
    新しいトレースファイルを開くたびに reset() するか、新しいインスタンスに置き換える必要があります。
    """
    def __init__(self):
        self._last_values: Optional[Tuple[int, ...]] = None

    @property
    def has_baseline(self) -> bool:
        return self._last_values is not None

    def reset(self) -> None:
        self._last_values = None

    # @intent:responsibility レコードの値を直前の値と比較し、変化したインデックスの集合を返します。
    # @intent:post-condition 最初の呼び出しでは空集合を返し、比較の基準値を設定するだけです。
    #                       Noneが渡された場合は空集合を返し、基準値は変更しません。
    def update(self, record: Optional[TraceRecord]) -> ChangedRegisters:
        if record is None:
            return frozenset()

        current = record.tracked_values()
        previous = self._last_values
        self._last_values = current

        if previous is None:
            return frozenset()
        return frozenset(i for i in range(TRACKED_REGISTER_COUNT) if current[i] != previous[i])
