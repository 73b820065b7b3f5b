# trace_parse/core/record.py
"""
トレースレコード（1命令分の実行状態）の不変データ構造

このモジュールは、トレースファイルの1行に対応する、CPUレジスタと制御フローの
スナップショットを定義します。レコードはウィンドウの(再)ロード時にのみ生成され、
ウィンドウがスライドすると破棄されます。
"""
from dataclasses import dataclass
from typing import List, Tuple

from trace_parse.common.types import RegisterInfo, RegisterLayoutInfo

GPR_COUNT = 31  # x0-x30
SP_INDEX = 31
PC_INDEX = 32
TRACKED_REGISTER_COUNT = 33  # 31個の汎用レジスタ + SP + PC

STEP_BITS = 32
VALUE_BITS = 64


# @intent:responsibility ある1ステップにおけるCPUの状態を不変に記録します。
@dataclass(frozen=True) # 不変データ構造
class TraceRecord:
    """
    トレースファイルの1行を解析した結果。
    レコードの同一性はstepで決まり、ファイル中の1行に一意に対応します。
    """
    step: int # 32bitのステップカウンタ
    address: int # 命令アドレス (64bit)
    offset: int # モジュール内オフセット (64bit)
    instruction: str # 例: "ldr x0, [sp, #0x10]"
    registers: Tuple[int, ...] # x0-x30 の31個
    sp: int = 0
    pc: int = 0

    # @intent:rationale 登録数が31でないレコードは差分計算のインデックス体系を壊すため、生成時に拒否します。
    def __post_init__(self):
        if len(self.registers) != GPR_COUNT:
            raise ValueError(f"TraceRecord requires {GPR_COUNT} general registers, got {len(self.registers)}.")

    # @intent:responsibility 変化検出で使用する33個の値（x0-x30, SP, PC）を順番に返します。
    def tracked_values(self) -> Tuple[int, ...]:
        return self.registers + (self.sp, self.pc)


# @intent:responsibility 汎用レジスタとSP/PCをUI上でどのようにグループ化するかを定義します。
def get_register_layout() -> List[RegisterLayoutInfo]:
    general = [RegisterInfo(f"x{i}", i) for i in range(GPR_COUNT)]
    special = [RegisterInfo("SP", SP_INDEX), RegisterInfo("PC", PC_INDEX)]
    return [
        RegisterLayoutInfo("General", general),
        RegisterLayoutInfo("Special", special),
    ]
