"""
共通の型定義を提供するモジュール。
トレース、補助ログ、UIの各レイヤーで共通して使用される型エイリアスなどを定義します。
"""
from typing import FrozenSet, List, NamedTuple

# @intent:data_structure 変化したレジスタのインデックス集合。0-30が汎用レジスタ、31がSP、32がPC。
ChangedRegisters = FrozenSet[int]

# @intent:data_structure 単一のレジスタの表示定義。UIが動的にフィールドを生成するために使用される。
class RegisterInfo(NamedTuple):
    name: str
    index: int  # RegisterChangeTrackerが返すインデックス
    width: int = 64  # ビット幅

# @intent:data_structure レジスタグループの表示定義。関連するレジスタ（例: "General", "Special"）をまとめる。
class RegisterLayoutInfo(NamedTuple):
    group_name: str
    registers: List[RegisterInfo]
