"""
UIフォント管理モジュール。

トレース表示、レジスタ表示、ログ表示で共通して使う等幅フォントを提供します。
"""
from functools import lru_cache

from PySide6.QtGui import QFont, QFontDatabase

PREFERRED_FONTS = ("JetBrains Mono", "Consolas", "Menlo", "DejaVu Sans Mono", "Courier New")

# @intent:responsibility 利用可能な等幅フォントファミリー名を一度だけ探索して返します。
@lru_cache(maxsize=1)
def get_monospace_font_family() -> str:
    available = set(QFontDatabase.families())
    for family in PREFERRED_FONTS:
        if family in available:
            return family
    return QFontDatabase.systemFont(QFontDatabase.FixedFont).family()

def get_monospace_font(size: int = 10) -> QFont:
    font = QFont(get_monospace_font_family(), size)
    font.setStyleHint(QFont.Monospace)
    return font
