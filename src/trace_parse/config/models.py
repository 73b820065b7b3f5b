from dataclasses import dataclass, field

from trace_parse.core.window import DEFAULT_RELOAD_MARGIN, DEFAULT_WINDOW_SIZE

TRACE_VIEW_ROWS = 51  # トレース一覧に表示する行数
MIN_WINDOW_SIZE = TRACE_VIEW_ROWS  # 一覧の全行が1つのウィンドウに収まる大きさ

@dataclass
class WindowConfig:
    size: int = DEFAULT_WINDOW_SIZE
    reload_margin: int = DEFAULT_RELOAD_MARGIN  # ウィンドウ端からこの行数以内に入ったら先行ロード

@dataclass
class CompanionConfig:
    trace_suffix: str = "code.log"  # このサフィックスを持つトレースファイルのみ補助ログを探す
    call_log: str = "bl.log"
    memory_log: str = "rw.log"

@dataclass
class NavigationConfig:
    step_delay_ms: int = 100  # 自動ステップの間隔

@dataclass
class ViewerConfig:
    window: WindowConfig = field(default_factory=WindowConfig)
    companions: CompanionConfig = field(default_factory=CompanionConfig)
    navigation: NavigationConfig = field(default_factory=NavigationConfig)
