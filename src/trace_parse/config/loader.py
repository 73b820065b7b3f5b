import yaml
from typing import Dict, Any
from .models import MIN_WINDOW_SIZE, ViewerConfig, WindowConfig, CompanionConfig, NavigationConfig

class ConfigLoader:
    def load_from_file(self, path: str) -> ViewerConfig:
        with open(path, 'r', encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return self.parse_config(data or {})

    def parse_config(self, data: Dict[str, Any]) -> ViewerConfig:
        if not isinstance(data, dict):
            raise ValueError(f"Config root must be a mapping, got {type(data).__name__}")

        defaults = ViewerConfig()

        # Window
        window_data = data.get("window") or {}
        window = WindowConfig(
            size=self._parse_int(window_data.get("size", defaults.window.size)),
            reload_margin=self._parse_int(window_data.get("reload_margin", defaults.window.reload_margin)),
        )
        if window.size < MIN_WINDOW_SIZE:
            raise ValueError(f"window.size must be >= {MIN_WINDOW_SIZE}: {window.size}")
        if window.reload_margin < 0:
            raise ValueError(f"window.reload_margin must be >= 0: {window.reload_margin}")

        # Companion logs
        companion_data = data.get("companions") or {}
        companions = CompanionConfig(
            trace_suffix=str(companion_data.get("trace_suffix", defaults.companions.trace_suffix)),
            call_log=str(companion_data.get("call_log", defaults.companions.call_log)),
            memory_log=str(companion_data.get("memory_log", defaults.companions.memory_log)),
        )

        # Navigation
        navigation_data = data.get("navigation") or {}
        navigation = NavigationConfig(
            step_delay_ms=self._parse_int(navigation_data.get("step_delay_ms", defaults.navigation.step_delay_ms)),
        )
        if navigation.step_delay_ms < 1:
            raise ValueError(f"navigation.step_delay_ms must be >= 1: {navigation.step_delay_ms}")

        return ViewerConfig(window=window, companions=companions, navigation=navigation)

    def _parse_int(self, value: Any) -> int:
        if isinstance(value, bool):
            raise ValueError(f"Invalid integer format: {value}")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            if value.startswith("0x"):
                return int(value, 16)
            return int(value)
        raise ValueError(f"Invalid integer format: {value}")
