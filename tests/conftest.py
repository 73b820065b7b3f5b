# tests/conftest.py
"""
テスト共通のフィクスチャ。
トレースファイルと補助ログファイルを一時ディレクトリに生成します。
"""
import pytest


def trace_line(index: int, x0=None) -> str:
    """
    行番号indexに対応するトレース行を生成します。stepはindexの16進数表記になります。
    """
    x0 = index if x0 is None else x0
    registers = [str(x0)] + ["0x0"] * 30
    fields = [f"{index:x}", f"0x{0x1000 + index * 4:x}", f"0x{index * 4:x}", f'"add x0, x0, #{index}"']
    fields += registers + ["0x7ffff000", f"0x{0x1000 + index * 4:x}"]
    return "|".join(fields)


@pytest.fixture
def make_trace(tmp_path):
    """
    count行のトレースファイルを生成するファクトリ。malformedに含まれる行番号は不正な行になります。
    """
    def _make(count: int, name: str = "trace_code.log", malformed=()):
        lines = []
        for i in range(count):
            lines.append("this is not a trace line" if i in malformed else trace_line(i))
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return str(path)
    return _make
