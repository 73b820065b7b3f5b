# tests/core/test_registers.py
"""
trace_parse.core.registersモジュールの単体テスト。
"""
from trace_parse.core.record import GPR_COUNT, TraceRecord
from trace_parse.core.registers import RegisterChangeTracker, register_name

# @intent:test_suite 連続するステップ間のレジスタ変化検出の検証。

def make_record(step=0, x0=0, sp=0, pc=0):
    registers = (x0,) + (0,) * (GPR_COUNT - 1)
    return TraceRecord(step=step, address=0, offset=0, instruction="nop", registers=registers, sp=sp, pc=pc)


class TestRegisterChangeTracker:
    # @intent:test_case_diff_sequence 初回は空、x0の変化で{0}、変化なしで空を返すことを検証します。
    def test_diff_sequence(self):
        tracker = RegisterChangeTracker()
        a = make_record(step=1, x0=0)
        b = make_record(step=2, x0=5)

        assert tracker.update(a) == frozenset()
        assert tracker.update(b) == frozenset({0})
        assert tracker.update(b) == frozenset()

    # @intent:test_case_sp_pc SPとPCの変化がインデックス31/32として報告されることを検証します。
    def test_sp_and_pc(self):
        tracker = RegisterChangeTracker()
        tracker.update(make_record())
        assert tracker.update(make_record(sp=8, pc=4)) == frozenset({31, 32})

    # @intent:test_case_none Noneを渡しても基準値が変わらないことを検証します。
    def test_none_keeps_baseline(self):
        tracker = RegisterChangeTracker()
        tracker.update(make_record(x0=1))
        assert tracker.update(None) == frozenset()
        assert tracker.update(make_record(x0=2)) == frozenset({0})

    # @intent:test_case_reset reset後の最初の更新は空集合を返すことを検証します。
    def test_reset(self):
        tracker = RegisterChangeTracker()
        tracker.update(make_record(x0=1))
        assert tracker.has_baseline
        tracker.reset()
        assert not tracker.has_baseline
        assert tracker.update(make_record(x0=9)) == frozenset()


# @intent:test_case_register_name インデックスから表示名への変換を検証します。
def test_register_name():
    assert register_name(0) == "x0"
    assert register_name(30) == "x30"
    assert register_name(31) == "SP"
    assert register_name(32) == "PC"
    assert register_name(33) == ""
