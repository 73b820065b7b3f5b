# tests/debugger/test_session.py
"""
trace_parse.debugger.sessionモジュールの単体テスト。
トレースと補助ログのオープン、現在位置の問い合わせ、コマンド実行を検証します。
"""
import os

import pytest

from trace_parse.config.models import CompanionConfig, ViewerConfig, WindowConfig
from trace_parse.core.window import LineStatus
from trace_parse.debugger.commands import CommandParser
from trace_parse.debugger.session import TraceSession, discover_companions

# @intent:test_suite トレースセッションによるナビゲーションと補助ログ・レジスタ変化の統合の検証。

CALL_LOG = "0: [0x1000][0]: main\n3: [0x100c][0]: helper\n0x2000 | 01 02 | ..\n"
MEMORY_LOG = "2: (w)(0x7ffff000+0x8)\n"


@pytest.fixture
def session():
    s = TraceSession()
    yield s
    s.close()


@pytest.fixture
def companions(tmp_path):
    (tmp_path / "bl.log").write_text(CALL_LOG, encoding="utf-8")
    (tmp_path / "rw.log").write_text(MEMORY_LOG, encoding="utf-8")
    return tmp_path


def run(session, parser, text):
    return session.execute(parser.parse(text))


class TestDiscoverCompanions:
    # @intent:test_case_discover サフィックスに一致するトレースでは同じディレクトリのログが対象になります。
    def test_discover(self):
        call, memory = discover_companions(os.path.join("dir", "app_code.log"), CompanionConfig())
        assert call == os.path.join("dir", "bl.log")
        assert memory == os.path.join("dir", "rw.log")

    # @intent:test_case_no_match サフィックスに一致しない場合は補助ログを探しません。
    def test_no_match(self):
        assert discover_companions("trace.txt", CompanionConfig()) == (None, None)


class TestOpen:
    # @intent:test_case_open_with_companions 補助ログが見つかった場合は警告なしで読み込まれることを検証します。
    def test_open_with_companions(self, session, make_trace, companions):
        path = make_trace(10)
        report = session.open(path)
        assert report.total == 10
        assert report.call_log_path == str(companions / "bl.log")
        assert report.memory_log_path == str(companions / "rw.log")
        assert report.warnings == []
        assert len(session.logs.calls) == 2

    # @intent:test_case_missing_companions 補助ログがなくてもオープンは成功し、警告が報告されることを検証します。
    def test_missing_companions(self, session, make_trace):
        report = session.open(make_trace(10))
        assert report.total == 10
        assert report.call_log_path is None
        assert report.memory_log_path is None
        assert len(report.warnings) == 2
        assert report.warnings[0].startswith("Could not load call log")
        assert report.warnings[1].startswith("Could not load memory log")
        assert session.inspect().calls == []

    # @intent:test_case_other_name 規約外のファイル名では補助ログを探さず、警告も出しません。
    def test_other_name(self, session, make_trace):
        report = session.open(make_trace(5, name="plain.txt"))
        assert report.warnings == []
        assert report.call_log_path is None

    # @intent:test_case_missing_trace トレースファイルが開けない場合はOSErrorが送出されます。
    def test_missing_trace(self, session, tmp_path):
        with pytest.raises(OSError):
            session.open(str(tmp_path / "nothing_code.log"))

    # @intent:test_case_custom_companions 設定で補助ログの名前を変更できることを検証します。
    def test_custom_companions(self, make_trace, tmp_path):
        (tmp_path / "calls.txt").write_text(CALL_LOG, encoding="utf-8")
        config = ViewerConfig(companions=CompanionConfig(trace_suffix=".trace", call_log="calls.txt", memory_log="mem.txt"))
        s = TraceSession(config)
        try:
            report = s.open(make_trace(5, name="run.trace"))
            assert report.call_log_path == str(tmp_path / "calls.txt")
            assert report.memory_log_path is None
            assert len(report.warnings) == 1
        finally:
            s.close()


class TestInspect:
    # @intent:test_case_inspect 現在位置のレコード、補助ログ、変化したレジスタがまとめて返されることを検証します。
    def test_inspect(self, session, make_trace, companions):
        session.open(make_trace(10))
        view = session.inspect()
        assert view.index == 0
        assert view.total == 10
        assert view.record.step == 0
        assert view.changed_registers == frozenset()
        assert [e.function for e in view.calls] == ["main"]
        assert view.memory == []

        session.next(2)
        view = session.inspect()
        # x0とPCは行ごとに変化する
        assert view.changed_registers == frozenset({0, 32})
        assert [e.function for e in view.calls] == ["main"]
        assert view.memory[0].step == 2

        session.next()
        view = session.inspect()
        assert view.calls[0].function == "helper"
        assert view.calls[0].memory_dump == ("0x2000 | 01 02 | ..",)

    # @intent:test_case_inspect_twice 同じ位置を再度問い合わせても変化したレジスタは保持されます。
    def test_inspect_twice(self, session, make_trace):
        session.open(make_trace(10))
        session.inspect()
        session.next()
        first = session.inspect()
        second = session.inspect()
        assert first.changed_registers == second.changed_registers == frozenset({0, 32})

    # @intent:test_case_reset_on_open 新しいファイルを開くとレジスタ追跡がリセットされることを検証します。
    def test_reset_on_open(self, session, make_trace):
        session.open(make_trace(10))
        session.inspect()
        session.next(3)
        assert session.inspect().changed_registers

        session.open(make_trace(10, name="other_code.log"))
        session.next()
        view = session.inspect()
        assert view.index == 1
        assert view.changed_registers == frozenset()

    # @intent:test_case_malformed_current 解析できない行ではレコードなしのビューが返されます。
    def test_malformed_current(self, session, make_trace):
        session.open(make_trace(5, malformed={1}))
        session.next()
        view = session.inspect()
        assert view.line.status == LineStatus.MALFORMED
        assert view.record is None
        assert view.changed_registers == frozenset()

    # @intent:test_case_reload_through_session 小さいウィンドウでのジャンプ後、再ロード完了でレコードが得られることを検証します。
    def test_goto_with_small_window(self, make_trace):
        s = TraceSession(ViewerConfig(window=WindowConfig(size=8, reload_margin=1)))
        try:
            s.open(make_trace(100))
            assert s.goto(60)
            s.store.wait_for_reload(5.0)
            view = s.inspect()
            assert view.line.status == LineStatus.LOADED
            assert view.record.step == 60
        finally:
            s.close()


class TestExecute:
    @pytest.fixture
    def opened(self, session, make_trace):
        session.open(make_trace(10))
        return session, CommandParser()

    # @intent:test_case_stepping 移動コマンドの結果メッセージとカーソル位置を検証します。
    def test_stepping(self, opened):
        session, parser = opened
        assert run(session, parser, "p").message == "Already at first instruction"

        result = run(session, parser, "n")
        assert result.message == "Stepped to next instruction"
        assert result.updated

        assert run(session, parser, "n3").message == "Stepped 3 instructions forward"
        assert session.store.cursor == 4

        result = run(session, parser, "n 20")
        assert result.message == "Stepped 5 instructions (reached end)"
        assert session.store.cursor == 9

        result = run(session, parser, "n")
        assert result.message == "Already at last instruction"
        assert not result.updated

        assert run(session, parser, "p2").message == "Stepped 2 instructions backward"
        assert run(session, parser, "p").message == "Stepped to previous instruction"
        assert session.store.cursor == 6

    # @intent:test_case_repeat 空入力で直前の移動コマンドが繰り返されることを検証します。
    def test_repeat(self, opened):
        session, parser = opened
        run(session, parser, "n2")
        run(session, parser, "")
        assert session.store.cursor == 4

    # @intent:test_case_goto gotoの成功と各種エラーメッセージを検証します。
    def test_goto(self, opened):
        session, parser = opened
        assert run(session, parser, "g").message == "Please specify a line number"
        assert run(session, parser, "g abc").message == "Invalid line number: abc"
        assert run(session, parser, "g 99").message == "Invalid line number: 99"
        assert session.store.cursor == 0

        result = run(session, parser, "7")
        assert result.message == "Jumped to line 7"
        assert result.updated
        assert session.store.cursor == 7

    # @intent:test_case_auto_step run/stop/stepで自動ステップの状態と間隔が変わることを検証します。
    def test_auto_step(self, opened):
        session, parser = opened
        assert session.step_delay_ms == 100
        run(session, parser, "run")
        assert session.auto_step
        run(session, parser, "stop")
        assert not session.auto_step

        assert run(session, parser, "step 250").message == "Step delay set to 250 ms"
        assert session.step_delay_ms == 250
        run(session, parser, "step 0")
        assert session.step_delay_ms == 250

    # @intent:test_case_misc help/quit/未知のコマンドのメッセージを検証します。
    def test_misc(self, opened):
        session, parser = opened
        assert "Commands:" in run(session, parser, "h").message
        assert run(session, parser, "q").message == "Quitting..."
        assert run(session, parser, "bogus").message == "Unknown command: bogus"
        assert run(session, parser, "r").updated
        assert session.execute(None).message == ""
