# tests/core/test_parser.py
"""
trace_parse.core.parserモジュールの単体テスト。
"""
import pytest

from trace_parse.core.parser import FIELD_COUNT, TraceParseError, parse_line, parse_number, register_field_index

# @intent:test_suite トレース行を37フィールドのレコードに変換するパーサの検証。

def make_line(step="1a", address="0x4000", offset="0x100", instruction='"mov x0, x1"',
              registers=None, sp="0x7fff0000", pc="0x4000"):
    registers = registers if registers is not None else [str(i) for i in range(31)]
    return "|".join([step, address, offset, instruction] + list(registers) + [sp, pc])


class TestParseLine:
    """
    parse_lineの単体テスト。
    """
    # @intent:test_case_valid_line 正しい行から全フィールドが取り出されることを検証します。
    def test_valid_line(self):
        record = parse_line(make_line() + "\n")
        assert record.step == 0x1a
        assert record.address == 0x4000
        assert record.offset == 0x100
        assert record.instruction == "mov x0, x1"
        assert record.registers == tuple(range(31))
        assert record.sp == 0x7fff0000
        assert record.pc == 0x4000

    # @intent:test_case_whitespace フィールド前後の空白とCRLFが無視されることを検証します。
    def test_fields_are_trimmed(self):
        line = " | ".join(["ff", " 0x10", "16 ", " nop "] + ["0"] * 31 + ["0", "0"]) + "\r\n"
        record = parse_line(line)
        assert record.step == 0xff
        assert record.address == 0x10
        assert record.offset == 16
        assert record.instruction == "nop"

    # @intent:test_case_unquoted_instruction 引用符のない命令テキストはそのまま保持されます。
    def test_unquoted_instruction(self):
        assert parse_line(make_line(instruction="ret")).instruction == "ret"

    # @intent:test_case_field_count フィールド数が37でない行はエラーになります。
    @pytest.mark.parametrize("line", ["", "1|2|3", make_line() + "|extra"])
    def test_wrong_field_count(self, line):
        with pytest.raises(TraceParseError) as excinfo:
            parse_line(line)
        assert excinfo.value.field == "fields"
        assert "expected 37" in str(excinfo.value)

    # @intent:test_case_step_is_hex stepは0xなしの16進数で、10進数として解釈されないことを検証します。
    def test_step_is_hex(self):
        assert parse_line(make_line(step="10")).step == 16

    # @intent:test_case_invalid_step 16進数でないstepや32bitを超えるstepはエラーになります。
    @pytest.mark.parametrize("step", ["zz", "0x10", "", "100000000"])
    def test_invalid_step(self, step):
        with pytest.raises(TraceParseError) as excinfo:
            parse_line(make_line(step=step))
        assert excinfo.value.field == "step"
        assert excinfo.value.value == step

    # @intent:test_case_invalid_register 不正なレジスタ値はそのレジスタ名とともに報告されます。
    def test_invalid_register(self):
        registers = ["0"] * 31
        registers[3] = "abc"
        with pytest.raises(TraceParseError) as excinfo:
            parse_line(make_line(registers=registers))
        assert excinfo.value.field == "x3"
        assert excinfo.value.value == "abc"

    # @intent:test_case_invalid_sp_pc SP/PCの解析エラーがフィールド名付きで報告されることを検証します。
    def test_invalid_sp_and_pc(self):
        with pytest.raises(TraceParseError) as excinfo:
            parse_line(make_line(sp="-1"))
        assert excinfo.value.field == "sp"
        with pytest.raises(TraceParseError) as excinfo:
            parse_line(make_line(pc="0xg"))
        assert excinfo.value.field == "pc"

    # @intent:test_case_error_is_value_error TraceParseErrorはValueErrorとして捕捉できます。
    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_line("garbage")


class TestParseNumber:
    """
    parse_numberの単体テスト。
    """
    # @intent:test_case_formats 0x付き16進数と10進数の両方を受け付けることを検証します。
    @pytest.mark.parametrize("text, expected", [
        ("0x1F", 31),
        ("0XfF", 255),
        ("42", 42),
        ("007", 7),
        ("0xffffffffffffffff", 0xffffffffffffffff),
    ])
    def test_formats(self, text, expected):
        assert parse_number("address", text) == expected

    # @intent:test_case_rejects 空文字、符号付き、64bit超過の値はエラーになります。
    @pytest.mark.parametrize("text", ["", "0x", "-5", "1.5", "ff", "0x10000000000000000", "18446744073709551616"])
    def test_rejects(self, text):
        with pytest.raises(TraceParseError) as excinfo:
            parse_number("offset", text)
        assert excinfo.value.field == "offset"

    # @intent:test_case_register_field_index 汎用レジスタのフィールド位置が4から始まることを検証します。
    def test_register_field_index(self):
        assert register_field_index(0) == 4
        assert register_field_index(30) == 34
        assert register_field_index(30) + 3 == FIELD_COUNT
