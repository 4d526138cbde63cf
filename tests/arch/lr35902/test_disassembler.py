# tests/arch/lr35902/test_disassembler.py
"""
gameboy_vm.arch.lr35902.disassemblerモジュールの単体テスト。
"""
from gameboy_vm.arch.lr35902.disassembler import disassemble

# @intent:test_suite 逆アセンブル結果のアドレス、16進ダンプ、ニーモニックを検証します。

class TestDisassembler:
    # @intent:test_case_listing 命令長に従ってアドレスが進むことを検証します。
    def test_basic_listing(self, flat_bus):
        flat_bus.load(0x0100, bytes([0x00, 0xC3, 0x50, 0x01, 0x3E, 0x42, 0xCB, 0x7C]))
        listing = disassemble(flat_bus, 0x0100, 4)
        assert listing == [
            (0x0100, "00", "NOP"),
            (0x0101, "C3 50 01", "JP nn $0150"),
            (0x0104, "3E 42", "LD A,n $42"),
            (0x0106, "CB 7C", "BIT 7,H"),
        ]

    # @intent:test_case_illegal 未定義オペコードはDBとして1バイトずつ表示されることを検証します。
    def test_illegal_opcode_as_data(self, flat_bus):
        flat_bus.load(0x0200, bytes([0xDD, 0x00]))
        listing = disassemble(flat_bus, 0x0200, 2)
        assert listing == [(0x0200, "DD", "DB $DD"), (0x0201, "00", "NOP")]

    # @intent:test_case_relative 相対分岐は分岐先の絶対アドレスで表示されることを検証します。
    def test_relative_jump_target(self, flat_bus):
        flat_bus.load(0x0150, bytes([0x18, 0xFE]))
        assert disassemble(flat_bus, 0x0150, 1)[0][2] == "JR e $0150"

    # @intent:test_case_no_side_effects 逆アセンブルはCPUの状態を変更しないことを検証します。
    def test_does_not_write(self, flat_bus):
        flat_bus.get_and_clear_activity_log()
        disassemble(flat_bus, 0x0000, 8)
        assert all(a.access_type.value == "READ" for a in flat_bus.get_and_clear_activity_log())
