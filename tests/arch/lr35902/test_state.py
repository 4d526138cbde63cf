# tests/arch/lr35902/test_state.py
"""
gameboy_vm.arch.lr35902.stateモジュールの単体テスト。
"""
from gameboy_vm.arch.lr35902.state import Flags, LR35902CpuState

# @intent:test_suite レジスタペア、フラグアクセサ、Flags値型を検証します。

class TestLR35902State:
    # @intent:test_case_pairs 16bitペアの読み書きが上位/下位レジスタに分解されることを検証します。
    def test_register_pairs(self):
        state = LR35902CpuState()
        state.bc = 0x1234
        state.de = 0x5678
        state.hl = 0x9ABC
        assert (state.b, state.c) == (0x12, 0x34)
        assert (state.d, state.e) == (0x56, 0x78)
        assert (state.h, state.l) == (0x9A, 0xBC)

    # @intent:test_case_af_mask AFへの書き込みではFの下位4bitが常に0になることを検証します。
    def test_af_masks_low_nibble(self):
        state = LR35902CpuState()
        state.af = 0x12FF
        assert state.a == 0x12
        assert state.f == 0xF0
        assert state.af == 0x12F0

    # @intent:test_case_flags 個別のフラグアクセサがFの対応ビットを操作することを検証します。
    def test_flag_accessors(self):
        state = LR35902CpuState()
        state.flag_z = True
        state.flag_c = True
        assert state.f == 0x90
        state.flag_z = False
        state.flag_n = True
        state.flag_h = True
        assert state.f == 0x70
        assert state.flag_n and state.flag_h and state.flag_c and not state.flag_z

    # @intent:test_case_flags_value Flags値型と生のバイトの相互変換を検証します。
    def test_flags_value_type(self):
        flags = Flags.from_byte(0xAF)
        assert flags == Flags(zero=True, subtract=False, half_carry=True, carry=False)
        assert flags.to_byte() == 0xA0

        state = LR35902CpuState()
        state.flags = Flags(carry=True)
        assert state.f == 0x10
        assert state.flags.carry
