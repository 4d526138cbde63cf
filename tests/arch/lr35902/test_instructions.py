# tests/arch/lr35902/test_instructions.py
"""
LR35902命令セットの単体テスト。
CPUに小さなプログラムを実行させ、レジスタ、フラグ、メモリ、消費サイクル数を検証します。
"""
import pytest

from gameboy_vm.arch.lr35902.cpu import LR35902Cpu
from gameboy_vm.arch.lr35902.instructions import DECODE_MAP, ILLEGAL_OPCODES, decode_opcode
from gameboy_vm.common.errors import IllegalOpcodeError

# @intent:test_suite ロード、算術論理演算、制御、CBプレフィックス命令の振る舞いを検証します。

@pytest.fixture
def run(flat_bus):
    """
    0x0100にプログラムを配置し、指定ステップ数だけ実行する関数を返します。
    戻り値は (cpu, 各ステップのサイクル数リスト)。
    """
    def _run(code: bytes, steps: int = 1, **registers):
        cpu = LR35902Cpu()
        state = cpu.get_state()
        state.sp = 0xFFFE
        for name, value in registers.items():
            setattr(state, name, value)
        flat_bus.load(0x0100, code)
        cycles = [cpu.step(flat_bus) for _ in range(steps)]
        return cpu, cycles
    return _run


class TestOpcodeTable:
    # @intent:test_case_coverage 未定義の11個を除く全ての1バイトオペコードがデコード可能であることを検証します。
    def test_all_legal_opcodes_are_mapped(self):
        assert len(ILLEGAL_OPCODES) == 11
        for opcode in range(0x100):
            assert (opcode in DECODE_MAP) != (opcode in ILLEGAL_OPCODES)

    # @intent:test_case_illegal 未定義オペコードのデコードはIllegalOpcodeErrorになることを検証します。
    @pytest.mark.parametrize("opcode", sorted(ILLEGAL_OPCODES))
    def test_illegal_opcode_raises(self, opcode, flat_bus):
        with pytest.raises(IllegalOpcodeError) as excinfo:
            decode_opcode(opcode, flat_bus, 0x0200)
        assert excinfo.value.opcode == opcode
        assert excinfo.value.address == 0x0200

    # @intent:test_case_illegal_step CPUが未定義オペコードに到達すると、そのステップが失敗することを検証します。
    def test_step_on_illegal_opcode_fails(self, run):
        with pytest.raises(IllegalOpcodeError):
            run(bytes([0xD3]))


class TestLoadInstructions:
    # @intent:test_case_ld_r_n LD r,n と LD r,r' を検証します。
    def test_ld_immediate_and_register(self, run):
        cpu, cycles = run(bytes([0x06, 0x12, 0x48]), steps=2)  # LD B,$12 / LD C,B
        state = cpu.get_state()
        assert state.b == 0x12
        assert state.c == 0x12
        assert cycles == [8, 4]
        assert state.pc == 0x0103

    # @intent:test_case_ld_16 LD rr,nn と LD (nn),SP を検証します。
    def test_ld_16bit(self, run, flat_bus):
        cpu, cycles = run(bytes([0x21, 0x34, 0x12, 0x31, 0x00, 0xD0, 0x08, 0x00, 0xC0]), steps=3)
        state = cpu.get_state()
        assert state.hl == 0x1234
        assert state.sp == 0xD000
        assert flat_bus.peek(0xC000) == 0x00
        assert flat_bus.peek(0xC001) == 0xD0
        assert cycles == [12, 12, 20]

    # @intent:test_case_hl_inc_dec LD (HL+),A と LD A,(HL-) がHLを更新することを検証します。
    def test_hl_increment_decrement(self, run, flat_bus):
        flat_bus.write_byte(0xC001, 0x77)
        cpu, _ = run(bytes([0x22, 0x3A]), steps=2, a=0x55, h=0xC0, l=0x00)
        state = cpu.get_state()
        assert flat_bus.peek(0xC000) == 0x55
        assert state.a == 0x77
        assert state.hl == 0xC000

    # @intent:test_case_ldh LDH (n),A と LD A,(C) が0xFF00ページにアクセスすることを検証します。
    def test_high_page_access(self, run, flat_bus):
        flat_bus.write_byte(0xFF81, 0x99)
        cpu, cycles = run(bytes([0xE0, 0x80, 0xF2]), steps=2, a=0x42, c=0x81)
        assert flat_bus.peek(0xFF80) == 0x42
        assert cpu.get_state().a == 0x99
        assert cycles == [12, 8]

    # @intent:test_case_push_pop PUSH/POPとPOP AFでFの下位4bitが0になることを検証します。
    def test_push_pop(self, run, flat_bus):
        cpu, cycles = run(bytes([0xC5, 0xF1]), steps=2, b=0x12, c=0xFF)  # PUSH BC / POP AF
        state = cpu.get_state()
        assert state.a == 0x12
        assert state.f == 0xF0
        assert state.sp == 0xFFFE
        assert flat_bus.peek(0xFFFD) == 0x12
        assert flat_bus.peek(0xFFFC) == 0xFF
        assert cycles == [16, 12]

    # @intent:test_case_ld_hl_sp LD HL,SP+e のフラグを検証します。
    def test_ld_hl_sp_offset(self, run):
        cpu, _ = run(bytes([0xF8, 0x02]), sp=0xFFFE)
        state = cpu.get_state()
        assert state.hl == 0x0000
        assert not state.flag_z and not state.flag_n
        assert state.flag_h and state.flag_c


class TestAluInstructions:
    # @intent:test_case_add ADD A,n のハーフキャリーとキャリーを検証します。
    def test_add_flags(self, run):
        cpu, _ = run(bytes([0xC6, 0x01]), a=0xFF)
        state = cpu.get_state()
        assert state.a == 0x00
        assert state.flag_z and state.flag_h and state.flag_c and not state.flag_n

    # @intent:test_case_sub SUB と CP の違い（CPは結果を捨てる）を検証します。
    def test_sub_and_cp(self, run):
        cpu, _ = run(bytes([0xFE, 0x10, 0xD6, 0x01]), steps=2, a=0x10)
        state = cpu.get_state()
        assert state.a == 0x0F
        assert state.flag_n and state.flag_h and not state.flag_c and not state.flag_z

    # @intent:test_case_xor XOR A はAを0にしZのみを立てることを検証します。
    def test_xor_a(self, run):
        cpu, cycles = run(bytes([0xAF]), a=0x5A, f=0xF0)
        state = cpu.get_state()
        assert state.a == 0
        assert state.f == 0x80
        assert cycles == [4]

    # @intent:test_case_adc ADCがキャリーを加算することを検証します。
    def test_adc_uses_carry(self, run):
        cpu, _ = run(bytes([0x37, 0xCE, 0x0F]), steps=2, a=0x00)  # SCF / ADC A,$0F
        state = cpu.get_state()
        assert state.a == 0x10
        assert state.flag_h and not state.flag_c

    # @intent:test_case_inc_dec INC/DECがCを変更せず、(HL)に対しても動作することを検証します。
    def test_inc_dec(self, run, flat_bus):
        flat_bus.write_byte(0xC000, 0x00)
        cpu, cycles = run(bytes([0x3C, 0x35]), steps=2, a=0x0F, f=0x10, h=0xC0, l=0x00)
        state = cpu.get_state()
        assert state.a == 0x10
        assert flat_bus.peek(0xC000) == 0xFF
        assert state.flag_c  # 保持
        assert state.flag_n and state.flag_h
        assert cycles == [4, 12]

    # @intent:test_case_add_hl ADD HL,rr がZを保持し、ビット11からのキャリーでHを立てることを検証します。
    def test_add_hl(self, run):
        cpu, cycles = run(bytes([0x09]), h=0x0F, l=0xFF, b=0x00, c=0x01, f=0x80)
        state = cpu.get_state()
        assert state.hl == 0x1000
        assert state.flag_z and state.flag_h and not state.flag_c
        assert cycles == [8]

    # @intent:test_case_daa 加算後のDAAでBCD補正されることを検証します。
    def test_daa_after_add(self, run):
        cpu, _ = run(bytes([0xC6, 0x27, 0x27]), steps=2, a=0x15)  # 15 + 27 = 42 (BCD)
        assert cpu.get_state().a == 0x42

    # @intent:test_case_rla RLAはZを常にクリアすることを検証します。
    def test_rotate_accumulator_clears_zero(self, run):
        cpu, _ = run(bytes([0x17]), a=0x80)
        state = cpu.get_state()
        assert state.a == 0x00
        assert not state.flag_z
        assert state.flag_c

    # @intent:test_case_cpl CPL/SCF/CCFを検証します。
    def test_cpl_scf_ccf(self, run):
        cpu, _ = run(bytes([0x2F, 0x37, 0x3F]), steps=3, a=0x0F)
        state = cpu.get_state()
        assert state.a == 0xF0
        assert not state.flag_c
        assert not state.flag_n and not state.flag_h


class TestControlInstructions:
    # @intent:test_case_jr_taken 条件付きJRの成立時に追加サイクルが加算されることを検証します。
    def test_conditional_jr(self, run):
        cpu, cycles = run(bytes([0x20, 0x02]), f=0x00)  # JR NZ,+2
        assert cpu.get_state().pc == 0x0104
        assert cycles == [12]

        cpu, cycles = run(bytes([0x20, 0x02]), f=0x80)
        assert cpu.get_state().pc == 0x0102
        assert cycles == [8]

    # @intent:test_case_jr_back 負のオフセットによる後方分岐を検証します。
    def test_jr_backwards(self, run):
        cpu, cycles = run(bytes([0x18, 0xFE]))
        assert cpu.get_state().pc == 0x0100
        assert cycles == [12]

    # @intent:test_case_call_ret CALLとRETで戻りアドレスがスタックを経由することを検証します。
    def test_call_and_ret(self, run, flat_bus):
        flat_bus.load(0x0200, bytes([0xC9]))
        cpu, cycles = run(bytes([0xCD, 0x00, 0x02]), steps=2)
        state = cpu.get_state()
        assert state.pc == 0x0103
        assert state.sp == 0xFFFE
        assert cycles == [24, 16]

    # @intent:test_case_call_cc 条件付きCALL/RETのサイクル数を検証します。
    def test_conditional_call_and_ret(self, run, flat_bus):
        flat_bus.load(0x0200, bytes([0xD8]))  # RET C
        cpu, cycles = run(bytes([0xDC, 0x00, 0x02]), steps=2, f=0x10)  # CALL C,$0200
        assert cpu.get_state().pc == 0x0103
        assert cycles == [24, 20]

        cpu, cycles = run(bytes([0xDC, 0x00, 0x02]), f=0x00)
        assert cpu.get_state().pc == 0x0103
        assert cycles == [12]

    # @intent:test_case_jp_cc 条件付きJPのサイクル数を検証します。
    def test_conditional_jp(self, run):
        cpu, cycles = run(bytes([0xCA, 0x00, 0x30]), f=0x80)  # JP Z,$3000
        assert cpu.get_state().pc == 0x3000
        assert cycles == [16]

    # @intent:test_case_rst RSTが固定ベクタへ分岐することを検証します。
    def test_rst(self, run, flat_bus):
        cpu, cycles = run(bytes([0xEF]))  # RST $28
        state = cpu.get_state()
        assert state.pc == 0x0028
        assert flat_bus.peek(0xFFFC) == 0x01
        assert flat_bus.peek(0xFFFD) == 0x01
        assert cycles == [16]

    # @intent:test_case_jp_hl JP HLを検証します。
    def test_jp_hl(self, run):
        cpu, cycles = run(bytes([0xE9]), h=0x40, l=0x00)
        assert cpu.get_state().pc == 0x4000
        assert cycles == [4]

    # @intent:test_case_stop STOPは2バイト命令として読み飛ばされることを検証します。
    def test_stop_skips_operand(self, run):
        cpu, cycles = run(bytes([0x10, 0x00]))
        assert cpu.get_state().pc == 0x0102
        assert cycles == [4]


class TestCbInstructions:
    # @intent:test_case_bit BITがZを設定しCを保持することを検証します。
    def test_bit(self, run):
        cpu, cycles = run(bytes([0xCB, 0x7C]), h=0x7F, f=0x10)  # BIT 7,H
        state = cpu.get_state()
        assert state.flag_z and state.flag_h and state.flag_c and not state.flag_n
        assert cycles == [8]

    # @intent:test_case_set_res_hl (HL)に対するSET/RESとサイクル数を検証します。
    def test_set_res_on_memory(self, run, flat_bus):
        flat_bus.write_byte(0xC000, 0x00)
        cpu, cycles = run(bytes([0xCB, 0xC6, 0xCB, 0x86, 0xCB, 0xDE]), steps=3, h=0xC0, l=0x00)
        assert flat_bus.peek(0xC000) == 0x08
        assert cycles == [16, 16, 16]

    # @intent:test_case_swap SWAPが上位と下位のニブルを入れ替えることを検証します。
    def test_swap(self, run):
        cpu, _ = run(bytes([0xCB, 0x37]), a=0xF1)
        state = cpu.get_state()
        assert state.a == 0x1F
        assert not state.flag_z and not state.flag_c

    # @intent:test_case_srl SRLがビット0をCへ送ることを検証します。
    def test_srl(self, run):
        cpu, _ = run(bytes([0xCB, 0x38]), b=0x01)
        state = cpu.get_state()
        assert state.b == 0x00
        assert state.flag_z and state.flag_c
