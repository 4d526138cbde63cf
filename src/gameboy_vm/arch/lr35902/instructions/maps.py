"""
LR35902 命令マッピング定義。
各命令モジュールから関数をインポートし、オペコードと関数の対応表を構築します。
"""
from .alu import (
    decode_alu_r, decode_alu_n, decode_inc_dec8, decode_inc_dec16, decode_add_hl_ss, decode_e8,
    decode_accumulator_misc, decode_rotate_a,
    execute_alu_r, execute_alu_n, execute_inc_dec8, execute_inc_dec16, execute_add_hl_ss, execute_e8,
    execute_accumulator_misc, execute_rotate_a
)
from .load import (
    decode_push_pop, decode_ld_ss_nn, decode_ld_r_n, decode_ld_r_r_prime, decode_ld_indirect_a,
    decode_ld_a_indirect, decode_08, decode_ldh, decode_ld_c_indirect, decode_ld_nn_a, decode_f8, decode_f9,
    execute_push_pop, execute_ld_ss_nn, execute_ld_r_n, execute_ld_r_r_prime, execute_ld_indirect_a,
    execute_ld_a_indirect, execute_08, execute_ldh, execute_ld_c_indirect, execute_ld_nn_a, execute_f8, execute_f9
)
from .control import (
    decode_00, decode_10, decode_76, decode_f3, decode_fb, decode_18, decode_jr_cc_e, decode_c3,
    decode_jp_cc_nn, decode_e9, decode_cd, decode_call_cc_nn, decode_ret, decode_ret_cc, decode_rst,
    execute_00, execute_10, execute_76, execute_f3, execute_fb, execute_18, execute_jr_cc_e, execute_c3,
    execute_jp_cc_nn, execute_e9, execute_cd, execute_call_cc_nn, execute_ret, execute_ret_cc, execute_rst
)
from .bitops import decode_cb, execute_cb

# @intent:constant LR35902に存在しない（実行するとCPUが停止する）オペコード。
ILLEGAL_OPCODES = frozenset({0xD3, 0xDB, 0xDD, 0xE3, 0xE4, 0xEB, 0xEC, 0xED, 0xF4, 0xFC, 0xFD})

DECODE_MAP = {
    0x00: decode_00,
    0x08: decode_08,
    0x10: decode_10,
    0x18: decode_18,
    0x76: decode_76,
    0xC3: decode_c3,
    0xC9: decode_ret,
    0xCB: decode_cb,
    0xCD: decode_cd,
    0xD9: decode_ret,
    0xE0: decode_ldh,
    0xF0: decode_ldh,
    0xE2: decode_ld_c_indirect,
    0xF2: decode_ld_c_indirect,
    0xE8: decode_e8,
    0xE9: decode_e9,
    0xEA: decode_ld_nn_a,
    0xFA: decode_ld_nn_a,
    0xF3: decode_f3,
    0xF8: decode_f8,
    0xF9: decode_f9,
    0xFB: decode_fb,
    **{op: decode_accumulator_misc for op in (0x27, 0x2F, 0x37, 0x3F)}, # DAA, CPL, SCF, CCF
    **{op: decode_rotate_a for op in (0x07, 0x0F, 0x17, 0x1F)}, # RLCA, RRCA, RLA, RRA
    **{op: decode_ld_ss_nn for op in range(0x01, 0x40, 0x10)}, # LD BC/DE/HL/SP, nn
    **{op: decode_ld_indirect_a for op in range(0x02, 0x40, 0x10)}, # LD (BC)/(DE)/(HL+)/(HL-),A
    **{op: decode_ld_a_indirect for op in range(0x0A, 0x40, 0x10)}, # LD A,(BC)/(DE)/(HL+)/(HL-)
    **{op: decode_inc_dec16 for op in range(0x03, 0x40, 0x10)}, # INC rr
    **{op: decode_inc_dec16 for op in range(0x0B, 0x40, 0x10)}, # DEC rr
    **{op: decode_add_hl_ss for op in range(0x09, 0x40, 0x10)}, # ADD HL,rr
    **{op: decode_ld_r_n for op in range(0x06, 0x40, 0x08)}, # LD r,n
    **{op: decode_inc_dec8 for op in range(0x04, 0x40, 0x08)}, # INC r
    **{op: decode_inc_dec8 for op in range(0x05, 0x40, 0x08)}, # DEC r
    **{op: decode_jr_cc_e for op in range(0x20, 0x40, 0x08)},
    **{op: decode_ld_r_r_prime for op in range(0x40, 0x80) if op != 0x76},
    **{op: decode_alu_r for op in range(0x80, 0xC0)},
    **{op: decode_alu_n for op in range(0xC6, 0x100, 0x08)},
    **{op: decode_ret_cc for op in range(0xC0, 0xE0, 0x08)},
    **{op: decode_jp_cc_nn for op in range(0xC2, 0xE0, 0x08)},
    **{op: decode_call_cc_nn for op in range(0xC4, 0xE0, 0x08)},
    **{op: decode_rst for op in range(0xC7, 0x100, 0x08)},
    **{op: decode_push_pop for op in range(0xC5, 0x100, 0x10)}, # PUSH qq
    **{op: decode_push_pop for op in range(0xC1, 0x100, 0x10)}, # POP qq
}

EXECUTE_MAP = {
    0x00: execute_00,
    0x08: execute_08,
    0x10: execute_10,
    0x18: execute_18,
    0x76: execute_76,
    0xC3: execute_c3,
    0xC9: execute_ret,
    0xCB: execute_cb,
    0xCD: execute_cd,
    0xD9: execute_ret,
    0xE0: execute_ldh,
    0xF0: execute_ldh,
    0xE2: execute_ld_c_indirect,
    0xF2: execute_ld_c_indirect,
    0xE8: execute_e8,
    0xE9: execute_e9,
    0xEA: execute_ld_nn_a,
    0xFA: execute_ld_nn_a,
    0xF3: execute_f3,
    0xF8: execute_f8,
    0xF9: execute_f9,
    0xFB: execute_fb,
    **{op: execute_accumulator_misc for op in (0x27, 0x2F, 0x37, 0x3F)},
    **{op: execute_rotate_a for op in (0x07, 0x0F, 0x17, 0x1F)},
    **{op: execute_ld_ss_nn for op in range(0x01, 0x40, 0x10)},
    **{op: execute_ld_indirect_a for op in range(0x02, 0x40, 0x10)},
    **{op: execute_ld_a_indirect for op in range(0x0A, 0x40, 0x10)},
    **{op: execute_inc_dec16 for op in range(0x03, 0x40, 0x10)},
    **{op: execute_inc_dec16 for op in range(0x0B, 0x40, 0x10)},
    **{op: execute_add_hl_ss for op in range(0x09, 0x40, 0x10)},
    **{op: execute_ld_r_n for op in range(0x06, 0x40, 0x08)},
    **{op: execute_inc_dec8 for op in range(0x04, 0x40, 0x08)},
    **{op: execute_inc_dec8 for op in range(0x05, 0x40, 0x08)},
    **{op: execute_jr_cc_e for op in range(0x20, 0x40, 0x08)},
    **{op: execute_ld_r_r_prime for op in range(0x40, 0x80) if op != 0x76},
    **{op: execute_alu_r for op in range(0x80, 0xC0)},
    **{op: execute_alu_n for op in range(0xC6, 0x100, 0x08)},
    **{op: execute_ret_cc for op in range(0xC0, 0xE0, 0x08)},
    **{op: execute_jp_cc_nn for op in range(0xC2, 0xE0, 0x08)},
    **{op: execute_call_cc_nn for op in range(0xC4, 0xE0, 0x08)},
    **{op: execute_rst for op in range(0xC7, 0x100, 0x08)},
    **{op: execute_push_pop for op in range(0xC5, 0x100, 0x10)},
    **{op: execute_push_pop for op in range(0xC1, 0x100, 0x10)},
}
