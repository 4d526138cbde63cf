"""
LR35902 ALU (算術論理演算ユニット) およびフラグ操作ユーティリティ。

演算結果に基づいた正確なフラグ（Z, N, H, C）の計算と更新を担当します。
各関数は演算結果を返し、レジスタへの書き戻しは呼び出し側が行います。
"""
from gameboy_vm.arch.lr35902.state import LR35902CpuState

# @intent:responsibility 8ビット加算(ADD/ADC)を行い、全フラグを更新します。
def add8(state: LR35902CpuState, val1: int, val2: int, carry_in: int = 0) -> int:
    result = val1 + val2 + carry_in
    res8 = result & 0xFF
    state.set_flags(
        z=res8 == 0,
        n=False,
        h=((val1 & 0x0F) + (val2 & 0x0F) + carry_in) > 0x0F,
        c=result > 0xFF,
    )
    return res8

# @intent:responsibility 8ビット減算(SUB/SBC/CP)を行い、全フラグを更新します。
def sub8(state: LR35902CpuState, val1: int, val2: int, borrow_in: int = 0) -> int:
    result = val1 - val2 - borrow_in
    res8 = result & 0xFF
    state.set_flags(
        z=res8 == 0,
        n=True,
        h=((val1 & 0x0F) - (val2 & 0x0F) - borrow_in) < 0,
        c=result < 0,
    )
    return res8

# @intent:responsibility 8ビット論理演算の結果に基づいてフラグを更新します。
def update_flags_logic8(state: LR35902CpuState, result: int, h_flag: bool = False) -> int:
    """AND/OR/XOR命令のフラグを更新します。HはANDのみTrue。"""
    res8 = result & 0xFF
    state.set_flags(z=res8 == 0, n=False, h=h_flag, c=False)
    return res8

# @intent:responsibility INC r のフラグを更新します（Cフラグは変化しません）。
def inc8(state: LR35902CpuState, val: int) -> int:
    res8 = (val + 1) & 0xFF
    state.flag_z = res8 == 0
    state.flag_n = False
    state.flag_h = (val & 0x0F) == 0x0F
    return res8

# @intent:responsibility DEC r のフラグを更新します（Cフラグは変化しません）。
def dec8(state: LR35902CpuState, val: int) -> int:
    res8 = (val - 1) & 0xFF
    state.flag_z = res8 == 0
    state.flag_n = True
    state.flag_h = (val & 0x0F) == 0x00
    return res8

# @intent:responsibility 16ビット加算(ADD HL,rr)を行います。
# @intent:rationale Zフラグは影響を受けないことに注意してください。
def add16(state: LR35902CpuState, val1: int, val2: int) -> int:
    result = val1 + val2
    state.flag_n = False
    # Half Carry: Bit 11から12へのキャリー
    state.flag_h = ((val1 & 0x0FFF) + (val2 & 0x0FFF)) > 0x0FFF
    state.flag_c = result > 0xFFFF
    return result & 0xFFFF

# @intent:responsibility SPに符号付き8ビット値を加算した値を返します (ADD SP,e / LD HL,SP+e)。
# @intent:rationale H/Cは下位バイトの符号なし加算から算出し、Z/Nは常にクリアされます。
def add_sp_signed(state: LR35902CpuState, sp: int, offset_byte: int) -> int:
    offset = offset_byte - 0x100 if offset_byte >= 0x80 else offset_byte
    state.set_flags(
        z=False,
        n=False,
        h=((sp & 0x0F) + (offset_byte & 0x0F)) > 0x0F,
        c=((sp & 0xFF) + offset_byte) > 0xFF,
    )
    return (sp + offset) & 0xFFFF

# @intent:constant CB 0x00-0x3F のローテート/シフト命令のニーモニック（オペコードbit5-3の順）。
ROTATE_SHIFT_MNEMONICS = ("RLC", "RRC", "RL", "RR", "SLA", "SRA", "SWAP", "SRL")

# @intent:responsibility ローテート/シフト演算を行い、全フラグを更新します。
def rotate_shift8(state: LR35902CpuState, kind: int, val: int) -> int:
    """
    kindはROTATE_SHIFT_MNEMONICSのインデックス。
    SWAP以外はシフトアウトされたビットがCフラグに入ります。
    """
    carry_in = 1 if state.flag_c else 0
    if kind == 0:   # RLC
        carry = val >> 7
        result = ((val << 1) | carry) & 0xFF
    elif kind == 1: # RRC
        carry = val & 1
        result = ((val >> 1) | (carry << 7)) & 0xFF
    elif kind == 2: # RL
        carry = val >> 7
        result = ((val << 1) | carry_in) & 0xFF
    elif kind == 3: # RR
        carry = val & 1
        result = ((val >> 1) | (carry_in << 7)) & 0xFF
    elif kind == 4: # SLA
        carry = val >> 7
        result = (val << 1) & 0xFF
    elif kind == 5: # SRA
        carry = val & 1
        result = ((val >> 1) | (val & 0x80)) & 0xFF
    elif kind == 6: # SWAP
        carry = 0
        result = ((val & 0x0F) << 4) | (val >> 4)
    else:           # SRL
        carry = val & 1
        result = val >> 1
    state.set_flags(z=result == 0, n=False, h=False, c=bool(carry))
    return result

# @intent:responsibility 直前の加減算結果をBCDに補正します (DAA)。
def daa(state: LR35902CpuState) -> None:
    a = state.a
    correction = 0
    carry = state.flag_c
    if state.flag_h or (not state.flag_n and (a & 0x0F) > 0x09):
        correction |= 0x06
    if carry or (not state.flag_n and a > 0x99):
        correction |= 0x60
        carry = True
    if state.flag_n:
        a = (a - correction) & 0xFF
    else:
        a = (a + correction) & 0xFF
    state.a = a
    state.flag_z = a == 0
    state.flag_h = False
    state.flag_c = carry
