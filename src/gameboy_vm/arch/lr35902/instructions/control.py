"""
LR35902 制御命令（分岐、呼び出し、割り込み制御、システム制御）の実装。

条件付き分岐命令のOperation.cycle_countは分岐不成立時の値です。
分岐が成立した場合、実行関数が追加サイクル数を返します。
"""
from typing import Optional

from gameboy_vm.arch.lr35902.state import LR35902CpuState
from gameboy_vm.transport.bus import AddressableBus
from gameboy_vm.core.snapshot import Operation
from .base import (
    CONDITION_CODES, condition_met, read_operand_bytes, word, signed8, push16, pop16
)

# @intent:constant 条件成立時に加算されるサイクル数。
JR_TAKEN_EXTRA = 4
JP_TAKEN_EXTRA = 4
CALL_TAKEN_EXTRA = 12
RET_TAKEN_EXTRA = 12

# --- Decoding Functions ---

def decode_00(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """NOP命令をデコードします。"""
    return Operation(opcode_hex="00", mnemonic="NOP", cycle_count=4, length=1)

# @intent:responsibility オペコード0x10 (STOP) をデコードします。後続の1バイトは読み飛ばされます。
def decode_10(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    return Operation(opcode_hex="10", mnemonic="STOP", cycle_count=4, length=2)

# @intent:responsibility オペコード0x76 (HALT)をデコードします。
def decode_76(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """HALT命令をデコードします。"""
    return Operation(opcode_hex="76", mnemonic="HALT", cycle_count=4, length=1)

# @intent:responsibility オペコード0xF3 (DI) をデコードします。
def decode_f3(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """DI命令をデコードします。"""
    return Operation(opcode_hex="F3", mnemonic="DI", cycle_count=4, length=1)

# @intent:responsibility オペコード0xFB (EI) をデコードします。
def decode_fb(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """EI命令をデコードします。"""
    return Operation(opcode_hex="FB", mnemonic="EI", cycle_count=4, length=1)

# @intent:responsibility オペコード0x18 (JR e) をデコードします。
def decode_18(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """JR e命令をデコードします。"""
    operand_bytes = read_operand_bytes(bus, pc, 1)
    target = (pc + 2 + signed8(operand_bytes[0])) & 0xFFFF
    return Operation(
        opcode_hex="18",
        mnemonic="JR e",
        operands=[f"${target:04X}"],
        operand_bytes=operand_bytes,
        cycle_count=12,
        length=2
    )

# @intent:responsibility JR cc,e 形式の命令をデコードします。
def decode_jr_cc_e(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """条件付き相対ジャンプ命令をデコードします。"""
    cc = CONDITION_CODES[(opcode >> 3) & 0b11]
    operand_bytes = read_operand_bytes(bus, pc, 1)
    target = (pc + 2 + signed8(operand_bytes[0])) & 0xFFFF
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=f"JR {cc},e",
        operands=[f"${target:04X}"],
        operand_bytes=operand_bytes,
        cycle_count=8,
        length=2
    )

# @intent:responsibility オペコード0xC3 (JP nn) をデコードします。
def decode_c3(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """JP nn命令をデコードします。"""
    operand_bytes = read_operand_bytes(bus, pc, 2)
    return Operation(
        opcode_hex="C3",
        mnemonic="JP nn",
        operands=[f"${word(operand_bytes):04X}"],
        operand_bytes=operand_bytes,
        cycle_count=16,
        length=3
    )

def decode_jp_cc_nn(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """条件付き絶対ジャンプ命令をデコードします。"""
    cc = CONDITION_CODES[(opcode >> 3) & 0b11]
    operand_bytes = read_operand_bytes(bus, pc, 2)
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=f"JP {cc},nn",
        operands=[f"${word(operand_bytes):04X}"],
        operand_bytes=operand_bytes,
        cycle_count=12,
        length=3
    )

def decode_e9(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """JP HL命令をデコードします。"""
    return Operation(opcode_hex="E9", mnemonic="JP HL", cycle_count=4, length=1)

# @intent:responsibility オペコード0xCD (CALL nn) をデコードします。
def decode_cd(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """CALL nn命令をデコードします。"""
    operand_bytes = read_operand_bytes(bus, pc, 2)
    return Operation(
        opcode_hex="CD",
        mnemonic="CALL nn",
        operands=[f"${word(operand_bytes):04X}"],
        operand_bytes=operand_bytes,
        cycle_count=24,
        length=3
    )

def decode_call_cc_nn(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """条件付きCALL命令をデコードします。"""
    cc = CONDITION_CODES[(opcode >> 3) & 0b11]
    operand_bytes = read_operand_bytes(bus, pc, 2)
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=f"CALL {cc},nn",
        operands=[f"${word(operand_bytes):04X}"],
        operand_bytes=operand_bytes,
        cycle_count=12,
        length=3
    )

# @intent:responsibility オペコード0xC9 (RET) と 0xD9 (RETI) をデコードします。
def decode_ret(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """RET / RETI命令をデコードします。"""
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic="RET" if opcode == 0xC9 else "RETI",
        cycle_count=16,
        length=1
    )

def decode_ret_cc(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """条件付きRET命令をデコードします。"""
    cc = CONDITION_CODES[(opcode >> 3) & 0b11]
    return Operation(opcode_hex=f"{opcode:02X}", mnemonic=f"RET {cc}", cycle_count=8, length=1)

# @intent:responsibility RST n 形式の命令をデコードします。
def decode_rst(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    target = opcode & 0x38
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic="RST",
        operands=[f"${target:02X}"],
        cycle_count=16,
        length=1
    )

# --- Execution Functions ---

def execute_00(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    # Intentional: NOP (No Operation)
    pass

def execute_10(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    # 低消費電力モードは扱わない。命令長分進むだけのNOPとして振る舞う
    pass

def execute_76(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    # @intent:responsibility CPUをHALT（停止）状態にします。割り込みが要求されるまで停止し続けます。
    state.halted = True

def execute_f3(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    state.ime = False
    state.ime_pending = False

def execute_fb(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    # IMEは次の命令の完了後に有効になる
    state.ime_pending = True

def execute_18(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    state.pc = (state.pc + signed8(operation.operand_bytes[0])) & 0xFFFF

def execute_jr_cc_e(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> Optional[int]:
    cc = CONDITION_CODES[(int(operation.opcode_hex, 16) >> 3) & 0b11]
    if condition_met(state, cc):
        state.pc = (state.pc + signed8(operation.operand_bytes[0])) & 0xFFFF
        return JR_TAKEN_EXTRA
    return None

def execute_c3(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    state.pc = word(operation.operand_bytes)

def execute_jp_cc_nn(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> Optional[int]:
    cc = CONDITION_CODES[(int(operation.opcode_hex, 16) >> 3) & 0b11]
    if condition_met(state, cc):
        state.pc = word(operation.operand_bytes)
        return JP_TAKEN_EXTRA
    return None

def execute_e9(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    state.pc = state.hl

def execute_cd(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    # CALL nn: PCは既に次の命令を指している（step内で命令長が加算済み）
    push16(state, bus, state.pc)
    state.pc = word(operation.operand_bytes)

def execute_call_cc_nn(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> Optional[int]:
    cc = CONDITION_CODES[(int(operation.opcode_hex, 16) >> 3) & 0b11]
    if condition_met(state, cc):
        push16(state, bus, state.pc)
        state.pc = word(operation.operand_bytes)
        return CALL_TAKEN_EXTRA
    return None

def execute_ret(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    state.pc = pop16(state, bus)
    if operation.opcode_hex == "D9":
        # RETIは遅延なしでIMEを有効にする
        state.ime = True

def execute_ret_cc(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> Optional[int]:
    cc = CONDITION_CODES[(int(operation.opcode_hex, 16) >> 3) & 0b11]
    if condition_met(state, cc):
        state.pc = pop16(state, bus)
        return RET_TAKEN_EXTRA
    return None

def execute_rst(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    push16(state, bus, state.pc)
    state.pc = int(operation.opcode_hex, 16) & 0x38
