"""
LR35902 0xCBプレフィックス命令（ローテート、シフト、ビット操作）の実装。
"""
from gameboy_vm.arch.lr35902.state import LR35902CpuState
from gameboy_vm.transport.bus import AddressableBus
from gameboy_vm.core.snapshot import Operation
from gameboy_vm.arch.lr35902.alu import ROTATE_SHIFT_MNEMONICS, rotate_shift8
from .base import get_register_name, get_register_value, set_register_value, read_operand_bytes

# @intent:responsibility 0xCB プレフィックス命令をデコードします。
# @intent:rationale サイクル数はプレフィックスの取得分を含みます。
def decode_cb(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """CBプレフィックス命令をデコードします。"""
    operand_bytes = read_operand_bytes(bus, pc, 1)
    cb_opcode = operand_bytes[0]

    reg_name = get_register_name(cb_opcode & 0b111)
    type_code = (cb_opcode >> 6) & 0b11
    bit_index = (cb_opcode >> 3) & 0b111
    is_hl = reg_name == "(HL)"

    if type_code == 0b01: # BIT b, r
        mnemonic = f"BIT {bit_index},{reg_name}"
        cycles = 12 if is_hl else 8
    elif type_code == 0b10: # RES b, r
        mnemonic = f"RES {bit_index},{reg_name}"
        cycles = 16 if is_hl else 8
    elif type_code == 0b11: # SET b, r
        mnemonic = f"SET {bit_index},{reg_name}"
        cycles = 16 if is_hl else 8
    else: # 0b00: Shift/Rotate
        mnemonic = f"{ROTATE_SHIFT_MNEMONICS[bit_index]} {reg_name}"
        cycles = 16 if is_hl else 8

    return Operation(
        opcode_hex="CB",
        mnemonic=mnemonic,
        operand_bytes=operand_bytes,
        cycle_count=cycles,
        length=2
    )

def execute_cb(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    cb_opcode = operation.operand_bytes[0]
    reg_name = get_register_name(cb_opcode & 0b111)
    type_code = (cb_opcode >> 6) & 0b11
    bit_index = (cb_opcode >> 3) & 0b111

    value = get_register_value(state, bus, reg_name)

    if type_code == 0b01: # BIT: Cは保持
        state.flag_z = not (value >> bit_index) & 1
        state.flag_n = False
        state.flag_h = True
    elif type_code == 0b10: # RES
        set_register_value(state, bus, reg_name, value & ~(1 << bit_index))
    elif type_code == 0b11: # SET
        set_register_value(state, bus, reg_name, value | (1 << bit_index))
    else:
        set_register_value(state, bus, reg_name, rotate_shift8(state, bit_index, value))
