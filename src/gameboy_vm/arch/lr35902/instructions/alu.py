"""
LR35902 算術論理演算 (ALU) 命令の実装。
"""
from gameboy_vm.arch.lr35902.state import LR35902CpuState
from gameboy_vm.transport.bus import AddressableBus
from gameboy_vm.core.snapshot import Operation
from gameboy_vm.arch.lr35902.alu import (
    add8, sub8, update_flags_logic8, inc8, dec8, add16, add_sp_signed,
    rotate_shift8, daa
)
from .base import (
    get_register_name, get_register_value, set_register_value, get_ss_reg_name,
    read_operand_bytes, signed8
)

# @intent:constant 0x80-0xBF / 即値ALU命令の演算種別（オペコードbit5-3の順）。
ALU_OPERATIONS = ("ADD A,", "ADC A,", "SUB ", "SBC A,", "AND ", "XOR ", "OR ", "CP ")

# @intent:constant A専用ローテート命令 (0x07, 0x0F, 0x17, 0x1F) の名前と rotate_shift8 の種別。
ACCUMULATOR_ROTATES = {0x07: ("RLCA", 0), 0x0F: ("RRCA", 1), 0x17: ("RLA", 2), 0x1F: ("RRA", 3)}

# @intent:utility_function 演算種別に従ってAとオペランドを演算し、Aを更新します。
def _apply_alu(state: LR35902CpuState, op_type: int, value: int) -> None:
    carry = 1 if state.flag_c else 0
    if op_type == 0:
        state.a = add8(state, state.a, value)
    elif op_type == 1:
        state.a = add8(state, state.a, value, carry)
    elif op_type == 2:
        state.a = sub8(state, state.a, value)
    elif op_type == 3:
        state.a = sub8(state, state.a, value, carry)
    elif op_type == 4:
        state.a = update_flags_logic8(state, state.a & value, h_flag=True)
    elif op_type == 5:
        state.a = update_flags_logic8(state, state.a ^ value)
    elif op_type == 6:
        state.a = update_flags_logic8(state, state.a | value)
    else:
        # CPは結果を捨ててフラグのみ更新する
        sub8(state, state.a, value)

# --- Decoding Functions ---

# @intent:responsibility ADD/ADC/SUB/SBC/AND/XOR/OR/CP r 形式の命令をデコードします。
def decode_alu_r(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """0x80-0xBFのレジスタ間ALU命令をデコードします。"""
    src_reg_name = get_register_name(opcode & 0b111)
    op_name = ALU_OPERATIONS[(opcode >> 3) & 0b111]
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=f"{op_name}{src_reg_name}",
        cycle_count=4 if src_reg_name != "(HL)" else 8,
        length=1
    )

# @intent:responsibility ADD/ADC/SUB/SBC/AND/XOR/OR/CP n 形式の命令をデコードします。
def decode_alu_n(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """即値オペランドを取るALU命令をデコードします。"""
    operand_bytes = read_operand_bytes(bus, pc, 1)
    op_name = ALU_OPERATIONS[(opcode >> 3) & 0b111]
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=f"{op_name}n",
        operands=[f"${operand_bytes[0]:02X}"],
        operand_bytes=operand_bytes,
        cycle_count=8,
        length=2
    )

# @intent:responsibility INC r / DEC r 形式の命令をデコードします。
def decode_inc_dec8(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """8ビットのINC/DEC命令をデコードします。"""
    reg_name = get_register_name((opcode >> 3) & 0b111)
    is_inc = (opcode & 1) == 0
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=f"{'INC' if is_inc else 'DEC'} {reg_name}",
        cycle_count=4 if reg_name != "(HL)" else 12,
        length=1
    )

# @intent:responsibility INC rr / DEC rr 形式の命令をデコードします。
def decode_inc_dec16(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    ss_name = get_ss_reg_name((opcode >> 4) & 0b11)
    is_inc = (opcode & 0x0F) == 0x03
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=f"{'INC' if is_inc else 'DEC'} {ss_name}",
        cycle_count=8,
        length=1
    )

# @intent:responsibility ADD HL,rr 形式の命令をデコードします。
def decode_add_hl_ss(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """ADD HL,rr命令をデコードします。"""
    ss_name = get_ss_reg_name((opcode >> 4) & 0b11)
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=f"ADD HL,{ss_name}",
        cycle_count=8,
        length=1
    )

def decode_e8(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """ADD SP,e 命令をデコードします。"""
    operand_bytes = read_operand_bytes(bus, pc, 1)
    return Operation(
        opcode_hex="E8",
        mnemonic="ADD SP,e",
        operands=[f"{signed8(operand_bytes[0]):+d}"],
        operand_bytes=operand_bytes,
        cycle_count=16,
        length=2
    )

# @intent:responsibility DAA/CPL/SCF/CCF をデコードします。
def decode_accumulator_misc(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    mnemonic = {0x27: "DAA", 0x2F: "CPL", 0x37: "SCF", 0x3F: "CCF"}[opcode]
    return Operation(opcode_hex=f"{opcode:02X}", mnemonic=mnemonic, cycle_count=4, length=1)

# @intent:responsibility RLCA/RRCA/RLA/RRA をデコードします。
def decode_rotate_a(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    mnemonic, _ = ACCUMULATOR_ROTATES[opcode]
    return Operation(opcode_hex=f"{opcode:02X}", mnemonic=mnemonic, cycle_count=4, length=1)

# --- Execution Functions ---

def execute_alu_r(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    opcode = int(operation.opcode_hex, 16)
    value = get_register_value(state, bus, get_register_name(opcode & 0b111))
    _apply_alu(state, (opcode >> 3) & 0b111, value)

def execute_alu_n(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    opcode = int(operation.opcode_hex, 16)
    _apply_alu(state, (opcode >> 3) & 0b111, operation.operand_bytes[0])

def execute_inc_dec8(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    opcode = int(operation.opcode_hex, 16)
    reg_name = get_register_name((opcode >> 3) & 0b111)
    value = get_register_value(state, bus, reg_name)
    result = inc8(state, value) if (opcode & 1) == 0 else dec8(state, value)
    set_register_value(state, bus, reg_name, result)

def execute_inc_dec16(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    opcode = int(operation.opcode_hex, 16)
    ss_name = get_ss_reg_name((opcode >> 4) & 0b11).lower()
    delta = 1 if (opcode & 0x0F) == 0x03 else -1
    setattr(state, ss_name, (getattr(state, ss_name) + delta) & 0xFFFF)

def execute_add_hl_ss(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    opcode = int(operation.opcode_hex, 16)
    ss_name = get_ss_reg_name((opcode >> 4) & 0b11).lower()
    state.hl = add16(state, state.hl, getattr(state, ss_name))

def execute_e8(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    state.sp = add_sp_signed(state, state.sp, operation.operand_bytes[0])

def execute_accumulator_misc(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    opcode = int(operation.opcode_hex, 16)
    if opcode == 0x27:
        daa(state)
    elif opcode == 0x2F:
        state.a = (~state.a) & 0xFF
        state.flag_n = True
        state.flag_h = True
    elif opcode == 0x37:
        state.flag_n = False
        state.flag_h = False
        state.flag_c = True
    else:
        state.flag_n = False
        state.flag_h = False
        state.flag_c = not state.flag_c

def execute_rotate_a(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    _, kind = ACCUMULATOR_ROTATES[int(operation.opcode_hex, 16)]
    state.a = rotate_shift8(state, kind, state.a)
    # A専用ローテートはZを常にクリアする
    state.flag_z = False
