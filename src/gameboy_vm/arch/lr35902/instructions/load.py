"""
LR35902 データ転送命令の実装。
"""
from gameboy_vm.arch.lr35902.state import LR35902CpuState
from gameboy_vm.transport.bus import AddressableBus
from gameboy_vm.core.snapshot import Operation
from gameboy_vm.arch.lr35902.alu import add_sp_signed
from .base import (
    get_register_name, get_register_value, set_register_value,
    get_push_pop_reg_name, get_ss_reg_name, read_operand_bytes, word, signed8,
    push16, pop16
)

# @intent:constant LD (rr),A / LD A,(rr) で使用するアドレス指定（オペコードbit5-4の順）。
INDIRECT_NAMES = ("(BC)", "(DE)", "(HL+)", "(HL-)")

# --- Decoding Functions ---

def decode_push_pop(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """PUSH/POP命令をデコードします。"""
    reg_name = get_push_pop_reg_name((opcode >> 4) & 0b11)
    is_push = (opcode & 0x0F) == 0x05
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=f"{'PUSH' if is_push else 'POP'} {reg_name}",
        cycle_count=16 if is_push else 12,
        length=1
    )

# @intent:responsibility LD rr,nn 形式の命令をデコードします。
def decode_ld_ss_nn(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """LD rr,nn命令をデコードします。"""
    ss_name = get_ss_reg_name((opcode >> 4) & 0b11)
    operand_bytes = read_operand_bytes(bus, pc, 2)
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=f"LD {ss_name},nn",
        operands=[f"${word(operand_bytes):04X}"],
        operand_bytes=operand_bytes,
        cycle_count=12,
        length=3
    )

# @intent:responsibility LD r,n 形式の命令をデコードします。
def decode_ld_r_n(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """LD r,n命令をデコードします。"""
    reg_name = get_register_name((opcode >> 3) & 0b111)
    operand_bytes = read_operand_bytes(bus, pc, 1)
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=f"LD {reg_name},n",
        operands=[f"${operand_bytes[0]:02X}"],
        operand_bytes=operand_bytes,
        cycle_count=8 if reg_name != "(HL)" else 12,
        length=2
    )

# @intent:responsibility LD r,r'形式の命令をデコードします。
def decode_ld_r_r_prime(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """汎用的なLD r,r'命令をデコードします。"""
    dest_reg_name = get_register_name((opcode >> 3) & 0b111)
    src_reg_name = get_register_name(opcode & 0b111)
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=f"LD {dest_reg_name},{src_reg_name}",
        cycle_count=4 if "(HL)" not in (dest_reg_name, src_reg_name) else 8,
        length=1
    )

# @intent:responsibility LD (rr),A / LD (HL+/-),A をデコードします。
def decode_ld_indirect_a(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    target = INDIRECT_NAMES[(opcode >> 4) & 0b11]
    return Operation(opcode_hex=f"{opcode:02X}", mnemonic=f"LD {target},A", cycle_count=8, length=1)

# @intent:responsibility LD A,(rr) / LD A,(HL+/-) をデコードします。
def decode_ld_a_indirect(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    source = INDIRECT_NAMES[(opcode >> 4) & 0b11]
    return Operation(opcode_hex=f"{opcode:02X}", mnemonic=f"LD A,{source}", cycle_count=8, length=1)

def decode_08(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """LD (nn),SP 命令をデコードします。"""
    operand_bytes = read_operand_bytes(bus, pc, 2)
    return Operation(
        opcode_hex="08",
        mnemonic="LD (nn),SP",
        operands=[f"(${word(operand_bytes):04X})"],
        operand_bytes=operand_bytes,
        cycle_count=20,
        length=3
    )

def decode_ldh(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """LDH (n),A / LDH A,(n) 命令をデコードします。"""
    operand_bytes = read_operand_bytes(bus, pc, 1)
    mnemonic = "LDH (n),A" if opcode == 0xE0 else "LDH A,(n)"
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=mnemonic,
        operands=[f"($FF{operand_bytes[0]:02X})"],
        operand_bytes=operand_bytes,
        cycle_count=12,
        length=2
    )

def decode_ld_c_indirect(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """LD ($FF00+C),A / LD A,($FF00+C) 命令をデコードします。"""
    mnemonic = "LD (C),A" if opcode == 0xE2 else "LD A,(C)"
    return Operation(opcode_hex=f"{opcode:02X}", mnemonic=mnemonic, cycle_count=8, length=1)

def decode_ld_nn_a(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """LD (nn),A / LD A,(nn) 命令をデコードします。"""
    operand_bytes = read_operand_bytes(bus, pc, 2)
    mnemonic = "LD (nn),A" if opcode == 0xEA else "LD A,(nn)"
    return Operation(
        opcode_hex=f"{opcode:02X}",
        mnemonic=mnemonic,
        operands=[f"(${word(operand_bytes):04X})"],
        operand_bytes=operand_bytes,
        cycle_count=16,
        length=3
    )

def decode_f8(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """LD HL,SP+e 命令をデコードします。"""
    operand_bytes = read_operand_bytes(bus, pc, 1)
    return Operation(
        opcode_hex="F8",
        mnemonic="LD HL,SP+e",
        operands=[f"{signed8(operand_bytes[0]):+d}"],
        operand_bytes=operand_bytes,
        cycle_count=12,
        length=2
    )

def decode_f9(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """LD SP,HL 命令をデコードします。"""
    return Operation(opcode_hex="F9", mnemonic="LD SP,HL", cycle_count=8, length=1)

# --- Execution Functions ---

def execute_push_pop(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    opcode = int(operation.opcode_hex, 16)
    reg_name = get_push_pop_reg_name((opcode >> 4) & 0b11).lower()
    if (opcode & 0x0F) == 0x05:
        push16(state, bus, getattr(state, reg_name))
    else:
        setattr(state, reg_name, pop16(state, bus))

def execute_ld_ss_nn(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    opcode = int(operation.opcode_hex, 16)
    ss_name = get_ss_reg_name((opcode >> 4) & 0b11).lower()
    setattr(state, ss_name, word(operation.operand_bytes))

def execute_ld_r_n(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    opcode = int(operation.opcode_hex, 16)
    reg_name = get_register_name((opcode >> 3) & 0b111)
    set_register_value(state, bus, reg_name, operation.operand_bytes[0])

def execute_ld_r_r_prime(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    opcode = int(operation.opcode_hex, 16)
    dest_reg_name = get_register_name((opcode >> 3) & 0b111)
    src_reg_name = get_register_name(opcode & 0b111)
    value = get_register_value(state, bus, src_reg_name)
    set_register_value(state, bus, dest_reg_name, value)

# @intent:utility_function (rr) / (HL+) / (HL-) のアドレスを求め、HLの後処理を行います。
def _indirect_address(state: LR35902CpuState, mode: int) -> int:
    if mode == 0:
        return state.bc
    if mode == 1:
        return state.de
    address = state.hl
    state.hl = (address + 1) & 0xFFFF if mode == 2 else (address - 1) & 0xFFFF
    return address

def execute_ld_indirect_a(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    mode = (int(operation.opcode_hex, 16) >> 4) & 0b11
    bus.write_byte(_indirect_address(state, mode), state.a)

def execute_ld_a_indirect(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    mode = (int(operation.opcode_hex, 16) >> 4) & 0b11
    state.a = bus.read_byte(_indirect_address(state, mode))

def execute_08(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    address = word(operation.operand_bytes)
    bus.write_byte(address, state.sp & 0xFF)
    bus.write_byte((address + 1) & 0xFFFF, (state.sp >> 8) & 0xFF)

def execute_ldh(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    address = 0xFF00 | operation.operand_bytes[0]
    if operation.opcode_hex == "E0":
        bus.write_byte(address, state.a)
    else:
        state.a = bus.read_byte(address)

def execute_ld_c_indirect(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    address = 0xFF00 | state.c
    if operation.opcode_hex == "E2":
        bus.write_byte(address, state.a)
    else:
        state.a = bus.read_byte(address)

def execute_ld_nn_a(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    address = word(operation.operand_bytes)
    if operation.opcode_hex == "EA":
        bus.write_byte(address, state.a)
    else:
        state.a = bus.read_byte(address)

def execute_f8(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    state.hl = add_sp_signed(state, state.sp, operation.operand_bytes[0])

def execute_f9(state: LR35902CpuState, bus: AddressableBus, operation: Operation) -> None:
    state.sp = state.hl
