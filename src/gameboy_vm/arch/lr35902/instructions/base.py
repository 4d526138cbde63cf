"""
LR35902命令セット実装のための共通ヘルパー関数と定数。
"""
from typing import List

from gameboy_vm.arch.lr35902.state import LR35902CpuState
from gameboy_vm.transport.bus import AddressableBus

# Helper functions for register mapping
REGISTER_CODES = {
    0b000: "B", 0b001: "C", 0b010: "D", 0b011: "E",
    0b100: "H", 0b101: "L", 0b110: "(HL)", 0b111: "A"
}

# @intent:constant 分岐条件コード(cc)と名前の対応。
CONDITION_CODES = {0: "NZ", 1: "Z", 2: "NC", 3: "C"}

# @intent:utility_function 指定されたコードに対応するレジスタ名を返します。
def get_register_name(code: int) -> str:
    return REGISTER_CODES.get(code, "UNKNOWN_REG")

# @intent:utility_function レジスタ名（または(HL)）に基づいて現在の値を取得します。
def get_register_value(state: LR35902CpuState, bus: AddressableBus, reg_name: str) -> int:
    if reg_name == "(HL)":
        return bus.read_byte(state.hl)
    return getattr(state, reg_name.lower())

# @intent:utility_function レジスタ名（または(HL)）に値を設定します。
def set_register_value(state: LR35902CpuState, bus: AddressableBus, reg_name: str, value: int) -> None:
    if reg_name == "(HL)":
        bus.write_byte(state.hl, value & 0xFF)
    else:
        setattr(state, reg_name.lower(), value & 0xFF)

# @intent:utility_function PUSH/POP命令で使用されるレジスタペア名を返します。
def get_push_pop_reg_name(code: int) -> str:
    return {0b00: "BC", 0b01: "DE", 0b10: "HL", 0b11: "AF"}.get(code, "UNKNOWN")

# @intent:utility_function 16ビット演算で使用されるレジスタペア名(ss)を返します。
def get_ss_reg_name(code: int) -> str:
    return {0b00: "BC", 0b01: "DE", 0b10: "HL", 0b11: "SP"}.get(code, "UNKNOWN")

# @intent:utility_function 分岐条件が成立しているかを判定します。
def condition_met(state: LR35902CpuState, cc: str) -> bool:
    if cc == "NZ":
        return not state.flag_z
    if cc == "Z":
        return state.flag_z
    if cc == "NC":
        return not state.flag_c
    return state.flag_c

# @intent:utility_function 即値オペランドをバスから読み出します。
def read_operand_bytes(bus: AddressableBus, pc: int, count: int) -> List[int]:
    return [bus.read_byte((pc + 1 + i) & 0xFFFF) for i in range(count)]

# @intent:utility_function リトルエンディアンの2バイトを16ビット値に結合します。
def word(operand_bytes: List[int]) -> int:
    return (operand_bytes[1] << 8) | operand_bytes[0]

# @intent:utility_function 8ビット値を符号付き整数として解釈します。
def signed8(value: int) -> int:
    return value - 0x100 if value >= 0x80 else value

# @intent:utility_function スタックに16ビット値を積みます（上位バイトが先）。
def push16(state: LR35902CpuState, bus: AddressableBus, value: int) -> None:
    state.sp = (state.sp - 1) & 0xFFFF
    bus.write_byte(state.sp, (value >> 8) & 0xFF)
    state.sp = (state.sp - 1) & 0xFFFF
    bus.write_byte(state.sp, value & 0xFF)

# @intent:utility_function スタックから16ビット値を取り出します。
def pop16(state: LR35902CpuState, bus: AddressableBus) -> int:
    low = bus.read_byte(state.sp)
    state.sp = (state.sp + 1) & 0xFFFF
    high = bus.read_byte(state.sp)
    state.sp = (state.sp + 1) & 0xFFFF
    return (high << 8) | low
