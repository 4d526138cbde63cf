"""
LR35902命令セット実装パッケージ。
"""
from typing import Optional

from gameboy_vm.transport.bus import AddressableBus
from gameboy_vm.core.snapshot import Operation
from gameboy_vm.common.errors import IllegalOpcodeError
from gameboy_vm.arch.lr35902.state import LR35902CpuState
from .maps import DECODE_MAP, EXECUTE_MAP, ILLEGAL_OPCODES

# @intent:responsibility 与えられたオペコードをLR35902の命令としてデコードします。
# @intent:pre-condition `pc`はデコードするオペコードの先頭アドレスを指している必要があります。
def decode_opcode(opcode: int, bus: AddressableBus, pc: int) -> Operation:
    """
    LR35902のオペコードをデコードし、Operationオブジェクトを返します。
    存在しないオペコードの場合はIllegalOpcodeErrorを送出します。
    """
    decoder = DECODE_MAP.get(opcode)
    if decoder:
        return decoder(opcode, bus, pc)
    raise IllegalOpcodeError(opcode, pc)

# @intent:responsibility デコードされたLR35902命令を実行し、CPUの状態を変更します。
# @intent:return 条件分岐が成立した場合の追加サイクル数。
def execute_instruction(operation: Operation, state: LR35902CpuState, bus: AddressableBus) -> Optional[int]:
    """
    デコードされたLR35902命令を実行し、CPUの状態を変更します。
    """
    executor = EXECUTE_MAP.get(int(operation.opcode_hex, 16))
    if executor:
        return executor(state, bus, operation)
    return None

__all__ = ["decode_opcode", "execute_instruction", "DECODE_MAP", "EXECUTE_MAP", "ILLEGAL_OPCODES"]
