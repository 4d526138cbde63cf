"""
LR35902逆アセンブラモジュール。

メモリ上のバイナリデータを解析し、LR35902アセンブリ言語のニーモニック形式に変換します。
"""
from gameboy_vm.transport.bus import AddressableBus
from gameboy_vm.common.types import DisassemblyListing
from gameboy_vm.common.errors import IllegalOpcodeError
from gameboy_vm.arch.lr35902.instructions import decode_opcode

# @intent:responsibility 指定アドレスから count 命令分を解析し、アドレスとニーモニックのリストを返します。
def disassemble(bus: AddressableBus, start_addr: int, count: int) -> DisassemblyListing:
    """
    メモリ上のデータを読み取り、(アドレス, 16進ダンプ, ニーモニック) のタプルのリストを返します。
    存在しないオペコードは "DB $XX" として1バイト分を表示します。
    """
    result = []
    current_addr = start_addr & 0xFFFF

    for _ in range(count):
        opcode = bus.read_byte(current_addr)
        try:
            operation = decode_opcode(opcode, bus, current_addr)
        except IllegalOpcodeError:
            result.append((current_addr, f"{opcode:02X}", f"DB ${opcode:02X}"))
            current_addr = (current_addr + 1) & 0xFFFF
            continue

        # 16進ダンプ文字列の生成 (Opcode + Operands)
        hex_bytes = [f"{opcode:02X}"]
        for b in operation.operand_bytes:
            hex_bytes.append(f"{b:02X}")

        result.append((current_addr, " ".join(hex_bytes), operation.format()))
        current_addr = (current_addr + operation.length) & 0xFFFF

    return result
