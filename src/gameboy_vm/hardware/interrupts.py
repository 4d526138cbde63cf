# gameboy_vm/hardware/interrupts.py
"""
割り込み要求(IF)と割り込み許可(IE)レジスタ。
"""
from enum import IntFlag

# @intent:responsibility 割り込み要因のビットを定義します。ビット番号が小さいほど優先順位が高くなります。
class Interrupt(IntFlag):
    VBLANK = 0x01
    STAT = 0x02
    TIMER = 0x04
    SERIAL = 0x08
    JOYPAD = 0x10

INTERRUPT_MASK = 0x1F

# @intent:responsibility IFとIEの値を保持し、周辺機器からの割り込み要求を受け付けます。
class InterruptController:
    def __init__(self):
        self.flag = 0x00
        self.enable = 0x00

    def request(self, interrupt: Interrupt) -> None:
        self.flag |= int(interrupt)

    # @intent:responsibility IFの読み出し値を返します。未使用の上位3bitは1として読めます。
    def read_flag(self) -> int:
        return self.flag | 0xE0

    def write_flag(self, value: int) -> None:
        self.flag = value & INTERRUPT_MASK

    def read_enable(self) -> int:
        return self.enable

    def write_enable(self, value: int) -> None:
        self.enable = value & 0xFF
