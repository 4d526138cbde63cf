# gameboy_vm/hardware/serial.py
"""
シリアルポート (SB 0xFF01 / SC 0xFF02)。

接続相手は存在しないものとして扱います。内部クロックで開始された転送は即座に完了し、
送信されたバイトはserial_outputに蓄積されます（テストROMの結果出力の取得に使われます）。
"""
import logging

logger = logging.getLogger(__name__)

SB_ADDRESS = 0xFF01
SC_ADDRESS = 0xFF02

TRANSFER_START = 0x80
INTERNAL_CLOCK = 0x01

class SerialPort:
    def __init__(self):
        self.data = 0x00
        self.control = 0x00
        self.output = bytearray()

    def read(self, address: int) -> int:
        if address == SB_ADDRESS:
            return self.data
        return self.control | 0x7E

    # @intent:return 転送が完了し、シリアル割り込みを要求すべき場合True。
    def write(self, address: int, value: int) -> bool:
        if address == SB_ADDRESS:
            self.data = value & 0xFF
            return False

        self.control = value & (TRANSFER_START | INTERNAL_CLOCK)
        if self.control == TRANSFER_START | INTERNAL_CLOCK:
            self.output.append(self.data)
            logger.debug("Serial out: %#04x", self.data)
            # 相手がいないため受信値は全ビット1
            self.data = 0xFF
            self.control &= ~TRANSFER_START
            return True
        return False
