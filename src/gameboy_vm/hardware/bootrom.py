# gameboy_vm/hardware/bootrom.py
"""
ブートROMイメージ。
"""
from gameboy_vm.transport.bus import ROM

BOOTROM_SIZE = 0x100

# @intent:responsibility 256バイトのブートROMを保持します。バス経由の書き込みは無視されます。
class Bootrom(ROM):
    def __init__(self, data: bytes):
        if len(data) != BOOTROM_SIZE:
            raise ValueError(f"Boot ROM must be exactly {BOOTROM_SIZE} bytes, got {len(data)}.")
        super().__init__(BOOTROM_SIZE)
        for offset, value in enumerate(data):
            self.load_data(offset, value)
