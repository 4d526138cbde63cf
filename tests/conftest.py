# tests/conftest.py
"""
テスト全体で共有するフィクスチャ。
"""
import pytest

from gameboy_vm.transport.bus import MemoryMapBus, RAM
from gameboy_vm.hardware.cartridge import Cartridge

# @intent:utility_function 指定したコードを0x0100に配置した、ヘッダ付きのROMイメージを作ります。
def build_rom_image(code: bytes = b"", cartridge_type: int = 0x00, rom_size_code: int = 0x00,
                    ram_size_code: int = 0x00, title: bytes = b"TEST", at: int = 0x0100) -> bytes:
    size = 0x8000 << rom_size_code
    image = bytearray(size)
    image[0x0134:0x0134 + len(title)] = title
    image[0x0147] = cartridge_type
    image[0x0148] = rom_size_code
    image[0x0149] = ram_size_code
    image[at:at + len(code)] = code
    return bytes(image)

@pytest.fixture
def rom_image():
    """ROMイメージを作る関数を返します。"""
    return build_rom_image

@pytest.fixture
def make_cartridge():
    """コードを0x0100に置いたROM ONLYカートリッジを作る関数を返します。"""
    def _make(code: bytes = b"", **kwargs) -> Cartridge:
        return Cartridge(build_rom_image(code, **kwargs))
    return _make

@pytest.fixture
def flat_bus():
    """64KB全域がRAMのMemoryMapBus。"""
    bus = MemoryMapBus()
    bus.register_device(0x0000, 0xFFFF, RAM(0x10000))
    return bus
