# gameboy_vm/hardware/cartridge.py
"""
カートリッジとメモリバンクコントローラ (MBC)。

カートリッジヘッダ(0x0134-0x014F)を解析し、カートリッジタイプに応じたマッパーを選択します。
ROM領域(0x0000-0x7FFF)への書き込みはマッパーのバンク切り替えレジスタとして扱われます。
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

logger = logging.getLogger(__name__)

ROM_BANK_SIZE = 0x4000
RAM_BANK_SIZE = 0x2000
HEADER_END = 0x0150

TITLE_START = 0x0134
TITLE_END = 0x0144
CARTRIDGE_TYPE_ADDRESS = 0x0147
ROM_SIZE_ADDRESS = 0x0148
RAM_SIZE_ADDRESS = 0x0149

# @intent:constant ヘッダのRAMサイズコードとバイト数の対応。
RAM_SIZES = {0x00: 0, 0x01: 0x800, 0x02: 0x2000, 0x03: 0x8000, 0x04: 0x20000, 0x05: 0x10000}

# @intent:responsibility カートリッジヘッダの内容を保持します。
@dataclass(frozen=True)
class CartridgeHeader:
    title: str
    cartridge_type: int
    rom_size: int
    ram_size: int

    # @intent:responsibility ROMイメージからヘッダを解析します。
    @classmethod
    def parse(cls, data: bytes) -> "CartridgeHeader":
        if len(data) < HEADER_END:
            raise ValueError(f"Cartridge image too small for a header ({len(data)} bytes).")
        title = "".join(chr(b) if 0x20 <= b < 0x7F else "" for b in data[TITLE_START:TITLE_END]).strip()
        rom_code = data[ROM_SIZE_ADDRESS]
        if rom_code > 0x08:
            raise ValueError(f"Unsupported ROM size code ${rom_code:02X}.")
        ram_code = data[RAM_SIZE_ADDRESS]
        if ram_code not in RAM_SIZES:
            raise ValueError(f"Unsupported RAM size code ${ram_code:02X}.")
        return cls(
            title=title,
            cartridge_type=data[CARTRIDGE_TYPE_ADDRESS],
            rom_size=0x8000 << rom_code,
            ram_size=RAM_SIZES[ram_code],
        )

# @intent:responsibility ROM/RAMバンクの切り替えロジックの抽象基底クラス。
class Mapper(ABC):
    """
    マッパーはROMとRAMのバイト列を所有せず、アクセス先のオフセットだけを決定します。
    """
    def __init__(self, rom_banks: int, ram_banks: int):
        self.rom_banks = max(rom_banks, 2)
        self.ram_banks = ram_banks
        self.ram_enabled = False

    # @intent:responsibility 0x0000-0x3FFFの読み出しに使うROMバンク番号。
    def lower_rom_bank(self) -> int:
        return 0

    # @intent:responsibility 0x4000-0x7FFFの読み出しに使うROMバンク番号。
    @abstractmethod
    def upper_rom_bank(self) -> int:
        pass

    # @intent:responsibility 外部RAMのバンク番号。RAMにアクセスできない場合はNone。
    def ram_bank(self):
        return 0 if self.ram_enabled else None

    # @intent:responsibility ROM領域への書き込みでバンク切り替えレジスタを更新します。
    @abstractmethod
    def write_register(self, address: int, value: int) -> None:
        pass

class RomOnly(Mapper):
    """バンク切り替えを持たない32KB ROM。RAMは常に有効です。"""
    def __init__(self, rom_banks: int, ram_banks: int):
        super().__init__(rom_banks, ram_banks)
        self.ram_enabled = True

    def upper_rom_bank(self) -> int:
        return 1

    def write_register(self, address: int, value: int) -> None:
        pass

class Mbc1(Mapper):
    def __init__(self, rom_banks: int, ram_banks: int):
        super().__init__(rom_banks, ram_banks)
        self._bank_low = 1
        self._bank_high = 0
        self._mode = 0

    def lower_rom_bank(self) -> int:
        if self._mode == 0:
            return 0
        return (self._bank_high << 5) % self.rom_banks

    def upper_rom_bank(self) -> int:
        return ((self._bank_high << 5) | self._bank_low) % self.rom_banks

    def ram_bank(self):
        if not self.ram_enabled:
            return None
        return self._bank_high if self._mode == 1 else 0

    def write_register(self, address: int, value: int) -> None:
        if address < 0x2000:
            self.ram_enabled = (value & 0x0F) == 0x0A
        elif address < 0x4000:
            # バンク0は選択できず、1として扱われる
            self._bank_low = (value & 0x1F) or 1
            logger.debug("MBC1 ROM bank low bits -> %d", self._bank_low)
        elif address < 0x6000:
            self._bank_high = value & 0x03
        else:
            self._mode = value & 0x01

class Mbc3(Mapper):
    """MBC3。リアルタイムクロックのレジスタは未対応で、選択中は0xFFとして読めます。"""
    def __init__(self, rom_banks: int, ram_banks: int):
        super().__init__(rom_banks, ram_banks)
        self._rom_bank = 1
        self._ram_select = 0

    def upper_rom_bank(self) -> int:
        return self._rom_bank % self.rom_banks

    def ram_bank(self):
        if not self.ram_enabled or self._ram_select > 0x03:
            return None
        return self._ram_select

    def write_register(self, address: int, value: int) -> None:
        if address < 0x2000:
            self.ram_enabled = (value & 0x0F) == 0x0A
        elif address < 0x4000:
            self._rom_bank = (value & 0x7F) or 1
            logger.debug("MBC3 ROM bank -> %d", self._rom_bank)
        elif address < 0x6000:
            self._ram_select = value & 0x0F
        # 0x6000-0x7FFF: RTCラッチ（未対応）

class Mbc5(Mapper):
    def __init__(self, rom_banks: int, ram_banks: int):
        super().__init__(rom_banks, ram_banks)
        self._rom_bank = 1
        self._ram_select = 0

    def upper_rom_bank(self) -> int:
        return self._rom_bank % self.rom_banks

    def ram_bank(self):
        return self._ram_select if self.ram_enabled else None

    def write_register(self, address: int, value: int) -> None:
        if address < 0x2000:
            self.ram_enabled = (value & 0x0F) == 0x0A
        elif address < 0x3000:
            self._rom_bank = (self._rom_bank & 0x100) | value
            logger.debug("MBC5 ROM bank -> %d", self._rom_bank)
        elif address < 0x4000:
            self._rom_bank = (self._rom_bank & 0xFF) | ((value & 0x01) << 8)
        elif address < 0x6000:
            self._ram_select = value & 0x0F

# @intent:constant カートリッジタイプコードと対応するマッパー。
MAPPER_TYPES = {
    0x00: RomOnly, 0x08: RomOnly, 0x09: RomOnly,
    0x01: Mbc1, 0x02: Mbc1, 0x03: Mbc1,
    0x0F: Mbc3, 0x10: Mbc3, 0x11: Mbc3, 0x12: Mbc3, 0x13: Mbc3,
    0x19: Mbc5, 0x1A: Mbc5, 0x1B: Mbc5, 0x1C: Mbc5, 0x1D: Mbc5, 0x1E: Mbc5,
}

# @intent:responsibility カートリッジのROMと外部RAMを保持し、マッパーを介してアクセスを解決します。
class Cartridge:
    """
    ROMイメージから構築されるカートリッジ。
    ヘッダが不正、またはマッパーが未対応の場合はValueErrorを送出します。
    """
    def __init__(self, data: bytes):
        self.header = CartridgeHeader.parse(data)
        mapper_class = MAPPER_TYPES.get(self.header.cartridge_type)
        if mapper_class is None:
            raise ValueError(f"Unsupported cartridge type ${self.header.cartridge_type:02X}.")

        self._rom = bytes(data)
        self._ram = bytearray(self.header.ram_size)
        rom_banks = max(len(self._rom), self.header.rom_size) // ROM_BANK_SIZE
        ram_banks = max(1, self.header.ram_size // RAM_BANK_SIZE) if self.header.ram_size else 0
        self.mapper = mapper_class(rom_banks, ram_banks)
        logger.info("Cartridge '%s' (type $%02X, %s, %d KB ROM, %d KB RAM)",
                    self.header.title, self.header.cartridge_type, mapper_class.__name__,
                    self.header.rom_size // 1024, self.header.ram_size // 1024)

    @property
    def title(self) -> str:
        return self.header.title

    def _rom_byte(self, offset: int) -> int:
        if offset < len(self._rom):
            return self._rom[offset]
        return 0xFF

    # @intent:responsibility 0x0000-0x7FFFの読み出し。
    def read_rom(self, address: int) -> int:
        if address < ROM_BANK_SIZE:
            return self._rom_byte(self.mapper.lower_rom_bank() * ROM_BANK_SIZE + address)
        return self._rom_byte(self.mapper.upper_rom_bank() * ROM_BANK_SIZE + (address - ROM_BANK_SIZE))

    # @intent:responsibility 0x0000-0x7FFFへの書き込みはマッパーのレジスタ操作になります。
    def write_rom(self, address: int, value: int) -> None:
        self.mapper.write_register(address, value & 0xFF)

    def _ram_offset(self, address: int):
        bank = self.mapper.ram_bank()
        if bank is None or not self._ram:
            return None
        return (bank * RAM_BANK_SIZE + address) % len(self._ram)

    # @intent:responsibility 0xA000-0xBFFF（addressは0起点のオフセット）の読み出し。無効時は0xFF。
    def read_ram(self, address: int) -> int:
        offset = self._ram_offset(address)
        if offset is None:
            return 0xFF
        return self._ram[offset]

    def write_ram(self, address: int, value: int) -> None:
        offset = self._ram_offset(address)
        if offset is not None:
            self._ram[offset] = value & 0xFF
