# gameboy_vm/loader/loader.py
"""
イメージローダーモジュール。
ブートROM、カートリッジROM、シンボルファイル（`BB:AAAA label`形式）のロードをサポートします。

全てのローダーは失敗時にRomLoadErrorを送出します。VMを構築する前に呼び出す必要があります。
"""
import logging
import re

from gameboy_vm.common.errors import RomLoadError
from gameboy_vm.common.types import SymbolMap
from gameboy_vm.hardware.bootrom import Bootrom, BOOTROM_SIZE
from gameboy_vm.hardware.cartridge import Cartridge

logger = logging.getLogger(__name__)

# @intent:constant シンボル行の書式。バンク番号、アドレス、ラベル名。
SYMBOL_LINE = re.compile(r'^([0-9A-Fa-f]{1,2}):([0-9A-Fa-f]{1,4})\s+(\S+)$')

# @intent:utility_function ファイル全体をバイト列として読み込み、OSエラーをRomLoadErrorに変換します。
def _read_binary(file_path: str) -> bytes:
    try:
        with open(file_path, 'rb') as f:
            return f.read()
    except OSError as e:
        raise RomLoadError(file_path, f"cannot read file ({e.strerror or e})") from e

class BootromLoader:
    """
    256バイトのブートROMイメージを読み込むローダー。
    """
    def load(self, file_path: str) -> Bootrom:
        data = _read_binary(file_path)
        if len(data) != BOOTROM_SIZE:
            raise RomLoadError(file_path, f"boot ROM must be exactly {BOOTROM_SIZE} bytes, got {len(data)}")
        logger.info("Loaded boot ROM from %s", file_path)
        return Bootrom(data)

class CartridgeLoader:
    """
    カートリッジROMイメージを読み込み、ヘッダを検証するローダー。
    """
    def load(self, file_path: str) -> Cartridge:
        data = _read_binary(file_path)
        try:
            cartridge = Cartridge(data)
        except ValueError as e:
            raise RomLoadError(file_path, str(e)) from e
        logger.info("Loaded cartridge '%s' from %s", cartridge.title, file_path)
        return cartridge

class SymbolLoader:
    """
    シンボルファイルを解析し、ラベル名とアドレスの対応表を返すローダー。
    `;`以降はコメントとして無視されます。バンク番号は保持しません。
    """
    def load(self, file_path: str) -> SymbolMap:
        try:
            with open(file_path, 'r', encoding="utf-8") as f:
                lines = f.readlines()
        except OSError as e:
            raise RomLoadError(file_path, f"cannot read file ({e.strerror or e})") from e

        symbol_map: SymbolMap = {}
        for line_num, line in enumerate(lines, 1):
            line = line.split(';')[0].strip()
            if not line:
                continue
            match = SYMBOL_LINE.match(line)
            if match is None:
                raise RomLoadError(file_path, f"invalid symbol on line {line_num}: {line}")
            symbol_map[match.group(3)] = int(match.group(2), 16)

        logger.info("Loaded %d symbols from %s", len(symbol_map), file_path)
        return symbol_map
