import logging
from typing import List

from gameboy_vm.common.types import SymbolMap
from gameboy_vm.core.vm import VM, BootMode
from gameboy_vm.hardware.interconnect import Interconnect
from gameboy_vm.loader.loader import BootromLoader, CartridgeLoader, SymbolLoader
from gameboy_vm.debugger.debugger import BreakpointCondition, BreakpointConditionType
from .models import EmulatorConfig

logger = logging.getLogger(__name__)

# @intent:responsibility 設定（Config）に基づいて、イメージを読み込み、Interconnect、CPU、VMを生成・接続します。
class SystemBuilder:
    def build(self, config: EmulatorConfig) -> VM:
        """
        カートリッジとブートROMを読み込み、VMを構築します。
        ブートROMをスキップする場合はオーバーレイを持たないInterconnectを作ります。
        ロードの失敗はRomLoadErrorとして送出されます。
        """
        if not config.cartridge:
            raise ValueError("No cartridge specified.")

        cartridge = CartridgeLoader().load(config.cartridge)

        if config.skip_boot_rom:
            bootrom = None
            boot_mode = BootMode.SKIP_BOOT_ROM
        else:
            if not config.boot_rom:
                raise ValueError("A boot ROM is required unless skip_boot_rom is set.")
            bootrom = BootromLoader().load(config.boot_rom)
            boot_mode = BootMode.WITH_BOOT_ROM

        interconnect = Interconnect(cartridge, bootrom, palette=config.display.palette)
        logger.info("Building VM (%s)", boot_mode.value)
        return VM(interconnect, boot_mode)

    def load_symbols(self, config: EmulatorConfig) -> SymbolMap:
        if not config.symbols:
            return {}
        return SymbolLoader().load(config.symbols)

    # @intent:responsibility 設定のブレークポイント指定（アドレスまたはシンボル名）をPCブレークポイントに変換します。
    def build_breakpoints(self, config: EmulatorConfig, symbols: SymbolMap) -> List[BreakpointCondition]:
        breakpoints = []
        for entry in config.breakpoints:
            if entry in symbols:
                address = symbols[entry]
            else:
                try:
                    address = int(entry, 16) if entry.lower().startswith("0x") else int(entry)
                except ValueError:
                    raise ValueError(f"Breakpoint is neither an address nor a known symbol: {entry}") from None
            breakpoints.append(BreakpointCondition(BreakpointConditionType.PC_MATCH, value=address & 0xFFFF))
        return breakpoints
