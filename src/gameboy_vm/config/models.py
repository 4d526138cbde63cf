from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from gameboy_vm.core.device import Key
from gameboy_vm.hardware.gpu import DMG_PALETTE

# @intent:constant 既定のキー割り当て（ゲーム機のキー名 → Qtのキー名）。
DEFAULT_KEY_BINDINGS = {
    "up": "Up",
    "down": "Down",
    "left": "Left",
    "right": "Right",
    "a": "Z",
    "b": "X",
    "start": "Return",
    "select": "Backspace",
}

@dataclass
class DisplayConfig:
    scale: int = 2
    palette: Tuple[int, int, int, int] = DMG_PALETTE
    title: str = "gameboy-vm"

@dataclass
class EmulatorConfig:
    cartridge: Optional[str] = None
    boot_rom: Optional[str] = None
    skip_boot_rom: bool = False
    symbols: Optional[str] = None
    debug: bool = False
    breakpoints: List[str] = field(default_factory=list)  # アドレス("0x0150")またはシンボル名
    display: DisplayConfig = field(default_factory=DisplayConfig)
    key_bindings: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_KEY_BINDINGS))

    # @intent:responsibility キー割り当てをKey列挙子からホストキー名への辞書として返します。
    def key_map(self) -> Dict[Key, str]:
        return {Key(name): host for name, host in self.key_bindings.items()}
