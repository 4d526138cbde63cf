# gameboy_vm/hardware/joypad.py
"""
ジョイパッド (P1レジスタ, 0xFF00)。

ボタン行と方向キー行は書き込まれた選択ビット(bit5/bit4)が0のときに読み出しへ反映されます。
押下中のキーは対応するビットが0になります（アクティブロー）。
"""
from typing import FrozenSet, Iterable

from gameboy_vm.core.device import Key

SELECT_BUTTONS = 0x20
SELECT_DIRECTIONS = 0x10

# @intent:constant 各キーの行とビット位置。
DIRECTION_BITS = {Key.RIGHT: 0x01, Key.LEFT: 0x02, Key.UP: 0x04, Key.DOWN: 0x08}
BUTTON_BITS = {Key.A: 0x01, Key.B: 0x02, Key.SELECT: 0x04, Key.START: 0x08}

class Joypad:
    def __init__(self):
        self._select = SELECT_BUTTONS | SELECT_DIRECTIONS
        self._pressed: FrozenSet[Key] = frozenset()

    @property
    def pressed(self) -> FrozenSet[Key]:
        return self._pressed

    # @intent:responsibility 押下中のキー集合を更新します。
    # @intent:return 新たに押されたキーがあればTrue（ジョイパッド割り込みの要求）。
    def set_pressed(self, keys: Iterable[Key]) -> bool:
        keys = frozenset(keys)
        newly_pressed = keys - self._pressed
        self._pressed = keys
        return bool(newly_pressed)

    def read(self) -> int:
        low = 0x0F
        if not self._select & SELECT_BUTTONS:
            for key, bit in BUTTON_BITS.items():
                if key in self._pressed:
                    low &= ~bit
        if not self._select & SELECT_DIRECTIONS:
            for key, bit in DIRECTION_BITS.items():
                if key in self._pressed:
                    low &= ~bit
        return 0xC0 | self._select | low

    def write(self, value: int) -> None:
        self._select = value & (SELECT_BUTTONS | SELECT_DIRECTIONS)
