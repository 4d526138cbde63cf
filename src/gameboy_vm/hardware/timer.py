# gameboy_vm/hardware/timer.py
"""
タイマー (DIV/TIMA/TMA/TAC)。

DIVは16bitの内部カウンタの上位8bitです。TIMAはTACで選択された内部カウンタのビットの
立ち下がりごとに1つ進みます。step()に渡されたサイクル数の中で起きた立ち下がりを全て数えます。
"""

DIV_ADDRESS = 0xFF04
TIMA_ADDRESS = 0xFF05
TMA_ADDRESS = 0xFF06
TAC_ADDRESS = 0xFF07

# @intent:constant TACの下位2bitと、立ち下がりを監視する内部カウンタのビット番号。
TAC_COUNTER_BITS = {0: 9, 1: 3, 2: 5, 3: 7}
TAC_ENABLE = 0x04

class Timer:
    def __init__(self):
        self.counter = 0x0000
        self.tima = 0x00
        self.tma = 0x00
        self.tac = 0x00

    @property
    def enabled(self) -> bool:
        return bool(self.tac & TAC_ENABLE)

    def _selected_bit(self) -> int:
        return TAC_COUNTER_BITS[self.tac & 0x03]

    # @intent:responsibility TIMAを進めます。オーバーフローした場合はTMAを再ロードしTrueを返します。
    def _increment_tima(self) -> bool:
        if self.tima == 0xFF:
            self.tima = self.tma
            return True
        self.tima += 1
        return False

    # @intent:responsibility タイマーをcyclesサイクル進めます。
    # @intent:return タイマー割り込みを要求すべき場合True。
    def step(self, cycles: int) -> bool:
        old = self.counter
        new = old + cycles
        self.counter = new & 0xFFFF
        if not self.enabled:
            return False

        shift = self._selected_bit() + 1
        edges = (new >> shift) - (old >> shift)
        overflowed = False
        for _ in range(edges):
            overflowed |= self._increment_tima()
        return overflowed

    def read(self, address: int) -> int:
        if address == DIV_ADDRESS:
            return (self.counter >> 8) & 0xFF
        if address == TIMA_ADDRESS:
            return self.tima
        if address == TMA_ADDRESS:
            return self.tma
        if address == TAC_ADDRESS:
            return self.tac | 0xF8
        return 0xFF

    # @intent:responsibility タイマーレジスタへ書き込みます。
    # @intent:return DIVのリセットによる立ち下がりでタイマー割り込みを要求すべき場合True。
    def write(self, address: int, value: int) -> bool:
        if address == DIV_ADDRESS:
            # カウンタのリセットは選択ビットの立ち下がりとして扱われる
            falling = self.enabled and (self.counter >> self._selected_bit()) & 1
            self.counter = 0
            if falling:
                return self._increment_tima()
        elif address == TIMA_ADDRESS:
            self.tima = value & 0xFF
        elif address == TMA_ADDRESS:
            self.tma = value & 0xFF
        elif address == TAC_ADDRESS:
            self.tac = value & 0x07
        return False
