# gameboy_vm/core/boot.py
"""
電源投入直後の状態（ブートROM実行完了後の状態）の定義。

ブートROMをスキップして起動する場合、ブートプログラムが残すはずのレジスタ値と
I/Oレジスタ値を、順序付きの書き込みリストとレジスタ値の組として表現します。
"""
from dataclasses import dataclass
from typing import Tuple

from gameboy_vm.arch.lr35902.state import LR35902CpuState
from gameboy_vm.transport.bus import AddressableBus

# @intent:responsibility ブートROM完了時点のレジスタ値を保持します。PCは含みません。
@dataclass(frozen=True)
class RegisterSnapshot:
    a: int = 0x00
    f: int = 0x00
    bc: int = 0x0000
    de: int = 0x0000
    hl: int = 0x0000
    sp: int = 0xFFFE

# @intent:responsibility レジスタ値とI/Oレジスタへの書き込み列の組。ハードウェアの種類ごとに1つ定義します。
@dataclass(frozen=True)
class PowerOnSnapshot:
    """
    電源投入後の状態。io_writesはアドレス昇順の (address, value) の列です。
    """
    name: str
    registers: RegisterSnapshot
    io_writes: Tuple[Tuple[int, int], ...]

    # @intent:responsibility スナップショットをCPU状態とバスに適用します。
    # @intent:invariant 書き込みは全てバスのwrite_byteを介して、定義順に行われます。何度適用しても結果は同じです。
    def apply(self, state: LR35902CpuState, bus: AddressableBus) -> None:
        regs = self.registers
        state.a = regs.a
        state.f = regs.f
        state.bc = regs.bc
        state.de = regs.de
        state.hl = regs.hl
        state.sp = regs.sp
        for address, value in self.io_writes:
            bus.write_byte(address, value)


# @intent:constant DMG（初代Game Boy）のブートROM完了後の状態。
# NOTE: 実機のリファレンス値と一致するか未検証の値を含む（DESIGN.md参照）。値は変更しないこと。
DMG_POST_BOOT = PowerOnSnapshot(
    name="DMG",
    registers=RegisterSnapshot(),
    io_writes=(
        (0xFF05, 0x00),  # TIMA
        (0xFF06, 0x00),  # TMA
        (0xFF07, 0x00),  # TAC
        (0xFF10, 0x80),  # NR10
        (0xFF11, 0xBF),  # NR11
        (0xFF12, 0xF3),  # NR12
        (0xFF14, 0xBF),  # NR14
        (0xFF16, 0x3F),  # NR21
        (0xFF17, 0x00),  # NR22
        (0xFF19, 0xBF),  # NR24
        (0xFF1A, 0x7F),  # NR30
        (0xFF1B, 0xFF),  # NR31
        (0xFF1C, 0x9F),  # NR32
        (0xFF1E, 0xBF),  # NR34
        (0xFF20, 0xFF),  # NR41
        (0xFF21, 0x00),  # NR42
        (0xFF22, 0x00),  # NR43
        (0xFF23, 0xBF),  # NR44
        (0xFF24, 0x77),  # NR50
        (0xFF25, 0xF3),  # NR51
        (0xFF26, 0xF1),  # NR52
        (0xFF40, 0x91),  # LCDC
        (0xFF42, 0x00),  # SCY
        (0xFF43, 0x00),  # SCX
        (0xFF45, 0x00),  # LYC
        (0xFF47, 0xFC),  # BGP
        (0xFF48, 0xFF),  # OBP0
        (0xFF49, 0xFF),  # OBP1
        (0xFF4A, 0x00),  # WY
        (0xFF4B, 0x00),  # WX
        (0xFFFF, 0x00),  # IE
    ),
)
