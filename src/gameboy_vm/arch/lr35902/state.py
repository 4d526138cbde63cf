# gameboy_vm/arch/lr35902/state.py
"""
LR35902 (Game Boy CPU) 固有の状態定義。

このモジュールは、LR35902のレジスタ、フラグ、割り込み制御状態を保持するデータ構造を定義します。
"""
from dataclasses import dataclass

from gameboy_vm.core.state import CpuState

# LR35902フラグビットマスク
# @intent:constant Fレジスタ内の各フラグビットの位置を定義します。下位4bitは常に0です。
Z_FLAG = 0b10000000  # Zero (ゼロ)
N_FLAG = 0b01000000  # Subtract (減算)
H_FLAG = 0b00100000  # Half Carry (ハーフキャリー)
C_FLAG = 0b00010000  # Carry (キャリー)
FLAG_MASK = 0xF0

# @intent:responsibility Fレジスタの値を表す不変の値型。生のバイトから構築できます。
@dataclass(frozen=True)
class Flags:
    zero: bool = False
    subtract: bool = False
    half_carry: bool = False
    carry: bool = False

    # @intent:responsibility 生のバイトからフラグを構築します。下位4bitは無視されます。
    @classmethod
    def from_byte(cls, raw: int) -> "Flags":
        return cls(
            zero=bool(raw & Z_FLAG),
            subtract=bool(raw & N_FLAG),
            half_carry=bool(raw & H_FLAG),
            carry=bool(raw & C_FLAG),
        )

    def to_byte(self) -> int:
        return ((Z_FLAG if self.zero else 0) | (N_FLAG if self.subtract else 0)
                | (H_FLAG if self.half_carry else 0) | (C_FLAG if self.carry else 0))


# @intent:responsibility LR35902の全てのレジスタとフラグ、割り込み制御の状態を保持します。
@dataclass
class LR35902CpuState(CpuState):
    """
    LR35902のレジスタ状態を保持するデータクラス。
    CpuStateを拡張し、8bitレジスタ、16bitペア、IMEとHALT状態を含みます。
    """
    a: int = 0x00
    f: int = 0x00  # Flag register
    b: int = 0x00
    c: int = 0x00
    d: int = 0x00
    e: int = 0x00
    h: int = 0x00
    l: int = 0x00

    ime: bool = False # Interrupt Master Enable
    ime_pending: bool = False # EI実行後、次の命令の完了時にIMEが有効になる
    halted: bool = False

    # @intent:accessor Fレジスタの各フラグビットにアクセスするためのプロパティを提供します。
    # @intent:rationale ゲッターとセッターを通じてFレジスタの対応するビットを操作します。

    @property
    def flags(self) -> Flags:
        return Flags.from_byte(self.f)

    @flags.setter
    def flags(self, value: Flags) -> None:
        self.f = value.to_byte()

    @property
    def flag_z(self) -> bool:
        return (self.f & Z_FLAG) != 0

    @flag_z.setter
    def flag_z(self, value: bool) -> None:
        if value:
            self.f |= Z_FLAG
        else:
            self.f &= ~Z_FLAG & 0xFF

    @property
    def flag_n(self) -> bool:
        return (self.f & N_FLAG) != 0

    @flag_n.setter
    def flag_n(self, value: bool) -> None:
        if value:
            self.f |= N_FLAG
        else:
            self.f &= ~N_FLAG & 0xFF

    @property
    def flag_h(self) -> bool:
        return (self.f & H_FLAG) != 0

    @flag_h.setter
    def flag_h(self, value: bool) -> None:
        if value:
            self.f |= H_FLAG
        else:
            self.f &= ~H_FLAG & 0xFF

    @property
    def flag_c(self) -> bool:
        return (self.f & C_FLAG) != 0

    @flag_c.setter
    def flag_c(self, value: bool) -> None:
        if value:
            self.f |= C_FLAG
        else:
            self.f &= ~C_FLAG & 0xFF

    # @intent:responsibility 4つのフラグをまとめて設定します。
    def set_flags(self, z: bool, n: bool, h: bool, c: bool) -> None:
        self.f = ((Z_FLAG if z else 0) | (N_FLAG if n else 0)
                  | (H_FLAG if h else 0) | (C_FLAG if c else 0))

    # 16-bit register pairs
    # @intent:invariant セッターは上位バイトを先頭のレジスタ、下位バイトを後ろのレジスタに分解します。
    @property
    def af(self) -> int:
        return (self.a << 8) | self.f

    @af.setter
    def af(self, value: int) -> None:
        self.a = (value >> 8) & 0xFF
        self.f = value & FLAG_MASK

    @property
    def bc(self) -> int:
        return (self.b << 8) | self.c

    @bc.setter
    def bc(self, value: int) -> None:
        self.b = (value >> 8) & 0xFF
        self.c = value & 0xFF

    @property
    def de(self) -> int:
        return (self.d << 8) | self.e

    @de.setter
    def de(self, value: int) -> None:
        self.d = (value >> 8) & 0xFF
        self.e = value & 0xFF

    @property
    def hl(self) -> int:
        return (self.h << 8) | self.l

    @hl.setter
    def hl(self, value: int) -> None:
        self.h = (value >> 8) & 0xFF
        self.l = value & 0xFF
