# gameboy_vm/arch/lr35902/cpu.py
"""
LR35902 CPUエミュレーションの中心モジュール。

このモジュールはGame BoyのCPU (Sharp LR35902) の具体的な実装を提供し、
AbstractCpuインターフェースを実装します。
"""
from typing import Dict, List, Optional

from gameboy_vm.core.cpu import AbstractCpu
from gameboy_vm.core.snapshot import Operation
from gameboy_vm.arch.lr35902.state import LR35902CpuState
from gameboy_vm.arch.lr35902.instructions import decode_opcode, execute_instruction
from gameboy_vm.arch.lr35902.instructions.base import push16
from gameboy_vm.arch.lr35902 import disassembler
from gameboy_vm.transport.bus import AddressableBus
from gameboy_vm.common.types import DisassemblyListing, RegisterLayoutInfo, RegisterInfo

# @intent:constant カートリッジのエントリポイント。リセット時のPC。
CARTRIDGE_ENTRY_POINT = 0x0100

# @intent:constant 割り込み要求(IF)と許可(IE)レジスタのアドレス。
IF_ADDRESS = 0xFF0F
IE_ADDRESS = 0xFFFF
INTERRUPT_MASK = 0x1F  # IE/IFの有効ビット（5要因）

# @intent:constant 割り込みベクタ（ビット番号の順が優先順位）。
INTERRUPT_VECTORS = (0x40, 0x48, 0x50, 0x58, 0x60)
INTERRUPT_DISPATCH_CYCLES = 20
HALT_IDLE_CYCLES = 4

# @intent:responsibility LR35902 CPUの具体的なエミュレーションロジックを提供します。
class LR35902Cpu(AbstractCpu):
    """
    LR35902 CPUをエミュレートするクラス。
    AbstractCpuを継承し、割り込み、HALT、EIの遅延などLR35902固有の動作を実装します。
    """

    # @intent:responsibility LR35902 CPUの初期状態を生成します。PCはカートリッジのエントリポイントです。
    def _create_initial_state(self) -> LR35902CpuState:
        return LR35902CpuState(pc=CARTRIDGE_ENTRY_POINT)

    # @intent:responsibility 現在のPCからオペコードをフェッチします。PCの更新はstep内で命令長に応じて行います。
    def _fetch(self, bus: AddressableBus) -> int:
        return bus.read_byte(self._state.pc)

    # @intent:responsibility 実際のデコードロジックは`instructions`パッケージに委譲します。
    def _decode(self, opcode: int, bus: AddressableBus, pc: int) -> Operation:
        return decode_opcode(opcode, bus, pc)

    # @intent:responsibility デコードされた命令を実行し、EIの遅延を解決します。
    def _execute(self, operation: Operation, bus: AddressableBus) -> Optional[int]:
        # EIの直後の命令が完了した時点でIMEが有効になる
        ime_was_pending = self._state.ime_pending
        extra = execute_instruction(operation, self._state, bus)
        if ime_was_pending and self._state.ime_pending:
            self._state.ime = True
            self._state.ime_pending = False
        return extra

    # @intent:responsibility 許可された割り込み要求があれば、HALTを解除し、IMEが有効ならベクタへ分岐します。
    # @intent:pre-condition バスはIE(0xFFFF)とIF(0xFF0F)をマップしている必要があります。
    #                      未マップのアドレスは0xFFとして読めるため、全ての割り込みが要求中に見えます。
    def _handle_interrupts(self, bus: AddressableBus) -> Optional[int]:
        fired = bus.read_byte(IE_ADDRESS) & bus.read_byte(IF_ADDRESS) & INTERRUPT_MASK
        if not fired:
            return None

        # IMEに関わらず要求があればHALTは解除される
        self._state.halted = False
        if not self._state.ime:
            return None

        for bit, vector in enumerate(INTERRUPT_VECTORS):
            if fired & (1 << bit):
                self._state.ime = False
                self._state.ime_pending = False
                bus.write_byte(IF_ADDRESS, bus.read_byte(IF_ADDRESS) & ~(1 << bit) & 0xFF)
                push16(self._state, bus, self._state.pc)
                self._state.pc = vector
                return INTERRUPT_DISPATCH_CYCLES
        return None

    # @intent:responsibility HALT中はPCを進めずに待機サイクルを消費します。
    def _handle_halt(self, bus: AddressableBus) -> Optional[int]:
        if self._state.halted:
            return HALT_IDLE_CYCLES
        return None

    def get_register_map(self) -> Dict[str, int]:
        s = self._state
        return {
            "A": s.a, "F": s.f, "B": s.b, "C": s.c, "D": s.d, "E": s.e, "H": s.h, "L": s.l,
            "AF": s.af, "BC": s.bc, "DE": s.de, "HL": s.hl,
            "SP": s.sp, "PC": s.pc,
            "IME": int(s.ime),
        }

    def get_register_layout(self) -> List[RegisterLayoutInfo]:
        return [
            RegisterLayoutInfo("Main Registers", [
                RegisterInfo("AF", 16), RegisterInfo("BC", 16), RegisterInfo("DE", 16), RegisterInfo("HL", 16)
            ]),
            RegisterLayoutInfo("Control", [
                RegisterInfo("SP", 16), RegisterInfo("PC", 16), RegisterInfo("IME", 4)
            ]),
        ]

    def get_flag_state(self) -> Dict[str, bool]:
        s = self._state
        return {
            "Z": s.flag_z,
            "N": s.flag_n,
            "H": s.flag_h,
            "C": s.flag_c,
        }

    def disassemble(self, bus: AddressableBus, start_addr: int, count: int) -> DisassemblyListing:
        return disassembler.disassemble(bus, start_addr, count)
