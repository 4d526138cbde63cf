# gameboy_vm/core/vm.py
"""
Core Layer (オーケストレータ)

このモジュールは、1つのCPUと1つのバスを所有し、命令実行と周辺機器の時間進行を
交互に駆動するVMを提供します。CPUが消費したサイクル数は、次の命令の実行前に
必ずそのままバスへ渡されます。
"""
import logging
from enum import Enum
from typing import Optional, Tuple

from gameboy_vm.core.cpu import AbstractCpu
from gameboy_vm.core.device import Device
from gameboy_vm.core.boot import PowerOnSnapshot, DMG_POST_BOOT
from gameboy_vm.transport.bus import AddressableBus

logger = logging.getLogger(__name__)

# @intent:constant ブートROMの先頭アドレス。
BOOT_ROM_ENTRY_POINT = 0x0000

# @intent:responsibility 起動方法を表します。
class BootMode(Enum):
    WITH_BOOT_ROM = "with_boot_rom"
    SKIP_BOOT_ROM = "skip_boot_rom"

# @intent:responsibility CPUとバスの組を所有し、実行ループを駆動します。
class VM:
    """
    Game Boy VM。

    WITH_BOOT_ROMではPCを0x0000に置き、ブートROMに電源投入後の初期化を任せます。
    SKIP_BOOT_ROMでは、ブートROMが残すはずの状態（PowerOnSnapshot）を構築時に一度だけ適用します。
    構築は失敗しません。イメージの検証はローダーの責務です。
    """
    def __init__(self, bus: AddressableBus, boot_mode: BootMode = BootMode.WITH_BOOT_ROM,
                 cpu: Optional[AbstractCpu] = None, power_on: PowerOnSnapshot = DMG_POST_BOOT):
        if cpu is None:
            from gameboy_vm.arch.lr35902.cpu import LR35902Cpu
            cpu = LR35902Cpu()
        self._cpu: Optional[AbstractCpu] = cpu
        self._bus: Optional[AddressableBus] = bus
        self._boot_mode = boot_mode

        state = cpu.get_state()
        if boot_mode is BootMode.WITH_BOOT_ROM:
            state.pc = BOOT_ROM_ENTRY_POINT
        else:
            if bus.boot_rom_active:
                logger.warning("Skipping the boot ROM while the boot overlay is still mapped")
            power_on.apply(state, bus)
        logger.info("VM initialized (%s, pc=%#06x)", boot_mode.value, state.pc)

    @property
    def boot_mode(self) -> BootMode:
        return self._boot_mode

    @property
    def cpu(self) -> AbstractCpu:
        return self._parts()[0]

    @property
    def bus(self) -> AddressableBus:
        return self._parts()[1]

    # @intent:responsibility 分解済みでないことを確認して所有中のCPUとバスを返します。
    def _parts(self) -> Tuple[AbstractCpu, AddressableBus]:
        if self._cpu is None or self._bus is None:
            raise RuntimeError("VM has been decomposed")
        return self._cpu, self._bus

    # @intent:responsibility 1命令を実行し、消費したサイクル数をそのままバスへ渡します。
    def step(self, device: Device) -> int:
        """
        CPUで1命令（または割り込みの受け付け、HALT中の待機1回）を実行し、
        同じサイクル数だけ周辺機器を進めます。消費したサイクル数を返します。
        """
        cpu, bus = self._parts()
        cycles = cpu.step(bus)
        bus.step(cycles, device)
        return cycles

    # @intent:responsibility デバイスが動作中である間、stepを繰り返します。
    # @intent:rationale 終了条件はdevice.running()のみです。停止判定は各ステップの前に1回行われます。
    def run(self, device: Device) -> None:
        self._parts()
        while device.running():
            self.step(device)

    # @intent:responsibility CPUとバスの所有権を呼び出し側に渡します。以降このVMは使用できません。
    def decompose(self) -> Tuple[AbstractCpu, AddressableBus]:
        parts = self._parts()
        self._cpu = None
        self._bus = None
        return parts

    def get_width(self) -> int:
        return self._parts()[1].get_width()

    def get_height(self) -> int:
        return self._parts()[1].get_height()
