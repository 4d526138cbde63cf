# gameboy_vm/hardware/interconnect.py
"""
Game Boy のインターコネクト（実機相当のバス）。

CPUから見た16bitアドレス空間を、ブートROMオーバーレイ、カートリッジ、VRAM、WRAM、OAM、
I/Oレジスタ、HRAMへ振り分けます。step()ではCPUが消費したサイクル数だけタイマーとGPUを進め、
完成したフレームをDeviceへ出力します。
"""
import logging
from typing import Optional, Sequence

from gameboy_vm.core.device import Device, Key
from gameboy_vm.transport.bus import AddressableBus, RAM, OPEN_BUS_VALUE, ADDRESS_MASK
from gameboy_vm.hardware.bootrom import Bootrom, BOOTROM_SIZE
from gameboy_vm.hardware.cartridge import Cartridge
from gameboy_vm.hardware.gpu import Gpu, DMG_PALETTE, SCREEN_WIDTH, SCREEN_HEIGHT, FRAME_CYCLES, OAM_SIZE
from gameboy_vm.hardware.interrupts import InterruptController, Interrupt
from gameboy_vm.hardware.joypad import Joypad
from gameboy_vm.hardware.serial import SerialPort
from gameboy_vm.hardware.timer import Timer

logger = logging.getLogger(__name__)

JOYPAD_ADDRESS = 0xFF00
IF_ADDRESS = 0xFF0F
DMA_ADDRESS = 0xFF46
BOOT_DISABLE_ADDRESS = 0xFF50
IE_ADDRESS = 0xFFFF

SOUND_START = 0xFF10
SOUND_END = 0xFF3F

# @intent:responsibility Game Boyのメモリマップと周辺機器のタイミングを実装したバス。
class Interconnect(AddressableBus):
    """
    カートリッジとブートROM（任意）から構築されるバス。
    ブートROMを与えなかった場合、オーバーレイは最初から無効です。
    """
    def __init__(self, cartridge: Cartridge, bootrom: Optional[Bootrom] = None,
                 palette: Sequence[int] = DMG_PALETTE):
        self.cartridge = cartridge
        self._bootrom = bootrom
        self.gpu = Gpu(palette)
        self.timer = Timer()
        self.joypad = Joypad()
        self.serial = SerialPort()
        self.interrupts = InterruptController()
        self._wram = RAM(0x2000)
        self._hram = RAM(0x7F)
        self._sound = bytearray(SOUND_END - SOUND_START + 1)
        self._dma = 0x00
        self._lcd_off_cycles = 0

    @property
    def boot_rom_active(self) -> bool:
        return self._bootrom is not None

    @property
    def code_layout(self) -> tuple:
        mapper = self.cartridge.mapper
        return (self.boot_rom_active, mapper.lower_rom_bank(), mapper.upper_rom_bank())

    @property
    def serial_output(self) -> bytes:
        return bytes(self.serial.output)

    # @intent:responsibility ブートROMオーバーレイを恒久的に取り外します。
    def _disable_boot_rom(self) -> None:
        if self._bootrom is not None:
            logger.debug("Boot ROM overlay disabled")
        self._bootrom = None

    def read_byte(self, address: int) -> int:
        address &= ADDRESS_MASK
        if address < 0x8000:
            if self._bootrom is not None and address < BOOTROM_SIZE:
                return self._bootrom.read(address)
            return self.cartridge.read_rom(address)
        if address < 0xA000:
            return self.gpu.vram[address - 0x8000]
        if address < 0xC000:
            return self.cartridge.read_ram(address - 0xA000)
        if address < 0xE000:
            return self._wram.read(address - 0xC000)
        if address < 0xFE00:
            return self._wram.read(address - 0xE000)
        if address < 0xFEA0:
            return self.gpu.oam[address - 0xFE00]
        if address < 0xFF00:
            return OPEN_BUS_VALUE
        if address < 0xFF80:
            return self._read_io(address)
        if address < IE_ADDRESS:
            return self._hram.read(address - 0xFF80)
        return self.interrupts.read_enable()

    def _read_io(self, address: int) -> int:
        if address == JOYPAD_ADDRESS:
            return self.joypad.read()
        if 0xFF01 <= address <= 0xFF02:
            return self.serial.read(address)
        if 0xFF04 <= address <= 0xFF07:
            return self.timer.read(address)
        if address == IF_ADDRESS:
            return self.interrupts.read_flag()
        if SOUND_START <= address <= SOUND_END:
            return self._sound[address - SOUND_START]
        if address == DMA_ADDRESS:
            return self._dma
        if 0xFF40 <= address <= 0xFF4B:
            return self.gpu.read_register(address)
        return OPEN_BUS_VALUE

    def write_byte(self, address: int, data: int) -> None:
        address &= ADDRESS_MASK
        data &= 0xFF
        if address < 0x8000:
            self.cartridge.write_rom(address, data)
        elif address < 0xA000:
            self.gpu.vram[address - 0x8000] = data
        elif address < 0xC000:
            self.cartridge.write_ram(address - 0xA000, data)
        elif address < 0xE000:
            self._wram.write(address - 0xC000, data)
        elif address < 0xFE00:
            self._wram.write(address - 0xE000, data)
        elif address < 0xFEA0:
            self.gpu.oam[address - 0xFE00] = data
        elif address < 0xFF00:
            pass
        elif address < 0xFF80:
            self._write_io(address, data)
        elif address < IE_ADDRESS:
            self._hram.write(address - 0xFF80, data)
        else:
            self.interrupts.write_enable(data)

    def _write_io(self, address: int, data: int) -> None:
        if address == JOYPAD_ADDRESS:
            self.joypad.write(data)
        elif 0xFF01 <= address <= 0xFF02:
            if self.serial.write(address, data):
                self.interrupts.request(Interrupt.SERIAL)
        elif 0xFF04 <= address <= 0xFF07:
            if self.timer.write(address, data):
                self.interrupts.request(Interrupt.TIMER)
        elif address == IF_ADDRESS:
            self.interrupts.write_flag(data)
        elif SOUND_START <= address <= SOUND_END:
            self._sound[address - SOUND_START] = data
        elif address == DMA_ADDRESS:
            self._dma = data
            self._oam_dma(data << 8)
        elif 0xFF40 <= address <= 0xFF4B:
            self.gpu.write_register(address, data)
        elif address == BOOT_DISABLE_ADDRESS:
            self._disable_boot_rom()

    # @intent:responsibility OAM DMA転送を行います。転送は即座に完了します。
    def _oam_dma(self, source: int) -> None:
        for i in range(OAM_SIZE):
            self.gpu.oam[i] = self.read_byte(source + i)

    # @intent:responsibility 全ての周辺機器をcyclesサイクル分進め、完成したフレームをDeviceへ出力します。
    def step(self, cycles: int, device: Device) -> None:
        if self.joypad.set_pressed(key for key in Key if device.key_down(key)):
            self.interrupts.request(Interrupt.JOYPAD)

        if self.timer.step(cycles):
            self.interrupts.request(Interrupt.TIMER)

        lcd_was_enabled = self.gpu.lcd_enabled
        requested = self.gpu.step(cycles)
        if requested:
            self.interrupts.request(Interrupt(requested))

        frame = self.gpu.take_frame()
        if frame is not None:
            device.set_frame_buffer(frame)
            device.update()
            self._lcd_off_cycles = 0
        elif not lcd_was_enabled:
            # LCD停止中もホストがイベントを処理できるよう、1フレーム周期ごとにupdateを呼ぶ
            self._lcd_off_cycles += cycles
            if self._lcd_off_cycles >= FRAME_CYCLES:
                self._lcd_off_cycles -= FRAME_CYCLES
                device.update()

    def get_width(self) -> int:
        return SCREEN_WIDTH

    def get_height(self) -> int:
        return SCREEN_HEIGHT
