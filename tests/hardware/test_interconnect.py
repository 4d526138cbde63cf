# tests/hardware/test_interconnect.py
"""
gameboy_vm.hardware.interconnectモジュールの単体テスト。
"""
import pytest

from gameboy_vm.core.device import HeadlessDevice, Key
from gameboy_vm.hardware.bootrom import Bootrom
from gameboy_vm.hardware.gpu import FRAME_CYCLES
from gameboy_vm.hardware.interconnect import Interconnect

# @intent:test_suite メモリマップ、ブートROMオーバーレイ、DMA、周辺機器のステップと割り込み要求を検証します。

class TestInterconnectMemoryMap:
    @pytest.fixture
    def bus(self, make_cartridge):
        return Interconnect(make_cartridge(bytes([0xAA, 0xBB])))

    # @intent:test_case_rom カートリッジROMが読み出せ、ROMへの書き込みで内容が変わらないことを検証します。
    def test_cartridge_rom(self, bus):
        assert bus.read_byte(0x0100) == 0xAA
        bus.write_byte(0x0100, 0x00)
        assert bus.read_byte(0x0101) == 0xBB
        assert bus.read_byte(0x0100) == 0xAA

    # @intent:test_case_wram_echo エコー領域がWRAMを映すことを検証します。
    def test_work_ram_and_echo(self, bus):
        bus.write_byte(0xC123, 0x11)
        assert bus.read_byte(0xE123) == 0x11
        bus.write_byte(0xFDFF, 0x22)
        assert bus.read_byte(0xDDFF) == 0x22

    # @intent:test_case_vram_oam_hram VRAM、OAM、HRAM、IEの読み書きを検証します。
    def test_vram_oam_hram(self, bus):
        bus.write_byte(0x8000, 0x01)
        bus.write_byte(0xFE00, 0x02)
        bus.write_byte(0xFF80, 0x03)
        bus.write_byte(0xFFFF, 0x1F)
        assert bus.read_byte(0x8000) == 0x01
        assert bus.read_byte(0xFE00) == 0x02
        assert bus.read_byte(0xFF80) == 0x03
        assert bus.read_byte(0xFFFF) == 0x1F

    # @intent:test_case_unusable 未使用領域は0xFFとして読め、書き込みは無視されることを検証します。
    def test_unusable_region(self, bus):
        bus.write_byte(0xFEA0, 0x12)
        assert bus.read_byte(0xFEA0) == 0xFF
        assert bus.read_byte(0xFF03) == 0xFF

    # @intent:test_case_external_ram RAMなしのカートリッジの外部RAMは0xFFとして読めることを検証します。
    def test_external_ram_absent(self, bus):
        bus.write_byte(0xA000, 0x12)
        assert bus.read_byte(0xA000) == 0xFF

    # @intent:test_case_if_unused_bits IFの上位3bitは1として読めることを検証します。
    def test_interrupt_flag_register(self, bus):
        bus.write_byte(0xFF0F, 0x01)
        assert bus.read_byte(0xFF0F) == 0xE1

    # @intent:test_case_sound 音声レジスタは値を保持するだけであることを検証します。
    def test_sound_registers_store_values(self, bus):
        bus.write_byte(0xFF24, 0x77)
        bus.write_byte(0xFF30, 0x5A)  # 波形RAM
        assert bus.read_byte(0xFF24) == 0x77
        assert bus.read_byte(0xFF30) == 0x5A

    # @intent:test_case_dma 0xFF46への書き込みでOAMへ160バイトが転送されることを検証します。
    def test_oam_dma(self, bus):
        for i in range(0xA0):
            bus.write_byte(0xC000 + i, i)
        bus.write_byte(0xFF46, 0xC0)
        assert bus.read_byte(0xFF46) == 0xC0
        assert [bus.read_byte(0xFE00 + i) for i in range(0xA0)] == list(range(0xA0))

    # @intent:test_case_dimensions 表示サイズを検証します。
    def test_dimensions(self, bus):
        assert (bus.get_width(), bus.get_height()) == (160, 144)


class TestBootOverlay:
    # @intent:test_case_overlay ブートROMが0x0000-0x00FFに重なり、0xFF50への書き込みで恒久的に外れることを検証します。
    def test_overlay_and_disable(self, make_cartridge):
        cartridge = make_cartridge(bytes([0x11]), at=0x0000)
        bus = Interconnect(cartridge, Bootrom(bytes([0x31]) + bytes(0xFF)))

        assert bus.boot_rom_active
        assert bus.read_byte(0x0000) == 0x31
        assert bus.read_byte(0x0100) == cartridge.read_rom(0x0100)

        bus.write_byte(0xFF50, 0x01)
        assert not bus.boot_rom_active
        assert bus.read_byte(0x0000) == 0x11

        # 書き込みを繰り返しても再度有効にはならない
        bus.write_byte(0xFF50, 0x00)
        assert not bus.boot_rom_active

    # @intent:test_case_no_overlay ブートROMを与えない場合、オーバーレイは最初から無効であることを検証します。
    def test_without_bootrom(self, make_cartridge):
        bus = Interconnect(make_cartridge())
        assert not bus.boot_rom_active

    # @intent:test_case_code_layout オーバーレイの解除とROMバンクの切り替えがcode_layoutに反映されることを検証します。
    def test_code_layout_tracks_overlay_and_bank(self, make_cartridge):
        bus = Interconnect(make_cartridge(cartridge_type=0x01, rom_size_code=0x01), Bootrom(bytes(0x100)))
        assert bus.code_layout == (True, 0, 1)

        bus.write_byte(0xFF50, 0x01)
        assert bus.code_layout == (False, 0, 1)

        bus.write_byte(0x2000, 0x03)  # MBC1のROMバンク選択
        assert bus.code_layout == (False, 0, 3)


class TestInterconnectStep:
    @pytest.fixture
    def bus(self, make_cartridge):
        return Interconnect(make_cartridge())

    # @intent:test_case_timer_interrupt タイマーのオーバーフローでIFのビット2が立つことを検証します。
    def test_timer_interrupt(self, bus):
        bus.write_byte(0xFF06, 0x80)  # TMA
        bus.write_byte(0xFF05, 0xFF)  # TIMA
        bus.write_byte(0xFF07, 0x05)  # 有効, 16サイクル周期
        bus.step(16, HeadlessDevice())
        assert bus.read_byte(0xFF05) == 0x80
        assert bus.read_byte(0xFF0F) & 0x04

    # @intent:test_case_joypad_interrupt 新たなキー押下でIFのビット4が立ち、P1に反映されることを検証します。
    def test_joypad_input(self, bus):
        device = HeadlessDevice()
        device.press(Key.START)
        bus.write_byte(0xFF00, 0x10)  # ボタン行を選択
        bus.step(4, device)
        assert bus.read_byte(0xFF0F) & 0x10
        assert (bus.read_byte(0xFF00) & 0x0F) == 0x07

    # @intent:test_case_serial シリアル転送で出力が蓄積され、割り込みが要求されることを検証します。
    def test_serial_output(self, bus):
        for ch in b"OK":
            bus.write_byte(0xFF01, ch)
            bus.write_byte(0xFF02, 0x81)
        assert bus.serial_output == b"OK"
        assert bus.read_byte(0xFF0F) & 0x08

    # @intent:test_case_frame_output LCDが有効なら1フレーム分のサイクルでフレームが出力されVBlankが要求されることを検証します。
    def test_frame_output(self, bus):
        device = HeadlessDevice()
        bus.write_byte(0xFF40, 0x91)
        remaining = FRAME_CYCLES
        while remaining > 0:
            bus.step(4, device)
            remaining -= 4
        assert device.frames_displayed == 1
        assert bus.read_byte(0xFF0F) & 0x01

    # @intent:test_case_lcd_off LCD停止中も1フレーム周期ごとにupdateが呼ばれることを検証します。
    def test_update_while_lcd_off(self, bus):
        device = HeadlessDevice()
        bus.step(FRAME_CYCLES - 4, device)
        assert device.update_count == 0
        bus.step(4, device)
        assert device.update_count == 1
        assert device.frames_displayed == 0
