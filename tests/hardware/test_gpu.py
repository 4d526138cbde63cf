# tests/hardware/test_gpu.py
"""
gameboy_vm.hardware.gpuモジュールの単体テスト。
"""
import pytest

from gameboy_vm.hardware.gpu import (
    Gpu, DMG_PALETTE, LINE_CYCLES, FRAME_CYCLES, SCREEN_WIDTH,
    MODE_HBLANK, MODE_VBLANK, MODE_OAM_SCAN, MODE_PIXEL_TRANSFER,
)
from gameboy_vm.hardware.interrupts import Interrupt

# @intent:test_suite LCDのモード遷移、割り込み要求、背景とスプライトの描画を検証します。

PALETTE = (0x000001, 0x000002, 0x000003, 0x000004)
IDENTITY_BGP = 0xE4  # 色番号nをパレットのn番目に対応付ける

def enabled_gpu(lcdc: int = 0x91) -> Gpu:
    gpu = Gpu(PALETTE)
    gpu.write_register(0xFF47, IDENTITY_BGP)
    gpu.write_register(0xFF40, lcdc)
    return gpu

def run_frame(gpu: Gpu):
    gpu.step(VBLANK_CYCLES)
    return gpu.take_frame()

VBLANK_CYCLES = LINE_CYCLES * 144


class TestGpuTiming:
    # @intent:test_case_palette 4色以外のパレットは拒否されることを検証します。
    def test_palette_validation(self):
        with pytest.raises(ValueError):
            Gpu((0, 1, 2))
        assert Gpu().palette == DMG_PALETTE

    # @intent:test_case_modes 1ライン内のモード遷移（2→3→0）を検証します。
    def test_mode_sequence(self):
        gpu = enabled_gpu()
        assert gpu.mode == MODE_OAM_SCAN
        gpu.step(80)
        assert gpu.mode == MODE_PIXEL_TRANSFER
        gpu.step(172)
        assert gpu.mode == MODE_HBLANK
        gpu.step(204)
        assert gpu.mode == MODE_OAM_SCAN
        assert gpu.read_register(0xFF44) == 1

    # @intent:test_case_vblank LY=144でVBlankに入り、割り込みとフレームが得られることを検証します。
    def test_vblank(self):
        gpu = enabled_gpu()
        assert gpu.take_frame() is None
        requested = gpu.step(VBLANK_CYCLES)
        assert requested & Interrupt.VBLANK
        assert gpu.mode == MODE_VBLANK
        assert gpu.read_register(0xFF44) == 144
        assert gpu.take_frame() is not None
        assert gpu.take_frame() is None

    # @intent:test_case_wrap 1フレーム後にLYが0に戻ることを検証します。
    def test_full_frame_wraps(self):
        gpu = enabled_gpu()
        gpu.step(FRAME_CYCLES)
        assert gpu.read_register(0xFF44) == 0
        assert gpu.mode == MODE_OAM_SCAN

    # @intent:test_case_lyc LY=LYCでSTAT割り込みが要求されることを検証します。
    def test_lyc_interrupt(self):
        gpu = enabled_gpu()
        gpu.write_register(0xFF45, 2)
        gpu.write_register(0xFF41, 0x40)
        assert not gpu.step(LINE_CYCLES) & Interrupt.STAT
        assert gpu.step(LINE_CYCLES) & Interrupt.STAT
        assert gpu.read_register(0xFF41) & 0x04

    # @intent:test_case_lcd_off LCDを停止するとLYとモードがリセットされ、時間が進まないことを検証します。
    def test_lcd_off(self):
        gpu = enabled_gpu()
        gpu.step(LINE_CYCLES * 3)
        gpu.write_register(0xFF40, 0x00)
        assert gpu.read_register(0xFF44) == 0
        assert gpu.step(FRAME_CYCLES) == 0
        assert (gpu.read_register(0xFF41) & 0x03) == MODE_HBLANK

    # @intent:test_case_ly_readonly LYへの書き込みは無視されることを検証します。
    def test_ly_read_only(self):
        gpu = enabled_gpu()
        gpu.write_register(0xFF44, 0x42)
        assert gpu.read_register(0xFF44) == 0


class TestGpuRendering:
    # @intent:test_case_background 背景タイルがBGPを通して描画されることを検証します。
    def test_background_tile(self):
        gpu = enabled_gpu()
        # タイル1: 全画素が色3
        for row in range(8):
            gpu.vram[16 + row * 2] = 0xFF
            gpu.vram[16 + row * 2 + 1] = 0xFF
        gpu.vram[0x1800] = 1  # マップの左上
        frame = run_frame(gpu)
        assert frame[0] == PALETTE[3]
        assert frame[7] == PALETTE[3]
        assert frame[8] == PALETTE[0]
        assert frame[7 * SCREEN_WIDTH] == PALETTE[3]
        assert frame[8 * SCREEN_WIDTH] == PALETTE[0]

    # @intent:test_case_scroll SCXで背景がスクロールすることを検証します。
    def test_scroll_x(self):
        gpu = enabled_gpu()
        for row in range(8):
            gpu.vram[16 + row * 2] = 0xFF
        gpu.vram[0x1801] = 1  # 2番目のタイル
        gpu.write_register(0xFF43, 8)
        frame = run_frame(gpu)
        assert frame[0] == PALETTE[1]
        assert frame[8] == PALETTE[0]

    # @intent:test_case_sprite スプライトが描画され、色0は透明になることを検証します。
    def test_sprite(self):
        gpu = enabled_gpu(0x93)  # OBJ有効
        gpu.write_register(0xFF48, IDENTITY_BGP)
        for row in range(8):
            gpu.vram[32 + row * 2 + 1] = 0xF0  # タイル2: 左4画素が色2
        gpu.oam[0:4] = bytes([16, 8, 2, 0x00])  # 画面(0,0)
        frame = run_frame(gpu)
        assert frame[0] == PALETTE[2]
        assert frame[3] == PALETTE[2]
        assert frame[4] == PALETTE[0]

    # @intent:test_case_sprite_flip 水平反転したスプライトの描画を検証します。
    def test_sprite_x_flip(self):
        gpu = enabled_gpu(0x93)
        gpu.write_register(0xFF48, IDENTITY_BGP)
        for row in range(8):
            gpu.vram[32 + row * 2 + 1] = 0xF0
        gpu.oam[0:4] = bytes([16, 8, 2, 0x20])
        frame = run_frame(gpu)
        assert frame[0] == PALETTE[0]
        assert frame[4] == PALETTE[2]

    # @intent:test_case_sprite_limit 1ラインに描画されるスプライトは最大10個であることを検証します。
    def test_sprite_limit_per_line(self):
        gpu = enabled_gpu(0x93)
        gpu.write_register(0xFF48, IDENTITY_BGP)
        for row in range(8):
            gpu.vram[32 + row * 2] = 0x80  # 左端1画素が色1
        for i in range(12):
            gpu.oam[i * 4:i * 4 + 4] = bytes([16, 8 + i * 8, 2, 0x00])
        frame = run_frame(gpu)
        assert frame[9 * 8] == PALETTE[1]
        assert frame[10 * 8] == PALETTE[0]

    # @intent:test_case_bg_disabled BG無効時は最も明るい色で塗られることを検証します。
    def test_background_disabled(self):
        gpu = enabled_gpu(0x90)
        gpu.vram[16] = 0xFF
        gpu.vram[0x1800] = 1
        frame = run_frame(gpu)
        assert set(frame) == {PALETTE[0]}
