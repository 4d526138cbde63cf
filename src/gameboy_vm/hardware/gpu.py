# gameboy_vm/hardware/gpu.py
"""
GPU (PPU): LCDのモード遷移とスキャンライン描画。

1ラインは456サイクル（OAMサーチ80、ピクセル転送172、HBlank 204）、全154ライン。
LY=144に到達するとVBlankに入り、完成したフレームを取り出せる状態になります。
描画はピクセル転送の終了時に1ライン単位で行います。
"""
from typing import List, Optional, Sequence

from gameboy_vm.hardware.interrupts import Interrupt

SCREEN_WIDTH = 160
SCREEN_HEIGHT = 144

OAM_SCAN_CYCLES = 80
PIXEL_TRANSFER_CYCLES = 172
HBLANK_CYCLES = 204
LINE_CYCLES = OAM_SCAN_CYCLES + PIXEL_TRANSFER_CYCLES + HBLANK_CYCLES
VBLANK_START_LINE = 144
LAST_LINE = 153
FRAME_CYCLES = LINE_CYCLES * (LAST_LINE + 1)

# @intent:constant STATのモード番号。
MODE_HBLANK = 0
MODE_VBLANK = 1
MODE_OAM_SCAN = 2
MODE_PIXEL_TRANSFER = 3

# LCDCビット
LCDC_BG_ENABLE = 0x01
LCDC_OBJ_ENABLE = 0x02
LCDC_OBJ_TALL = 0x04
LCDC_BG_MAP = 0x08
LCDC_TILE_DATA = 0x10
LCDC_WINDOW_ENABLE = 0x20
LCDC_WINDOW_MAP = 0x40
LCDC_LCD_ENABLE = 0x80

# STAT割り込み許可ビット
STAT_HBLANK_INT = 0x08
STAT_VBLANK_INT = 0x10
STAT_OAM_INT = 0x20
STAT_LYC_INT = 0x40
STAT_COINCIDENCE = 0x04

# @intent:constant 既定の4階調パレット（明→暗、0x00RRGGBB）。
DMG_PALETTE = (0xE8F8D0, 0x88C070, 0x346856, 0x081820)

VRAM_SIZE = 0x2000
OAM_SIZE = 0xA0
MAX_SPRITES_PER_LINE = 10

class Gpu:
    def __init__(self, palette: Sequence[int] = DMG_PALETTE):
        if len(palette) != 4:
            raise ValueError("Palette must contain exactly 4 colors.")
        self.palette = tuple(c & 0xFFFFFF for c in palette)
        self.vram = bytearray(VRAM_SIZE)
        self.oam = bytearray(OAM_SIZE)

        self.lcdc = 0x00
        self.stat = 0x00
        self.scy = 0x00
        self.scx = 0x00
        self.ly = 0x00
        self.lyc = 0x00
        self.bgp = 0x00
        self.obp0 = 0x00
        self.obp1 = 0x00
        self.wy = 0x00
        self.wx = 0x00

        self.mode = MODE_HBLANK
        self._clock = 0
        self._window_line = 0
        self._frame: List[int] = [self.palette[0]] * (SCREEN_WIDTH * SCREEN_HEIGHT)
        self._frame_ready = False

    @property
    def lcd_enabled(self) -> bool:
        return bool(self.lcdc & LCDC_LCD_ENABLE)

    # @intent:responsibility 完成したフレームがあればそのコピーを返し、なければNoneを返します。
    def take_frame(self) -> Optional[List[int]]:
        if not self._frame_ready:
            return None
        self._frame_ready = False
        return list(self._frame)

    # --- Register access ---

    def read_register(self, address: int) -> int:
        reg = address & 0xFF
        if reg == 0x40:
            return self.lcdc
        if reg == 0x41:
            mode = self.mode if self.lcd_enabled else MODE_HBLANK
            return 0x80 | (self.stat & 0x78) | (STAT_COINCIDENCE if self.ly == self.lyc else 0) | mode
        values = {
            0x42: self.scy, 0x43: self.scx, 0x44: self.ly, 0x45: self.lyc,
            0x47: self.bgp, 0x48: self.obp0, 0x49: self.obp1, 0x4A: self.wy, 0x4B: self.wx,
        }
        return values.get(reg, 0xFF)

    def write_register(self, address: int, value: int) -> None:
        reg = address & 0xFF
        if reg == 0x40:
            was_enabled = self.lcd_enabled
            self.lcdc = value
            if was_enabled and not self.lcd_enabled:
                self.ly = 0
                self.mode = MODE_HBLANK
                self._clock = 0
            elif not was_enabled and self.lcd_enabled:
                self.mode = MODE_OAM_SCAN
                self._clock = 0
                self._window_line = 0
        elif reg == 0x41:
            self.stat = value & 0x78
        elif reg == 0x42:
            self.scy = value
        elif reg == 0x43:
            self.scx = value
        elif reg == 0x45:
            self.lyc = value
        elif reg == 0x47:
            self.bgp = value
        elif reg == 0x48:
            self.obp0 = value
        elif reg == 0x49:
            self.obp1 = value
        elif reg == 0x4A:
            self.wy = value
        elif reg == 0x4B:
            self.wx = value
        # LY(0x44)は読み出し専用

    # --- Timing ---

    def _enter_line(self) -> int:
        if self.ly == self.lyc and self.stat & STAT_LYC_INT:
            return Interrupt.STAT
        return 0

    # @intent:responsibility GPUをcyclesサイクル進めます。
    # @intent:return 要求された割り込みのビット集合（Interruptの論理和）。
    def step(self, cycles: int) -> int:
        if not self.lcd_enabled:
            return 0
        requested = 0
        self._clock += cycles
        while True:
            if self.mode == MODE_OAM_SCAN:
                if self._clock < OAM_SCAN_CYCLES:
                    break
                self._clock -= OAM_SCAN_CYCLES
                self.mode = MODE_PIXEL_TRANSFER
            elif self.mode == MODE_PIXEL_TRANSFER:
                if self._clock < PIXEL_TRANSFER_CYCLES:
                    break
                self._clock -= PIXEL_TRANSFER_CYCLES
                self._render_line()
                self.mode = MODE_HBLANK
                if self.stat & STAT_HBLANK_INT:
                    requested |= Interrupt.STAT
            elif self.mode == MODE_HBLANK:
                if self._clock < HBLANK_CYCLES:
                    break
                self._clock -= HBLANK_CYCLES
                self.ly += 1
                requested |= self._enter_line()
                if self.ly == VBLANK_START_LINE:
                    self.mode = MODE_VBLANK
                    self._frame_ready = True
                    requested |= Interrupt.VBLANK
                    if self.stat & STAT_VBLANK_INT:
                        requested |= Interrupt.STAT
                else:
                    self.mode = MODE_OAM_SCAN
                    if self.stat & STAT_OAM_INT:
                        requested |= Interrupt.STAT
            else:
                if self._clock < LINE_CYCLES:
                    break
                self._clock -= LINE_CYCLES
                self.ly += 1
                if self.ly > LAST_LINE:
                    self.ly = 0
                    self._window_line = 0
                    self.mode = MODE_OAM_SCAN
                    if self.stat & STAT_OAM_INT:
                        requested |= Interrupt.STAT
                requested |= self._enter_line()
        return int(requested)

    # --- Rendering ---

    def _shade(self, palette_register: int, color_index: int) -> int:
        return self.palette[(palette_register >> (color_index * 2)) & 0x03]

    def _tile_row(self, tile_address: int, row: int):
        return self.vram[tile_address + row * 2], self.vram[tile_address + row * 2 + 1]

    # @intent:responsibility 背景/ウィンドウ用のタイル番号からタイルデータのアドレスを求めます。
    def _bg_tile_address(self, tile_index: int) -> int:
        if self.lcdc & LCDC_TILE_DATA:
            return tile_index * 16
        # 0x9000を基準とした符号付きインデックス
        signed = tile_index - 0x100 if tile_index >= 0x80 else tile_index
        return 0x1000 + signed * 16

    def _render_line(self) -> None:
        ly = self.ly
        if ly >= SCREEN_HEIGHT:
            return
        base = ly * SCREEN_WIDTH
        bg_indices = [0] * SCREEN_WIDTH

        if self.lcdc & LCDC_BG_ENABLE:
            bg_map = 0x1C00 if self.lcdc & LCDC_BG_MAP else 0x1800
            window_map = 0x1C00 if self.lcdc & LCDC_WINDOW_MAP else 0x1800
            window_x = self.wx - 7
            window_visible = bool(self.lcdc & LCDC_WINDOW_ENABLE) and ly >= self.wy and window_x < SCREEN_WIDTH

            for px in range(SCREEN_WIDTH):
                if window_visible and px >= window_x:
                    x = px - window_x
                    y = self._window_line
                    tile_index = self.vram[window_map + (y >> 3) * 32 + (x >> 3)]
                else:
                    x = (self.scx + px) & 0xFF
                    y = (self.scy + ly) & 0xFF
                    tile_index = self.vram[bg_map + (y >> 3) * 32 + (x >> 3)]
                lo, hi = self._tile_row(self._bg_tile_address(tile_index), y & 7)
                bit = 7 - (x & 7)
                color = (((hi >> bit) & 1) << 1) | ((lo >> bit) & 1)
                bg_indices[px] = color
                self._frame[base + px] = self._shade(self.bgp, color)

            if window_visible:
                self._window_line += 1
        else:
            for px in range(SCREEN_WIDTH):
                self._frame[base + px] = self.palette[0]

        if self.lcdc & LCDC_OBJ_ENABLE:
            self._render_sprites(ly, base, bg_indices)

    def _render_sprites(self, ly: int, base: int, bg_indices: List[int]) -> None:
        height = 16 if self.lcdc & LCDC_OBJ_TALL else 8
        sprites = []
        for i in range(OAM_SIZE // 4):
            y = self.oam[i * 4] - 16
            if y <= ly < y + height:
                sprites.append((self.oam[i * 4 + 1] - 8, y, self.oam[i * 4 + 2], self.oam[i * 4 + 3]))
                if len(sprites) == MAX_SPRITES_PER_LINE:
                    break

        # X座標が小さい（同じならOAMで先の）スプライトが手前に来るよう、奥から描く
        for x, y, tile, attributes in sorted(reversed(sprites), key=lambda s: -s[0]):
            palette = self.obp1 if attributes & 0x10 else self.obp0
            row = ly - y
            if attributes & 0x40:
                row = height - 1 - row
            if height == 16:
                tile &= 0xFE
            lo, hi = self._tile_row(tile * 16, row)
            for px in range(8):
                sx = x + px
                if not 0 <= sx < SCREEN_WIDTH:
                    continue
                bit = px if attributes & 0x20 else 7 - px
                color = (((hi >> bit) & 1) << 1) | ((lo >> bit) & 1)
                if color == 0:
                    continue
                if attributes & 0x80 and bg_indices[sx] != 0:
                    continue
                self._frame[base + sx] = self._shade(palette, color)
