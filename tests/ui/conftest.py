# tests/ui/conftest.py
"""
UIテスト用のフィクスチャ。ディスプレイのない環境でも動くようoffscreenプラットフォームを使います。
"""
import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtWidgets import QApplication

from gameboy_vm.core.vm import VM, BootMode
from gameboy_vm.hardware.interconnect import Interconnect

# PySide6のテストにはQApplicationのインスタンスが必要
@pytest.fixture(scope="session")
def qapp():
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app

@pytest.fixture
def loop_vm(make_cartridge):
    """0x0100: NOP / 0x0101: INC A / 0x0102: JR -3 を実行するVM。"""
    return VM(Interconnect(make_cartridge(bytes([0x00, 0x3C, 0x18, 0xFD]))), BootMode.SKIP_BOOT_ROM)
