# tests/hardware/test_joypad.py
"""
gameboy_vm.hardware.joypadモジュールの単体テスト。
"""
from gameboy_vm.core.device import Key
from gameboy_vm.hardware.joypad import Joypad

# @intent:test_suite P1レジスタの行選択とアクティブローの読み出し、割り込み要求の判定を検証します。

class TestJoypad:
    # @intent:test_case_idle 何も押されていなければ下位4bitがすべて1であることを検証します。
    def test_idle_read(self):
        joypad = Joypad()
        assert joypad.read() == 0xFF
        joypad.write(0x00)
        assert joypad.read() == 0xCF

    # @intent:test_case_rows 選択した行のキーだけが読み出しに反映されることを検証します。
    def test_row_selection(self):
        joypad = Joypad()
        joypad.set_pressed({Key.A, Key.DOWN})

        joypad.write(0x10)  # ボタン行
        assert joypad.read() == 0xD0 | 0x0E

        joypad.write(0x20)  # 方向キー行
        assert joypad.read() == 0xE0 | 0x07

        joypad.write(0x30)  # どちらも非選択
        assert joypad.read() == 0xFF

    # @intent:test_case_interrupt 新たな押下の場合のみ割り込みを要求することを検証します。
    def test_newly_pressed(self):
        joypad = Joypad()
        assert joypad.set_pressed({Key.B})
        assert not joypad.set_pressed({Key.B})
        assert not joypad.set_pressed(set())
        assert joypad.set_pressed({Key.B, Key.SELECT})
        assert joypad.pressed == frozenset({Key.B, Key.SELECT})
