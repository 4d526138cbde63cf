# tests/hardware/test_serial.py
"""
gameboy_vm.hardware.serialモジュールの単体テスト。
"""
from gameboy_vm.hardware.serial import SerialPort, SB_ADDRESS, SC_ADDRESS

# @intent:test_suite 接続相手のいないシリアル転送と出力の蓄積を検証します。

class TestSerialPort:
    # @intent:test_case_transfer 内部クロックでの転送開始で出力が蓄積され、転送が完了することを検証します。
    def test_internal_clock_transfer(self):
        port = SerialPort()
        port.write(SB_ADDRESS, ord("A"))
        assert port.write(SC_ADDRESS, 0x81)
        assert port.output == bytearray(b"A")
        assert port.read(SB_ADDRESS) == 0xFF
        assert port.read(SC_ADDRESS) == 0x7F

    # @intent:test_case_external_clock 外部クロックでは転送が完了しないことを検証します。
    def test_external_clock_waits(self):
        port = SerialPort()
        port.write(SB_ADDRESS, 0x42)
        assert not port.write(SC_ADDRESS, 0x80)
        assert port.output == bytearray()
        assert port.read(SC_ADDRESS) == 0xFE

    # @intent:test_case_sb_write SBへの書き込みだけでは転送は始まらないことを検証します。
    def test_data_write_only(self):
        port = SerialPort()
        assert not port.write(SB_ADDRESS, 0x12)
        assert port.read(SB_ADDRESS) == 0x12
        assert port.read(SC_ADDRESS) == 0x7E
