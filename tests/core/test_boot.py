# tests/core/test_boot.py
"""
gameboy_vm.core.bootモジュールの単体テスト。
"""
from gameboy_vm.arch.lr35902.state import LR35902CpuState
from gameboy_vm.core.boot import DMG_POST_BOOT, PowerOnSnapshot, RegisterSnapshot

# @intent:test_suite 電源投入後の状態テーブルとその適用を検証します。

EXPECTED_IO_WRITES = [
    (0xFF05, 0x00), (0xFF06, 0x00), (0xFF07, 0x00), (0xFF10, 0x80), (0xFF11, 0xBF),
    (0xFF12, 0xF3), (0xFF14, 0xBF), (0xFF16, 0x3F), (0xFF17, 0x00), (0xFF19, 0xBF),
    (0xFF1A, 0x7F), (0xFF1B, 0xFF), (0xFF1C, 0x9F), (0xFF1E, 0xBF), (0xFF20, 0xFF),
    (0xFF21, 0x00), (0xFF22, 0x00), (0xFF23, 0xBF), (0xFF24, 0x77), (0xFF25, 0xF3),
    (0xFF26, 0xF1), (0xFF40, 0x91), (0xFF42, 0x00), (0xFF43, 0x00), (0xFF45, 0x00),
    (0xFF47, 0xFC), (0xFF48, 0xFF), (0xFF49, 0xFF), (0xFF4A, 0x00), (0xFF4B, 0x00),
    (0xFFFF, 0x00),
]

class TestPowerOnSnapshot:
    # @intent:test_case_table DMGのテーブルが定義どおりの値と順序を持つことを検証します。
    def test_dmg_table_contents(self):
        assert list(DMG_POST_BOOT.io_writes) == EXPECTED_IO_WRITES
        assert DMG_POST_BOOT.registers == RegisterSnapshot(a=0x00, f=0x00, bc=0x0000, de=0x0000,
                                                           hl=0x0000, sp=0xFFFE)

    # @intent:test_case_apply_registers 適用するとレジスタが設定され、PCは変更されないことを検証します。
    def test_apply_sets_registers_but_not_pc(self, flat_bus):
        state = LR35902CpuState(pc=0x0100, a=0x12, f=0xF0, b=0x34, sp=0x1234)
        DMG_POST_BOOT.apply(state, flat_bus)

        assert state.pc == 0x0100
        assert state.a == 0x00 and state.f == 0x00
        assert state.bc == 0x0000
        assert state.sp == 0xFFFE

    # @intent:test_case_apply_io 適用後、全てのI/Oアドレスに定義値が書き込まれていることを検証します。
    def test_apply_writes_every_entry(self, flat_bus):
        DMG_POST_BOOT.apply(LR35902CpuState(), flat_bus)
        for address, value in EXPECTED_IO_WRITES:
            assert flat_bus.peek(address) == value

    # @intent:test_case_idempotent 2回適用しても結果が変わらないことを検証します。
    def test_apply_is_idempotent(self, flat_bus):
        state = LR35902CpuState()
        DMG_POST_BOOT.apply(state, flat_bus)
        first = [flat_bus.peek(a) for a, _ in EXPECTED_IO_WRITES]
        DMG_POST_BOOT.apply(state, flat_bus)
        assert [flat_bus.peek(a) for a, _ in EXPECTED_IO_WRITES] == first
        assert state.sp == 0xFFFE

    # @intent:test_case_custom 任意のスナップショットを定義して適用できることを検証します。
    def test_custom_snapshot(self, flat_bus):
        snapshot = PowerOnSnapshot("custom", RegisterSnapshot(a=0x01, hl=0xC000), ((0xC000, 0xAA),))
        state = LR35902CpuState()
        snapshot.apply(state, flat_bus)
        assert state.a == 0x01
        assert state.hl == 0xC000
        assert flat_bus.peek(0xC000) == 0xAA
