# tests/core/test_snapshot.py
"""
gameboy_vm.core.snapshotモジュールの単体テスト。
"""
import dataclasses

import pytest

from gameboy_vm.core.snapshot import Metadata, Operation, Snapshot
from gameboy_vm.core.state import CpuState

# @intent:test_suite Operation、Metadata、Snapshotの不変性と表示用文字列を検証します。

class TestSnapshot:
    # @intent:test_case_format オペランドがある場合とない場合の表示文字列を検証します。
    def test_operation_format(self):
        assert Operation(opcode_hex="00", mnemonic="NOP").format() == "NOP"
        op = Operation(opcode_hex="C3", mnemonic="JP nn", operands=["$0150"], operand_bytes=[0x50, 0x01],
                       cycle_count=16, length=3)
        assert op.format() == "JP nn $0150"

    # @intent:test_case_format_multi 複数のオペランドはカンマ区切りになることを検証します。
    def test_operation_format_multiple_operands(self):
        op = Operation(opcode_hex="00", mnemonic="TEST", operands=["A", "B"])
        assert op.format() == "TEST A, B"

    # @intent:test_case_defaults Operationの既定値を検証します。
    def test_operation_defaults(self):
        op = Operation(opcode_hex="00", mnemonic="NOP")
        assert op.operands == []
        assert op.operand_bytes == []
        assert op.cycle_count == 0
        assert op.length == 1

    # @intent:test_case_frozen 全てのデータクラスが不変であることを検証します。
    def test_immutability(self):
        op = Operation(opcode_hex="00", mnemonic="NOP")
        meta = Metadata(cycles=4, cycle_count=4)
        snap = Snapshot(address=0x0100, state=CpuState(pc=0x0101), operation=op, metadata=meta)
        with pytest.raises(dataclasses.FrozenInstanceError):
            op.mnemonic = "HALT"
        with pytest.raises(dataclasses.FrozenInstanceError):
            meta.cycles = 8
        with pytest.raises(dataclasses.FrozenInstanceError):
            snap.address = 0
        assert meta.symbol_info is None
