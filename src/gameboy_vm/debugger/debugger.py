# gameboy_vm/debugger/debugger.py
"""
デバッガモジュール。

VMの実行を制御し、ユーザーが指定した条件（ブレークポイント）で
実行を中断させる責務を負います。
"""
import logging
from collections import deque
from dataclasses import dataclass, replace
from enum import Enum
from typing import Deque, Dict, List, Optional

from gameboy_vm.core.device import Device
from gameboy_vm.core.snapshot import Metadata, Operation, Snapshot
from gameboy_vm.core.state import CpuState
from gameboy_vm.core.vm import VM
from gameboy_vm.common.types import SymbolMap

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 1000

# @intent:responsibility ブレークポイントの条件タイプを定義します。
class BreakpointConditionType(Enum):
    PC_MATCH = "PC_MATCH"               # プログラムカウンタが特定のアドレスに一致
    REGISTER_VALUE = "REGISTER_VALUE"   # 特定のレジスタが特定の値になった
    REGISTER_CHANGE = "REGISTER_CHANGE" # 特定のレジスタの値が変化した

# @intent:responsibility ブレークポイントをトリガーする条件を定義します。
@dataclass(frozen=True)
class BreakpointCondition:
    """
    ブレークポイントがヒットするための条件を定義するデータクラス。
    """
    condition_type: BreakpointConditionType
    value: Optional[int] = None           # PC_MATCH, REGISTER_VALUEで使用
    register_name: Optional[str] = None   # REGISTER_VALUE, REGISTER_CHANGEで使用 (例: "a", "hl")
    enabled: bool = True                  # 有効/無効状態

# @intent:responsibility run()が停止した理由。
class StopReason(Enum):
    BREAKPOINT = "breakpoint"
    DEVICE_STOPPED = "device_stopped"
    STEP_LIMIT = "step_limit"
    STOPPED = "stopped"

# @intent:responsibility VMの実行制御とブレークポイント管理を行います。
class Debugger:
    """
    VMを1命令ずつ実行し、その結果をSnapshotとして記録するクラス。
    履歴は直近history_limit件だけ保持されます。
    """
    def __init__(self, vm: VM, symbols: Optional[SymbolMap] = None,
                 history_limit: int = DEFAULT_HISTORY_LIMIT):
        self._vm = vm
        self._symbols: SymbolMap = dict(symbols or {})
        self._reverse_symbols: Dict[int, str] = {addr: name for name, addr in self._symbols.items()}
        self._breakpoints: List[BreakpointCondition] = []
        self._history: Deque[Snapshot] = deque(maxlen=history_limit)
        self._previous_state: CpuState = replace(vm.cpu.get_state())
        self._last_snapshot: Optional[Snapshot] = None
        self._running = False

    @property
    def vm(self) -> VM:
        return self._vm

    @property
    def symbols(self) -> SymbolMap:
        return dict(self._symbols)

    def add_breakpoint(self, condition: BreakpointCondition) -> None:
        """
        ブレークポイント条件を追加します。
        """
        if condition not in self._breakpoints:
            self._breakpoints.append(condition)

    # @intent:responsibility シンボル名で指定されたアドレスにPCブレークポイントを設定します。
    def add_breakpoint_at_symbol(self, name: str) -> BreakpointCondition:
        if name not in self._symbols:
            raise ValueError(f"Unknown symbol: {name}")
        condition = BreakpointCondition(BreakpointConditionType.PC_MATCH, value=self._symbols[name])
        self.add_breakpoint(condition)
        return condition

    def remove_breakpoint(self, condition: BreakpointCondition) -> None:
        """
        ブレークポイント条件を削除します。
        """
        if condition in self._breakpoints:
            self._breakpoints.remove(condition)

    def get_breakpoints(self) -> List[BreakpointCondition]:
        return list(self._breakpoints)

    def get_history(self) -> List[Snapshot]:
        """
        現在の実行履歴を古い順に返します。
        """
        return list(self._history)

    def get_last_snapshot(self) -> Optional[Snapshot]:
        return self._last_snapshot

    # @intent:responsibility アドレスに対応するシンボル名を返します。
    def symbol_at(self, address: int) -> Optional[str]:
        return self._reverse_symbols.get(address)

    def _pc_breakpoint_hit(self, pc: int) -> bool:
        for bp in self._breakpoints:
            if bp.enabled and bp.condition_type == BreakpointConditionType.PC_MATCH and bp.value == pc:
                return True
        return False

    def _check_register_breakpoints(self, snapshot: Snapshot) -> bool:
        """
        Snapshotに基づいてPC_MATCH以外のブレークポイントをチェックします。
        """
        current_state = snapshot.state
        for bp in self._breakpoints:
            if not bp.enabled or not bp.register_name:
                continue
            if not hasattr(current_state, bp.register_name):
                continue
            current_value = getattr(current_state, bp.register_name)
            if bp.condition_type == BreakpointConditionType.REGISTER_VALUE:
                if current_value == bp.value:
                    return True
            elif bp.condition_type == BreakpointConditionType.REGISTER_CHANGE:
                if current_value != getattr(self._previous_state, bp.register_name):
                    return True
        return False

    # @intent:responsibility 命令を伴わないステップ（割り込み受け付け、HALT待機）の表示用Operationを作ります。
    def _implicit_operation(self, address: int, cycles: int) -> Operation:
        state = self._vm.cpu.get_state()
        if getattr(state, "halted", False):
            return Operation(opcode_hex="76", mnemonic="HALT (suspended)", cycle_count=cycles, length=0)
        return Operation(opcode_hex="", mnemonic="INT", operands=[f"${state.pc:04X}"], cycle_count=cycles, length=0)

    def step_instruction(self, device: Device) -> Snapshot:
        """
        VMを1ステップ実行し、その結果のSnapshotを返します。
        """
        cpu = self._vm.cpu
        self._previous_state = replace(cpu.get_state())
        cycles = self._vm.step(device)

        address = cpu.last_address
        operation = cpu.last_operation or self._implicit_operation(address, cycles)
        label = self.symbol_at(address)
        symbol_info = f"{label}: {operation.format()}" if label else operation.format()

        snapshot = Snapshot(
            address=address,
            state=replace(cpu.get_state()),
            operation=operation,
            metadata=Metadata(cycles=cycles, cycle_count=cpu.cycle_count, symbol_info=symbol_info),
        )
        self._last_snapshot = snapshot
        self._history.append(snapshot)
        return snapshot

    def run(self, device: Device, max_steps: Optional[int] = None) -> StopReason:
        """
        ブレークポイントに達するか、デバイスが停止するか、ステップ数の上限に達するまで実行を継続します。
        現在のPCにブレークポイントがある場合は、まず1命令進めてから判定を始めます。
        """
        self._running = True
        steps = 0

        if self._pc_breakpoint_hit(self._vm.cpu.get_state().pc) and device.running():
            self.step_instruction(device)
            steps += 1

        while self._running:
            if not device.running():
                self._running = False
                return StopReason.DEVICE_STOPPED
            # 上限に達した時点でもPCブレークポイントを優先して報告する
            current_pc = self._vm.cpu.get_state().pc
            if self._pc_breakpoint_hit(current_pc):
                self._running = False
                logger.info("Breakpoint hit at PC: %#06x", current_pc)
                return StopReason.BREAKPOINT
            if max_steps is not None and steps >= max_steps:
                self._running = False
                return StopReason.STEP_LIMIT

            snapshot = self.step_instruction(device)
            steps += 1

            if self._check_register_breakpoints(snapshot):
                self._running = False
                logger.info("Register breakpoint hit at PC: %#06x", snapshot.state.pc)
                return StopReason.BREAKPOINT

        return StopReason.STOPPED

    def stop(self) -> None:
        self._running = False
