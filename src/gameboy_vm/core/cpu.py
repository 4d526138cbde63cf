# gameboy_vm/core/cpu.py
"""
Core Layer (抽象CPU)

このモジュールは、CPUの基本的な状態管理と命令サイクルの駆動に関する抽象化を提供します。
具体的な命令の振る舞いはInstruction Layerに移譲されます。
"""
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Optional, Dict, List

from gameboy_vm.transport.bus import AddressableBus
from gameboy_vm.core.snapshot import Operation
from gameboy_vm.core.state import CpuState
from gameboy_vm.common.types import DisassemblyListing, RegisterLayoutInfo

# @intent:responsibility 抽象CPU（実行エンジン）の基本機能とインターフェースを定義します。
class AbstractCpu(ABC):
    """
    全てのCPUエミュレーションの基底となる抽象クラス。
    CPUはバスを所有せず、step()の呼び出しごとに渡されたバスだけを介してメモリにアクセスします。
    """
    # @intent:responsibility CPUの状態を初期化します。
    def __init__(self):
        self._state: CpuState = self._create_initial_state()
        self._cycle_count: int = 0
        self._last_operation: Optional[Operation] = None
        self._last_address: int = self._state.pc
        # @intent:rationale Stateオブジェクトの直接操作を避けるため、protectedな命名規則を採用。
        #                  外部からのアクセスは`get_state()`メソッドを介して行う。

    # @intent:responsibility 初期状態のCpuStateオブジェクトを生成します。
    # @intent:rationale 各CPUアーキテクチャで初期状態が異なるため、抽象メソッドとして定義します。
    @abstractmethod
    def _create_initial_state(self) -> CpuState:
        """
        CPUの初期状態を生成して返します。
        具体的なCPUアーキテクチャはこのメソッドを実装し、
        そのアーキテクチャに特化したCpuStateのサブクラスを返すことができます。
        """
        pass

    # @intent:responsibility CPUをリセットし、初期状態に戻します。
    def reset(self) -> None:
        self._state = self._create_initial_state()
        self._cycle_count = 0
        self._last_operation = None

    # @intent:responsibility 現在のCPUの状態を返します。
    def get_state(self) -> CpuState:
        """
        現在のCPUの状態（レジスタ値など）を返します。
        返されるオブジェクトはCPU内部の状態そのものであり、変更はCPUに反映されます。
        """
        return self._state

    # @intent:responsibility 保存しておいた状態のコピーでCPUの状態を置き換えます。
    def restore_state(self, state: CpuState) -> None:
        self._state = replace(state)

    # @intent:responsibility これまでに消費した累計サイクル数を返します。
    @property
    def cycle_count(self) -> int:
        return self._cycle_count

    # @intent:responsibility 直前のstep()で実行した命令を返します。割り込み処理やHALT待機中はNoneです。
    @property
    def last_operation(self) -> Optional[Operation]:
        return self._last_operation

    # @intent:responsibility 直前のstep()で実行した命令の先頭アドレスを返します。
    @property
    def last_address(self) -> int:
        return self._last_address

    # @intent:responsibility メモリから次の命令（オペコード）をフェッチします。
    @abstractmethod
    def _fetch(self, bus: AddressableBus) -> int:
        """
        現在のPCからオペコードをフェッチし、その値を返します。
        PCの更新は_update_pcで行います。
        """
        pass

    # @intent:responsibility フェッチしたオペコードを解析し、Operationオブジェクトに変換します。
    @abstractmethod
    def _decode(self, opcode: int, bus: AddressableBus, pc: int) -> Operation:
        pass

    # @intent:responsibility デコードされた命令を実行し、CPUの状態を更新します。
    # @intent:return 分岐成立などで基本コストに加算されるサイクル数。追加がなければNone。
    @abstractmethod
    def _execute(self, operation: Operation, bus: AddressableBus) -> Optional[int]:
        pass

    # @intent:responsibility CPUを1命令進め、消費したサイクル数を返します。
    # @intent:rationale Template Methodパターンを採用し、共通の実行フロー（割り込み→HALT判定→フェッチ→デコード→PC更新→実行）を定義します。
    #                  アーキテクチャ固有の振る舞い（割り込み、HALT処理など）はフックメソッドで対応します。
    def step(self, bus: AddressableBus) -> int:
        """
        命令を1つだけ実行し、その命令が消費したクロックサイクル数を返します。
        割り込みの受け付け、HALT中の待機もそれぞれ1ステップとして数えます。
        """
        initial_pc = self._state.pc

        # 1. 割り込み判定 (Hook)
        cycles = self._handle_interrupts(bus)
        if cycles is None:
            # 2. HALT判定 (Hook)
            cycles = self._handle_halt(bus)
        if cycles is not None:
            self._last_operation = None
            self._last_address = initial_pc
            self._cycle_count += cycles
            return cycles

        # 3. フェッチ
        opcode = self._fetch(bus)

        # 4. デコード
        operation = self._decode(opcode, bus, initial_pc)

        # 5. PC更新 (Hook)
        self._update_pc(operation)

        # 6. 実行
        extra = self._execute(operation, bus)

        cycles = operation.cycle_count + (extra or 0)
        self._last_operation = operation
        self._last_address = initial_pc
        self._cycle_count += cycles
        return cycles

    # @intent:responsibility 保留中の割り込みを処理します。
    # @intent:return 割り込みを受け付けた場合はそのサイクル数、そうでなければNone。
    def _handle_interrupts(self, bus: AddressableBus) -> Optional[int]:
        return None

    # @intent:responsibility HALT状態の場合の処理を行います。
    # @intent:return HALT中であれば待機サイクル数、そうでなければNone。
    def _handle_halt(self, bus: AddressableBus) -> Optional[int]:
        return None

    # @intent:responsibility 命令実行前にPCを更新します。
    def _update_pc(self, operation: Operation) -> None:
        """
        命令実行前のPC更新。デフォルトは命令長分進める。
        """
        self._state.pc = (self._state.pc + operation.length) & 0xFFFF

    @abstractmethod
    def get_register_map(self) -> Dict[str, int]:
        """
        現在のレジスタ値を辞書形式で返す。
        UIやデバッガがCPUの内部構造を知らなくても値を表示できるようにするために使用される。
        """
        pass

    @abstractmethod
    def get_register_layout(self) -> List[RegisterLayoutInfo]:
        """
        UI表示用のレジスタグループ定義を返す。
        """
        pass

    @abstractmethod
    def get_flag_state(self) -> Dict[str, bool]:
        """
        現在のフラグの各ビットの状態を辞書形式で返す。
        """
        pass

    @abstractmethod
    def disassemble(self, bus: AddressableBus, start_addr: int, count: int) -> DisassemblyListing:
        """
        指定アドレスから count 命令分を逆アセンブルし、(address, hex_bytes, text) のリストを返す。
        """
        pass
