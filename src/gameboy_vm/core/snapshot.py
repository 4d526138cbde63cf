# gameboy_vm/core/snapshot.py
"""
実行状態の不変スナップショット

このモジュールは、デコード済み命令と、ある時点のCPU状態を記録した不変のデータ構造を定義します。
デバッガへの情報提供と、実行トレースの記録に用いる責務を負います。
"""
from dataclasses import dataclass, field
from typing import List, Optional

from gameboy_vm.core.state import CpuState

# @intent:responsibility デコードされた命令の詳細を記録します。
@dataclass(frozen=True) # 不変データ構造
class Operation:
    """
    デコードされた命令の詳細（HEX、ニーモニック、オペランド、コスト）を記録するデータクラス。
    """
    opcode_hex: str # 例: "C3"
    mnemonic: str # 例: "JP nn"
    operands: List[str] = field(default_factory=list) # 例: ["$0150"]
    operand_bytes: List[int] = field(default_factory=list) # 生のオペランドバイト
    cycle_count: int = 0 # 分岐しない場合のクロックサイクル数 (T-cycles)
    length: int = 1 # 命令のバイト長

    # @intent:responsibility オペランドを含めた表示用の文字列を返します。
    def format(self) -> str:
        if self.operands:
            return f"{self.mnemonic} " + ", ".join(self.operands)
        return self.mnemonic

# @intent:responsibility 実行に関するメタデータを記録します。
@dataclass(frozen=True) # 不変データ構造
class Metadata:
    """
    実行に関するメタデータ（今回のサイクル数、累計サイクル数、シンボル情報など）。
    """
    cycles: int
    cycle_count: int
    symbol_info: Optional[str] = None # 例: "main_loop: JP $1234"

# @intent:responsibility ある一時点におけるCPUの状態と直前に実行した命令を不変に記録します。
@dataclass(frozen=True) # 不変データ構造
class Snapshot:
    """
    1ステップ実行後のCPU状態のコピーと、そのステップで実行された命令。
    """
    address: int
    state: CpuState
    operation: Operation
    metadata: Metadata
