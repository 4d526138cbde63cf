# gameboy_vm/core/state.py
"""
レジスタファイルの基底型。

レジスタファイルは実行エンジンだけが所有し、VMやデバッガはget_state()経由で参照します。
デバッガが保存するコピーはdataclasses.replace()で作ります。
"""
from dataclasses import dataclass

# @intent:responsibility 全ての実行エンジンに共通する16bitのPCとSPを保持します。
@dataclass
class CpuState:
    pc: int = 0x0000
    sp: int = 0x0000  # ブートROMが0xFFFEに設定する
