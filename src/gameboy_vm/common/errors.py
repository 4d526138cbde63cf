"""
プロジェクト固有の例外定義。

組み込み例外の階層を拡張し、呼び出し側が失敗の種類を区別できるようにします。
"""


# @intent:responsibility ブートROM/カートリッジ/シンボルファイルの読み込み失敗を表します。
# @intent:rationale 不正な値に起因する失敗であるため ValueError を継承します。
class RomLoadError(ValueError):
    """
    イメージファイルが存在しない、サイズが不正、未対応のマッパーなど、
    セッション開始前に検出されるロード失敗。
    """

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


# @intent:responsibility 実行エンジンが命令長やサイクル数を決定できない未定義オペコードを表します。
class IllegalOpcodeError(RuntimeError):
    """
    未定義オペコードの実行。回復手段がないため、そのステップは失敗として扱われます。
    """

    def __init__(self, opcode: int, address: int):
        super().__init__(f"Illegal opcode ${opcode:02X} at {address:#06x}")
        self.opcode = opcode
        self.address = address
