"""
UIフォント管理モジュール。

デバッガウィンドウのレジスタ表示や逆アセンブル表示で使う等幅フォントを選択します。
"""
from PySide6.QtGui import QFont, QFontDatabase

# @intent:constant 優先して使う等幅フォント。Windows、macOS、Linuxの順に代表的なものを並べています。
PREFERRED_MONOSPACE_FONTS = ("Consolas", "Menlo", "Monaco", "DejaVu Sans Mono", "Courier New")

# @intent:responsibility 現在のシステムで利用可能な最適な等幅フォントファミリー名を返します。
def get_monospace_font_family() -> str:
    available_families = set(QFontDatabase.families())
    for family in PREFERRED_MONOSPACE_FONTS:
        if family in available_families:
            return family
    # 見つからなければQtのシステム既定の等幅フォント
    return QFontDatabase.systemFont(QFontDatabase.FixedFont).family()

def get_monospace_font(size: int = 10) -> QFont:
    """
    最適な等幅フォントファミリーと指定サイズのQFontを返します。
    フォントヒントが固定幅であることも明示します。
    """
    font = QFont(get_monospace_font_family(), size)
    font.setStyleHint(QFont.TypeWriter)
    return font
