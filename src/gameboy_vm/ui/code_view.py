"""
逆アセンブルコードを表示するウィジェット。
"""
from typing import Optional

from PySide6.QtWidgets import QWidget, QVBoxLayout, QTableWidget, QTableWidgetItem, QHeaderView
from PySide6.QtGui import QColor

from gameboy_vm.common.types import DisassemblyListing, SymbolMap
from gameboy_vm.core.cpu import AbstractCpu
from gameboy_vm.transport.bus import AddressableBus
from gameboy_vm.ui.fonts import get_monospace_font

HIGHLIGHT_COLOR = QColor("#404000")
NORMAL_COLOR = QColor("#101010")

# @intent:responsibility PC周辺を逆アセンブルして表形式で表示し、現在のPCの行をハイライトします。
class CodeView(QWidget):
    """
    逆アセンブルコードを表示するウィジェット。
    PCが表示中の範囲にあれば再逆アセンブルせず、ハイライトだけを移動します。
    """
    def __init__(self, window_size: int = 64, parent=None):
        super().__init__(parent)
        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(0, 0, 0, 0)

        self.table = QTableWidget()
        self.table.setColumnCount(4)
        self.table.setHorizontalHeaderLabels(["Address", "Label", "Bytes", "Mnemonic"])
        header = self.table.horizontalHeader()
        header.setSectionResizeMode(0, QHeaderView.ResizeToContents)
        header.setSectionResizeMode(1, QHeaderView.ResizeToContents)
        header.setSectionResizeMode(2, QHeaderView.ResizeToContents)
        header.setSectionResizeMode(3, QHeaderView.Stretch)
        self.table.setFont(get_monospace_font(10))
        self.table.verticalHeader().setVisible(False)
        self.table.setEditTriggers(QTableWidget.NoEditTriggers)
        self.table.setSelectionBehavior(QTableWidget.SelectRows)
        self.table.setShowGrid(False)
        self.table.setStyleSheet("background-color: #101010; color: #BBBBBB; gridline-color: #303030;")
        self.layout.addWidget(self.table)

        self.window_size = window_size
        self.disassembled_data: DisassemblyListing = []
        self.highlighted_row = -1
        self._labels = {}

    def set_symbols(self, symbols: SymbolMap) -> None:
        self._labels = {addr: name for name, addr in symbols.items()}
        self.reset_cache()

    # @intent:responsibility 指定されたPC周辺のメモリを逆アセンブルして表示を更新します。
    def update_code(self, cpu: AbstractCpu, bus: AddressableBus, pc: int) -> None:
        row_index = self._row_of(pc)
        if row_index is None:
            self.disassembled_data = cpu.disassemble(bus, pc, self.window_size)
            self.table.setRowCount(len(self.disassembled_data))
            for row, (addr, hex_dump, mnemonic) in enumerate(self.disassembled_data):
                self.table.setItem(row, 0, QTableWidgetItem(f"{addr:04X}"))
                self.table.setItem(row, 1, QTableWidgetItem(self._labels.get(addr, "")))
                self.table.setItem(row, 2, QTableWidgetItem(hex_dump))
                self.table.setItem(row, 3, QTableWidgetItem(mnemonic))
            row_index = 0

        self._highlight(row_index)

    def _row_of(self, pc: int) -> Optional[int]:
        for i, (addr, _, _) in enumerate(self.disassembled_data):
            if addr == pc:
                return i
        return None

    def _highlight(self, row_index: int) -> None:
        for row in range(self.table.rowCount()):
            color = HIGHLIGHT_COLOR if row == row_index else NORMAL_COLOR
            for column in range(self.table.columnCount()):
                self.table.item(row, column).setBackground(color)
        self.highlighted_row = row_index

        # 先の数行まで見えるようにスクロール
        look_ahead = min(row_index + 5, self.table.rowCount() - 1)
        self.table.scrollToItem(self.table.item(row_index, 0), QTableWidget.EnsureVisible)
        if look_ahead > row_index:
            self.table.scrollToItem(self.table.item(look_ahead, 0), QTableWidget.EnsureVisible)

    # @intent:responsibility キャッシュされた逆アセンブル結果を破棄します。メモリ内容が変わった後に呼びます。
    def reset_cache(self) -> None:
        self.disassembled_data = []
        self.highlighted_row = -1
        self.table.setRowCount(0)
