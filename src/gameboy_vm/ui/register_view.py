# gameboy_vm/ui/register_view.py
"""
CPUのレジスタとフラグを表示するウィジェット。
AbstractCpuのget_register_layout()/get_flag_state()から動的にUIを構築します。
"""
from typing import Dict, Optional
from PySide6.QtWidgets import QWidget, QVBoxLayout, QHBoxLayout, QFormLayout, QLabel, QGroupBox
from PySide6.QtCore import Qt

from gameboy_vm.core.cpu import AbstractCpu
from gameboy_vm.ui.fonts import get_monospace_font_family

GROUP_STYLE = """
    QGroupBox {
        font-weight: bold;
        border: 1px solid #222;
        border-radius: 4px;
        margin-top: 20px;
        color: #EEE;
        background-color: #121212;
    }
    QGroupBox::title {
        subcontrol-origin: margin;
        subcontrol-position: top left;
        padding: 0 5px;
        left: 10px;
        color: #00AAAA;
    }
"""

# @intent:responsibility レジスタグループごとに値を16進で表示し、末尾にフラグ行を置くウィジェット。
class RegisterView(QWidget):
    """
    CPUのレジスタ状態を表示するウィジェット。
    set_cpu()でレイアウトを構築し、update_registers()で値を更新します。
    """
    def __init__(self, parent=None):
        super().__init__(parent)
        self.setStyleSheet("background-color: #121212; color: #BBBBBB;")

        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(5, 5, 5, 5)

        self._font_family = get_monospace_font_family()
        self._register_labels: Dict[str, QLabel] = {}
        self._register_widths: Dict[str, int] = {}
        self._flag_labels: Dict[str, QLabel] = {}
        self._cpu: Optional[AbstractCpu] = None

    # @intent:responsibility 表示対象のCPUを設定し、UIレイアウトを構築し直します。
    def set_cpu(self, cpu: AbstractCpu) -> None:
        self._cpu = cpu
        self._setup_ui()
        self.update_registers()

    def _clear(self):
        while self.layout.count():
            item = self.layout.takeAt(0)
            if item.widget():
                item.widget().deleteLater()
        self._register_labels.clear()
        self._register_widths.clear()
        self._flag_labels.clear()

    def _value_label(self, text: str) -> QLabel:
        label = QLabel(text)
        label.setStyleSheet(f"font-family: '{self._font_family}', monospace; color: #FFD700;")
        label.setAlignment(Qt.AlignRight)
        return label

    def _setup_ui(self):
        self._clear()

        for group in self._cpu.get_register_layout():
            group_box = QGroupBox(group.group_name)
            group_box.setStyleSheet(GROUP_STYLE)
            group_layout = QFormLayout(group_box)
            group_layout.setLabelAlignment(Qt.AlignLeft)
            group_layout.setContentsMargins(10, 15, 10, 10)
            group_layout.setSpacing(5)

            for reg in group.registers:
                hex_width = (reg.width + 3) // 4
                self._register_widths[reg.name] = hex_width
                label_value = self._value_label(f"${'0' * hex_width}")
                group_layout.addRow(QLabel(f"{reg.name}:"), label_value)
                self._register_labels[reg.name] = label_value

            self.layout.addWidget(group_box)

        flag_box = QGroupBox("Flags")
        flag_box.setStyleSheet(GROUP_STYLE)
        flag_layout = QHBoxLayout(flag_box)
        flag_layout.setContentsMargins(10, 15, 10, 10)
        for flag_name in self._cpu.get_flag_state():
            flag_layout.addWidget(QLabel(f"{flag_name}:"))
            label_value = self._value_label("0")
            label_value.setFixedWidth(15)
            flag_layout.addWidget(label_value)
            self._flag_labels[flag_name] = label_value
        flag_layout.addStretch(1)
        self.layout.addWidget(flag_box)

        self.layout.addStretch()

    # @intent:responsibility 現在のCPU状態を取得し、レジスタとフラグの表示値を更新します。
    def update_registers(self):
        if not self._cpu:
            return

        for name, value in self._cpu.get_register_map().items():
            if name in self._register_labels:
                width = self._register_widths[name]
                self._register_labels[name].setText(f"${value:0{width}X}")

        for name, is_set in self._cpu.get_flag_state().items():
            if name in self._flag_labels:
                self._flag_labels[name].setText("1" if is_set else "0")

    # @intent:responsibility テスト用に、表示中のレジスタ値の文字列を返します。
    def register_text(self, name: str) -> str:
        return self._register_labels[name].text()

    def flag_text(self, name: str) -> str:
        return self._flag_labels[name].text()
