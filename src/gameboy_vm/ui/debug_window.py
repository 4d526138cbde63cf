# gameboy_vm/ui/debug_window.py
"""
デバッガウィンドウの実装。
LCD画面を中央に、逆アセンブルとレジスタをドックに配置し、実行制御を提供します。
"""
import logging
from typing import Optional

from PySide6.QtWidgets import QMainWindow, QDockWidget, QToolBar, QLabel
from PySide6.QtGui import QAction, QCloseEvent
from PySide6.QtCore import Qt, QTimer, Slot

from gameboy_vm.common.errors import IllegalOpcodeError
from gameboy_vm.core.snapshot import Snapshot
from gameboy_vm.debugger.debugger import Debugger, StopReason
from .code_view import CodeView
from .device import QtDevice
from .register_view import RegisterView
from .screen import ScreenWidget

logger = logging.getLogger(__name__)

# @intent:constant タイマー1回あたりに実行する最大ステップ数。
RUN_SLICE_STEPS = 20000

# @intent:responsibility 画面、逆アセンブル、レジスタを並べ、デバッガの実行・停止・ステップを操作するメインウィンドウ。
class DebugWindow(QMainWindow):
    """
    Debugger.run()をQTimerから小刻みに呼び出して実行します。
    Device.update()がQtのイベントを処理するため、実行はGUIスレッドで行います。
    """
    def __init__(self, debugger: Debugger, device: QtDevice, title: str = "gameboy-vm", parent=None):
        super().__init__(parent)
        self.setWindowTitle(f"{title} [debug]")
        self.debugger = debugger
        self.device = device
        self.running = False
        self._code_layout = debugger.vm.bus.code_layout

        self.setCentralWidget(device.screen)
        self._create_toolbar()
        self._create_docks()
        self.status_label = QLabel("Paused")
        self.statusBar().addWidget(self.status_label)

        self.timer = QTimer(self)
        self.timer.setInterval(0)
        self.timer.timeout.connect(self._run_slice)

        self._update_ui_state(False)
        self.refresh_views()

    def _create_toolbar(self):
        toolbar = QToolBar("Main Toolbar")
        self.addToolBar(toolbar)

        self.run_action = QAction("Run", self)
        self.run_action.triggered.connect(self.start)
        toolbar.addAction(self.run_action)

        self.pause_action = QAction("Pause", self)
        self.pause_action.triggered.connect(self.pause)
        toolbar.addAction(self.pause_action)

        self.step_action = QAction("Step", self)
        self.step_action.setShortcut("F10")
        self.step_action.triggered.connect(self.step)
        toolbar.addAction(self.step_action)

    def _create_docks(self):
        code_dock = QDockWidget("Disassembly", self)
        self.code_view = CodeView()
        self.code_view.set_symbols(self.debugger.symbols)
        code_dock.setWidget(self.code_view)
        self.addDockWidget(Qt.LeftDockWidgetArea, code_dock)

        register_dock = QDockWidget("Registers", self)
        self.register_view = RegisterView()
        self.register_view.set_cpu(self.debugger.vm.cpu)
        register_dock.setWidget(self.register_view)
        self.addDockWidget(Qt.RightDockWidgetArea, register_dock)

    def _update_ui_state(self, is_running: bool):
        self.running = is_running
        self.run_action.setEnabled(not is_running)
        self.step_action.setEnabled(not is_running)
        self.pause_action.setEnabled(is_running)

    # @intent:responsibility 現在のCPU状態で逆アセンブルとレジスタ表示を更新します。
    def refresh_views(self, snapshot: Optional[Snapshot] = None):
        vm = self.debugger.vm
        pc = vm.cpu.get_state().pc
        if vm.bus.code_layout != self._code_layout:
            # オーバーレイの解除やバンク切り替えでROM領域の内容が変わる
            self._code_layout = vm.bus.code_layout
            self.code_view.reset_cache()
        self.register_view.update_registers()
        self.code_view.update_code(vm.cpu, vm.bus, pc)
        if snapshot is not None:
            self.status_label.setText(f"{snapshot.address:04X}  {snapshot.metadata.symbol_info}  "
                                      f"(cycles: {snapshot.metadata.cycle_count})")

    @Slot()
    def start(self):
        self._update_ui_state(True)
        self.status_label.setText("Running...")
        self.timer.start()

    @Slot()
    def pause(self):
        self.timer.stop()
        self.debugger.stop()
        self._update_ui_state(False)
        self.refresh_views(self.debugger.get_last_snapshot())

    @Slot()
    def step(self):
        if not self.device.running():
            self.close()
            return
        try:
            snapshot = self.debugger.step_instruction(self.device)
        except IllegalOpcodeError as e:
            self._halt_on_error(e)
            return
        self.refresh_views(snapshot)

    # @intent:responsibility 一定ステップ数だけ実行し、停止理由に応じてUIを更新します。
    @Slot()
    def _run_slice(self):
        try:
            reason = self.debugger.run(self.device, max_steps=RUN_SLICE_STEPS)
        except IllegalOpcodeError as e:
            self._halt_on_error(e)
            return
        if reason is StopReason.STEP_LIMIT:
            return
        self.timer.stop()
        self._update_ui_state(False)
        if reason is StopReason.DEVICE_STOPPED:
            self.close()
            return
        snapshot = self.debugger.get_last_snapshot()
        self.refresh_views(snapshot)
        if reason is StopReason.BREAKPOINT:
            pc = self.debugger.vm.cpu.get_state().pc
            label = self.debugger.symbol_at(pc)
            self.status_label.setText(f"Breakpoint at {pc:04X}" + (f" ({label})" if label else ""))

    # @intent:responsibility 未定義オペコードで実行を止め、停止中の表示に戻します。
    # PCは未定義オペコードを指したままなので、再開しても同じ位置で失敗します。
    def _halt_on_error(self, error: IllegalOpcodeError):
        self.timer.stop()
        self.debugger.stop()
        self._update_ui_state(False)
        logger.error("%s", error)
        self.refresh_views()
        self.status_label.setText(str(error))

    def closeEvent(self, event: QCloseEvent):
        self.timer.stop()
        self.debugger.stop()
        self.device.screen.mark_closed()
        event.accept()
