# gameboy_vm/ui/device.py
"""
Qtを使ったDevice実装。

ScreenWidgetにフレームを表示し、押下中のホストキーをゲーム機のキーに対応付けます。
ウィンドウが閉じられるか、Escapeが押されるとrunning()はFalseを返します。
"""
import logging
from typing import Dict, Optional

from PySide6.QtWidgets import QApplication
from PySide6.QtCore import Qt

from gameboy_vm.common.types import FrameBuffer
from gameboy_vm.core.device import Device, Key
from .screen import ScreenWidget

logger = logging.getLogger(__name__)

# @intent:utility_function Qtのキー名（"Z", "Return"など）をキーコードに変換します。
def resolve_qt_key(name: str) -> int:
    key = getattr(Qt.Key, f"Key_{name}", None)
    if key is None:
        raise ValueError(f"Unknown host key name: {name}")
    return int(key)

# @intent:responsibility ScreenWidgetを表示先・入力元とするDevice。
class QtDevice(Device):
    def __init__(self, screen: ScreenWidget, key_map: Dict[Key, str]):
        self._screen = screen
        self._key_codes: Dict[Key, int] = {key: resolve_qt_key(name) for key, name in key_map.items()}
        self._escape = int(Qt.Key.Key_Escape)
        self._pending: Optional[FrameBuffer] = None

    @property
    def screen(self) -> ScreenWidget:
        return self._screen

    def set_frame_buffer(self, pixels: FrameBuffer) -> None:
        self._pending = pixels

    # @intent:responsibility 保留中のフレームを描画し、Qtのイベントを処理します。
    # @intent:rationale VMのループはQtのイベントループを回さないため、入力とクローズはここで取り込みます。
    def update(self) -> None:
        if self._pending is not None:
            self._screen.set_frame(self._pending)
            self._pending = None
        QApplication.processEvents()

    def key_down(self, key: Key) -> bool:
        code = self._key_codes.get(key)
        return code is not None and code in self._screen.pressed_keys

    def running(self) -> bool:
        if self._screen.closed:
            return False
        if self._escape in self._screen.pressed_keys:
            logger.info("Escape pressed, stopping")
            self._screen.mark_closed()
            return False
        return True
