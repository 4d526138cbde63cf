# gameboy_vm/ui/screen.py
"""
LCD画面ウィジェット。

0xRRGGBB形式のフレームバッファをQImageに変換し、整数倍に拡大して描画します。
キー入力とウィンドウのクローズもここで受け取り、QtDeviceが参照します。
"""
from array import array
from typing import Optional, Set

from PySide6.QtWidgets import QWidget
from PySide6.QtGui import QImage, QPainter, QKeyEvent, QCloseEvent, QPaintEvent
from PySide6.QtCore import Qt

from gameboy_vm.common.types import FrameBuffer

OPAQUE_ALPHA = 0xFF000000

# @intent:responsibility 1フレーム分のピクセル列を描画し、押下中のホストキーを記録するUIウィジェット。
class ScreenWidget(QWidget):
    def __init__(self, width: int = 160, height: int = 144, scale: int = 2, parent=None):
        super().__init__(parent)
        if scale < 1:
            raise ValueError(f"Scale must be at least 1: {scale}")
        self.frame_width = width
        self.frame_height = height
        self.scale = scale
        self.pressed_keys: Set[int] = set()
        self.closed = False
        self._image: Optional[QImage] = None

        self.setFixedSize(width * scale, height * scale)
        self.setFocusPolicy(Qt.StrongFocus)
        self.setStyleSheet("background-color: #000000;")

    # @intent:responsibility ピクセル列からQImageを作り直し、再描画を要求します。
    # @intent:pre-condition pixelsは少なくともwidth*height個の0xRRGGBB値を含みます。
    def set_frame(self, pixels: FrameBuffer) -> None:
        count = self.frame_width * self.frame_height
        data = array('I', (p | OPAQUE_ALPHA for p in pixels[:count]))
        image = QImage(data.tobytes(), self.frame_width, self.frame_height, QImage.Format_RGB32)
        # QImageは元のバッファを参照するため、コピーして所有させる
        self._image = image.copy()
        self.update()

    @property
    def image(self) -> Optional[QImage]:
        return self._image

    def mark_closed(self) -> None:
        self.closed = True

    def paintEvent(self, event: QPaintEvent):
        painter = QPainter(self)
        if self._image is None:
            painter.fillRect(self.rect(), Qt.black)
        else:
            # 拡大はニアレストネイバーのまま（ドットをぼかさない）
            painter.setRenderHint(QPainter.SmoothPixmapTransform, False)
            painter.drawImage(self.rect(), self._image)
        painter.end()

    def keyPressEvent(self, event: QKeyEvent):
        if event.isAutoRepeat():
            return
        self.pressed_keys.add(int(event.key()))

    def keyReleaseEvent(self, event: QKeyEvent):
        if event.isAutoRepeat():
            return
        self.pressed_keys.discard(int(event.key()))

    def focusOutEvent(self, event):
        # フォーカスを失うとリリースイベントが届かないため、押下状態を捨てる
        self.pressed_keys.clear()
        super().focusOutEvent(event)

    def closeEvent(self, event: QCloseEvent):
        self.mark_closed()
        event.accept()
