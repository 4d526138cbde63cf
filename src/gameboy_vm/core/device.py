# gameboy_vm/core/device.py
"""
Device capability (ホストI/O境界)

エミュレーションコアが表示出力と入力ポーリングに使う抽象インターフェースを定義します。
具体的なウィンドウ/入力バックエンドはこのインターフェースを実装します。
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional, Set

from gameboy_vm.common.types import FrameBuffer

# @intent:responsibility ゲーム機側から見た入力キーを定義します。ホストキーへの対応付けはDevice側の責務です。
class Key(Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    A = "a"
    B = "b"
    START = "start"
    SELECT = "select"

# @intent:responsibility ホスト側の表示・入力・生存状態を提供する抽象デバイス。
# @intent:rationale VMはこのインターフェースのみに依存するため、フロントエンドを差し替えてもコアは変わりません。
class Device(ABC):
    """
    バスとVMから利用されるホストデバイスの抽象基底クラス。
    VMはDeviceを所有せず、step()/run()の呼び出しごとに借用します。
    """
    # @intent:responsibility 完成した1フレーム分のピクセルを保持します。
    # @intent:post-condition 未表示のフレームがあっても上書きされ、キューイングはされません。
    @abstractmethod
    def set_frame_buffer(self, pixels: FrameBuffer) -> None:
        pass

    # @intent:responsibility 保留中のフレームをホストの表示に反映します。保留がなければ何もしません。
    @abstractmethod
    def update(self) -> None:
        pass

    # @intent:responsibility 指定キーの現在の押下状態を同期的に返します。ブロックしてはなりません。
    @abstractmethod
    def key_down(self, key: Key) -> bool:
        pass

    # @intent:responsibility エミュレーションを続行すべきかを返します。Falseになったら実行ループは停止します。
    @abstractmethod
    def running(self) -> bool:
        pass

# @intent:responsibility ウィンドウを持たないDevice実装。テストとヘッドレス実行に使用します。
class HeadlessDevice(Device):
    """
    フレームをメモリ上に保持するだけのDevice。
    max_framesを指定すると、その枚数のフレームを表示した時点でrunning()がFalseになります。
    """
    def __init__(self, width: int = 160, height: int = 144, max_frames: Optional[int] = None):
        self.width = width
        self.height = height
        self.max_frames = max_frames
        self._pending: Optional[List[int]] = None
        self._displayed: Optional[List[int]] = None
        self._pressed: Set[Key] = set()
        self._stopped = False
        self.frames_displayed = 0
        self.update_count = 0

    def set_frame_buffer(self, pixels: FrameBuffer) -> None:
        self._pending = list(pixels[:self.width * self.height])

    def update(self) -> None:
        self.update_count += 1
        if self._pending is None:
            return
        self._displayed = self._pending
        self._pending = None
        self.frames_displayed += 1

    def key_down(self, key: Key) -> bool:
        return key in self._pressed

    def running(self) -> bool:
        if self._stopped:
            return False
        return self.max_frames is None or self.frames_displayed < self.max_frames

    # @intent:responsibility 最後に表示されたフレームを返します。未表示ならNone。
    @property
    def displayed_frame(self) -> Optional[List[int]]:
        return self._displayed

    def press(self, key: Key) -> None:
        self._pressed.add(key)

    def release(self, key: Key) -> None:
        self._pressed.discard(key)

    def stop(self) -> None:
        self._stopped = True
