# gameboy_vm/transport/bus.py
"""
Transport Layer (共通バス)

このモジュールは、CPUから見た16bitアドレス空間を抽象化し、
読み書きアクセスを適切なデバイスに委譲する責務を負います。
また、CPUが消費したサイクル数を周辺機器へ転送するための契約も定義します。
"""
from abc import ABC, abstractmethod
from typing import List, Tuple
from dataclasses import dataclass
from enum import Enum
import logging

from gameboy_vm.core.device import Device

logger = logging.getLogger(__name__)

# @intent:constant マップされていないアドレスを読んだときに返す値（プルアップされたデータバス）。
OPEN_BUS_VALUE = 0xFF
ADDRESS_MASK = 0xFFFF

# @intent:responsibility バスアクセスを記録するためのタイプを定義します。
class BusAccessType(Enum):
    READ = "READ"
    WRITE = "WRITE"

# @intent:responsibility 個々のバスアクセス操作を記録します。
@dataclass(frozen=True) # 不変データ構造
class BusAccess:
    """
    バス上で行われた単一のアクセス（読み込みまたは書き込み）を記録するデータクラス。
    """
    address: int
    data: int # 8bit value
    access_type: BusAccessType

# @intent:responsibility CPUとオーケストレータが依存するバスの抽象インターフェースを定義します。
# @intent:rationale 具象バス（実機相当のInterconnect、テスト用のMemoryMapBus）を
#                  VMやCPUに手を入れずに差し替えられるようにします。
class AddressableBus(ABC):
    """
    16bitアドレス空間と周辺機器のタイミングを束ねる抽象バス。
    read_byte/write_byteはどのアドレスに対しても例外を送出してはなりません。
    """
    # @intent:responsibility 指定されたアドレスから8bitのデータを読み出します。
    # @intent:post-condition マップされていないアドレスではOPEN_BUS_VALUEを返します。
    @abstractmethod
    def read_byte(self, address: int) -> int:
        pass

    # @intent:responsibility 指定されたアドレスに8bitのデータを書き込みます。
    # @intent:post-condition マップされていないアドレスへの書き込みは無視されます。
    @abstractmethod
    def write_byte(self, address: int, data: int) -> None:
        pass

    # @intent:responsibility 全ての周辺機器を正確に`cycles`サイクル分進めます。
    @abstractmethod
    def step(self, cycles: int, device: Device) -> None:
        """
        CPUが消費したサイクル数を受け取り、タイマーや映像走査を進めます。
        フレームが完成した場合は device.set_frame_buffer() で出力します。
        """
        pass

    @abstractmethod
    def get_width(self) -> int:
        pass

    @abstractmethod
    def get_height(self) -> int:
        pass

    # @intent:responsibility ブートROMのオーバーレイが有効かどうかを返します。既定では無効です。
    @property
    def boot_rom_active(self) -> bool:
        return False

    # @intent:responsibility 読み出し可能なコードの配置を表す値を返します。値が変わったらコード領域の内容が変わった可能性があります。
    @property
    def code_layout(self) -> tuple:
        return (self.boot_rom_active,)

# @intent:responsibility バスの抽象デバイスインターフェースを定義します。
class BusDevice(ABC):
    """
    バスに接続されるデバイスの抽象基底クラス。
    全てのデバイスはreadとwriteのインターフェースを実装する必要があります。
    """
    # @intent:responsibility 指定されたアドレスから8bitのデータを読み出す責務を負います。
    # @intent:pre-condition アドレスはデバイスの有効範囲内である必要があります。
    @abstractmethod
    def read(self, address: int) -> int:
        """
        指定されたアドレスから8bitのデータを読み出します。
        アドレスはデバイス内でのオフセットとして扱われます。
        """
        pass

    # @intent:responsibility 指定されたアドレスに8bitのデータを書き込みます。
    # @intent:pre-condition アドレスはデバイスの有効範囲内であり、データは8bit値である必要があります。
    @abstractmethod
    def write(self, address: int, data: int) -> None:
        """
        指定されたアドレスに8bitのデータを書き込みます。
        アドレスはデバイス内でのオフセットとして扱われます。
        """
        pass

# @intent:responsibility 基本的なRAMデバイスの機能を提供します。
class RAM(BusDevice):
    """
    作業RAM、HRAM、テスト用メモリなどに使うRAMデバイス。
    """
    # @intent:responsibility 指定されたサイズのメモリ領域を初期化します。
    # @intent:pre-condition sizeは正の整数である必要があります。
    def __init__(self, size: int):
        if not isinstance(size, int) or size <= 0:
            raise ValueError("RAM size must be a positive integer.")
        self._memory = bytearray(size)
        self._size = size

    # @intent:responsibility 指定されたアドレスから8bitのデータを読み出します。
    # @intent:pre-condition アドレスはRAMの有効範囲内である必要があります。
    def read(self, address: int) -> int:
        if not 0 <= address < self._size:
            raise IndexError(f"Address {address} out of bounds for RAM of size {self._size}.")
        return self._memory[address]

    # @intent:responsibility 指定されたアドレスに8bitのデータを書き込みます。
    # @intent:pre-condition アドレスはRAMの有効範囲内であり、データは8bit値である必要があります。
    def write(self, address: int, data: int) -> None:
        if not 0 <= address < self._size:
            raise IndexError(f"Address {address} out of bounds for RAM of size {self._size}.")
        if not 0 <= data <= 0xFF:
            raise ValueError(f"Data {data} is not an 8-bit value.")
        self._memory[address] = data

    # @intent:responsibility RAMのサイズを返します。
    def get_size(self) -> int:
        return self._size

# @intent:responsibility 読み込み専用メモリ(ROM)の機能を提供します。
class ROM(RAM):
    """
    読み込み専用メモリデバイス。
    通常の書き込み操作は無視されます。初期化用の load_data メソッド経由では書き込み可能です。
    """
    # @intent:rationale ROMへの書き込みは実機では無効なため、例外を投げずに無視します。
    def write(self, address: int, data: int) -> None:
        if not 0 <= address < self._size:
            raise IndexError(f"Address {address} out of bounds for ROM of size {self._size}.")

    # @intent:responsibility ROMの内容を初期化するためのバックドアメソッドです。
    def load_data(self, address: int, data: int) -> None:
        """
        ROMの内容を初期化するために使用します。通常のバスアクセス経由ではありません。
        """
        super().write(address, data)

# @intent:responsibility メモリマップでデバイスを束ね、全アクセスと転送サイクルを記録する汎用バス。
# @intent:rationale 実機の周辺機器を持たないため、CPU単体のテストやサイクル転送の検証に用います。
class MemoryMapBus(AddressableBus):
    """
    メモリアドレス空間を管理し、デバイスへのアクセスをディスパッチする汎用バス。
    バス上で行われた全てのメモリアクセスと、step()で受け取ったサイクル数を記録します。
    LR35902Cpuと組み合わせる場合は、IE(0xFFFF)とIF(0xFF0F)もマップしてください。
    """
    # @intent:responsibility 空のメモリマップとバスアクティビティログを初期化します。
    def __init__(self, width: int = 160, height: int = 144):
        # メモリマップ: (start_address, end_address, device) のタプルリスト
        self._memory_map: List[Tuple[int, int, BusDevice]] = []
        self._bus_activity_log: List[BusAccess] = []
        self._step_log: List[int] = []
        self._width = width
        self._height = height

    # @intent:responsibility バスアクセスをログに記録します。
    def _log_access(self, address: int, data: int, access_type: BusAccessType) -> None:
        self._bus_activity_log.append(BusAccess(address=address, data=data, access_type=access_type))

    # @intent:responsibility 記録されたバスアクティビティログを取得し、クリアします。
    def get_and_clear_activity_log(self) -> List[BusAccess]:
        """
        現在のバスアクティビティログを返し、内部ログをクリアします。
        """
        log = self._bus_activity_log
        self._bus_activity_log = []
        return log

    # @intent:responsibility step()で受け取ったサイクル数の履歴を返します。
    def get_step_log(self) -> List[int]:
        return list(self._step_log)

    # @intent:responsibility これまでにstep()で受け取ったサイクル数の合計を返します。
    @property
    def elapsed_cycles(self) -> int:
        return sum(self._step_log)

    # @intent:responsibility 指定されたアドレス範囲にデバイスを登録します。
    # @intent:pre-condition start_address <= end_addressかつ非負であり、deviceはBusDeviceのインスタンスである必要があります。
    # @intent:rationale アドレス範囲の重複チェックは行いません。先に登録されたデバイスが優先されます。
    def register_device(self, start_address: int, end_address: int, device: BusDevice) -> None:
        """
        指定されたアドレス範囲にデバイスを登録します。
        アドレス範囲の重複チェックは行いません。呼び出し元が責任を持ちます。
        """
        if not (0 <= start_address <= end_address):
            raise ValueError("Invalid address range: start_address must be <= end_address and non-negative.")
        if not isinstance(device, BusDevice):
            raise TypeError("Device must be an instance of a class derived from BusDevice.")

        # デバイスのサイズチェック (RAM/ROMなどの固定サイズデバイスの場合)
        if isinstance(device, RAM):
            expected_size = end_address - start_address + 1
            if device.get_size() != expected_size:
                raise ValueError(
                    f"Registered {type(device).__name__} device size ({device.get_size()} bytes) does not match "
                    f"the specified address range size ({expected_size} bytes)."
                )

        self._memory_map.append((start_address, end_address, device))

    # @intent:responsibility 指定されたアドレスに対応するデバイスとオフセットを検索します。
    # @intent:post-condition デバイスが見つからなかった場合はNoneを返します。
    def _find_device(self, address: int):
        for start, end, device in self._memory_map:
            if start <= address <= end:
                return device, address - start
        return None

    def read_byte(self, address: int) -> int:
        """
        指定されたアドレスから8bitのデータを読み出します。
        アクセスはログに記録されます。
        """
        address &= ADDRESS_MASK
        data = self.peek(address)
        self._log_access(address, data, BusAccessType.READ)
        return data

    # @intent:responsibility ログを記録せずに指定されたアドレスからデータを読み出します。
    def peek(self, address: int) -> int:
        """
        指定されたアドレスから8bitのデータを読み出します（ログ記録なし）。
        デバッガやUIなどのインスペクタ用。
        """
        found = self._find_device(address & ADDRESS_MASK)
        if found is None:
            return OPEN_BUS_VALUE
        device, offset = found
        return device.read(offset)

    def write_byte(self, address: int, data: int) -> None:
        """
        指定されたアドレスに8bitのデータを書き込みます。
        マップされていないアドレスやROMへの書き込みは無視されます。
        """
        address &= ADDRESS_MASK
        data &= 0xFF
        found = self._find_device(address)
        if found is not None:
            device, offset = found
            device.write(offset, data)
        self._log_access(address, data, BusAccessType.WRITE)

    # @intent:responsibility ROMを含むデバイスへ直接データを書き込みます（テストプログラムの配置用）。
    def load(self, address: int, data: bytes) -> None:
        for i, value in enumerate(data):
            found = self._find_device((address + i) & ADDRESS_MASK)
            if found is None:
                logger.warning("Dropping load byte at unmapped address %#06x", address + i)
                continue
            device, offset = found
            if isinstance(device, ROM):
                device.load_data(offset, value)
            else:
                device.write(offset, value)

    # @intent:responsibility 受け取ったサイクル数をそのまま記録します。周辺機器は持ちません。
    def step(self, cycles: int, device: Device) -> None:
        self._step_log.append(cycles)

    def get_width(self) -> int:
        return self._width

    def get_height(self) -> int:
        return self._height
