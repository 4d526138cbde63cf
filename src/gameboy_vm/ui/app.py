# gameboy_vm/ui/app.py
"""
アプリケーションのエントリポイント。
コマンドライン引数と設定ファイルからVMを構築し、ウィンドウ（またはヘッドレス）で実行します。
"""
import argparse
import logging
import sys
from typing import List, Optional

from gameboy_vm.common.errors import IllegalOpcodeError, RomLoadError
from gameboy_vm.config.builder import SystemBuilder
from gameboy_vm.config.loader import ConfigLoader
from gameboy_vm.config.models import EmulatorConfig
from gameboy_vm.core.device import Device, HeadlessDevice
from gameboy_vm.debugger.debugger import Debugger

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gameboy-vm", description="Game Boy (DMG) emulator")
    parser.add_argument("cartridge", nargs="?", help="Cartridge ROM image")
    parser.add_argument("-b", "--boot-rom", help="256-byte boot ROM image")
    parser.add_argument("--skip-boot-rom", action="store_true",
                        help="Start at $0100 with the post-boot register and I/O state")
    parser.add_argument("-s", "--sym", help="Symbol file (BB:AAAA label)")
    parser.add_argument("-d", "--debug", action="store_true", help="Open the debugger window")
    parser.add_argument("--break", dest="breakpoints", action="append", default=[],
                        metavar="ADDR|SYMBOL", help="PC breakpoint (repeatable)")
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--scale", type=int, help="Integer window scale")
    parser.add_argument("--headless", action="store_true", help="Run without a window")
    parser.add_argument("--frames", type=int, help="Stop after N frames (headless)")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging level")
    return parser

# @intent:responsibility 設定ファイルの内容にコマンドライン引数を上書きした設定を返します。
def resolve_config(args: argparse.Namespace) -> EmulatorConfig:
    config = ConfigLoader().load_from_file(args.config) if args.config else EmulatorConfig()
    if args.cartridge:
        config.cartridge = args.cartridge
    if args.boot_rom:
        config.boot_rom = args.boot_rom
    if args.skip_boot_rom:
        config.skip_boot_rom = True
    if args.sym:
        config.symbols = args.sym
    if args.debug:
        config.debug = True
    if args.breakpoints:
        config.breakpoints = config.breakpoints + list(args.breakpoints)
    if args.scale is not None:
        if args.scale < 1:
            raise ValueError(f"Display scale must be at least 1: {args.scale}")
        config.display.scale = args.scale
    return config

def _run_until_stopped(debugger: Optional[Debugger], vm, device: Device) -> None:
    if debugger is not None:
        reason = debugger.run(device)
        snapshot = debugger.get_last_snapshot()
        logger.info("Stopped: %s%s", reason.value,
                    f" at {snapshot.metadata.symbol_info}" if snapshot else "")
    else:
        vm.run(device)

# @intent:responsibility アプリケーションのメイン関数。終了コードを返します。
def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT)

    builder = SystemBuilder()
    try:
        config = resolve_config(args)
        vm = builder.build(config)
        symbols = builder.load_symbols(config)
        breakpoints = builder.build_breakpoints(config, symbols)
    except RomLoadError as e:
        logger.error("%s", e)
        return 1
    except (OSError, ValueError) as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    debugger = None
    if config.debug or breakpoints:
        debugger = Debugger(vm, symbols)
        for condition in breakpoints:
            debugger.add_breakpoint(condition)

    if args.headless:
        device = HeadlessDevice(vm.get_width(), vm.get_height(), max_frames=args.frames)
        try:
            _run_until_stopped(debugger, vm, device)
        except IllegalOpcodeError as e:
            logger.error("Execution stopped: %s", e)
            return 1
        serial_output = getattr(vm.bus, "serial_output", b"")
        if serial_output:
            logger.info("Serial output: %s", serial_output.decode("ascii", errors="replace"))
        return 0

    # Qtはウィンドウを使う場合にのみ読み込む
    from PySide6.QtWidgets import QApplication
    from .device import QtDevice
    from .screen import ScreenWidget

    app = QApplication.instance() or QApplication(sys.argv[:1])
    screen = ScreenWidget(vm.get_width(), vm.get_height(), config.display.scale)
    try:
        device = QtDevice(screen, config.key_map())
    except ValueError as e:
        logger.error("Invalid key binding: %s", e)
        return 1

    if config.debug:
        from .debug_window import DebugWindow
        window = DebugWindow(debugger, device, config.display.title)
        window.show()
        app.exec()
    else:
        screen.setWindowTitle(config.display.title)
        screen.show()
        try:
            _run_until_stopped(debugger, vm, device)
        except IllegalOpcodeError as e:
            logger.error("Execution stopped: %s", e)
            return 1
        finally:
            screen.close()
    return 0

if __name__ == '__main__':
    sys.exit(main())
