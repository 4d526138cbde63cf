import yaml
from typing import Dict, Any, Optional

from gameboy_vm.core.device import Key
from .models import EmulatorConfig, DisplayConfig, DEFAULT_KEY_BINDINGS

class ConfigLoader:
    def load_from_file(self, path: str) -> EmulatorConfig:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
        return self.parse(data or {})

    def parse(self, data: Dict[str, Any]) -> EmulatorConfig:
        if not isinstance(data, dict):
            raise ValueError("Configuration root must be a mapping.")

        display_data = data.get("display", {}) or {}
        display = DisplayConfig(
            scale=self._parse_int(display_data.get("scale", DisplayConfig.scale)),
            title=str(display_data.get("title", DisplayConfig.title)),
        )
        if display.scale < 1:
            raise ValueError(f"Display scale must be at least 1: {display.scale}")
        if "palette" in display_data:
            palette = [self._parse_int(c) for c in display_data["palette"]]
            if len(palette) != 4:
                raise ValueError("Palette must contain exactly 4 colors.")
            display.palette = tuple(palette)

        return EmulatorConfig(
            cartridge=self._optional_str(data.get("cartridge")),
            boot_rom=self._optional_str(data.get("boot_rom")),
            skip_boot_rom=bool(data.get("skip_boot_rom", False)),
            symbols=self._optional_str(data.get("symbols")),
            debug=bool(data.get("debug", False)),
            breakpoints=[str(bp) for bp in data.get("breakpoints", []) or []],
            display=display,
            key_bindings=self.parse_key_bindings(data.get("keys", {}) or {}),
        )

    # @intent:responsibility 既定の割り当てに上書き分をマージし、全単射であることを検証します。
    def parse_key_bindings(self, overrides: Dict[str, Any]) -> Dict[str, str]:
        bindings = dict(DEFAULT_KEY_BINDINGS)
        valid_names = {key.value for key in Key}
        for name, host_key in overrides.items():
            name = str(name).lower()
            if name not in valid_names:
                raise ValueError(f"Unknown key in bindings: {name}")
            bindings[name] = str(host_key)

        host_keys = list(bindings.values())
        duplicates = sorted({k for k in host_keys if host_keys.count(k) > 1})
        if duplicates:
            raise ValueError(f"Host keys bound more than once: {', '.join(duplicates)}")
        return bindings

    def _optional_str(self, value: Any) -> Optional[str]:
        if value is None:
            return None
        return str(value)

    def _parse_int(self, value: Any) -> int:
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            if value.lower().startswith("0x"):
                return int(value, 16)
            return int(value)
        raise ValueError(f"Invalid integer format: {value}")
