"""
Settings for cowsh.

Loads console flags and shell defaults from a YAML file. A missing or
unreadable file falls back to the built-in defaults.
"""

from pathlib import Path
from typing import Any, Dict, Union
import yaml


SETTING_KEYS = (
    "show_commands",
    "skip_commands",
    "show_outputs",
    "indentator",
    "indent_width",
    "directory_mode",
    "audit_log",
)


def parse_mode(value: Union[int, str]) -> int:
    """Turn a mode given as an int or an octal string ("0755", "755") into an int."""
    if isinstance(value, int):
        return value
    return int(str(value), 8)


class Settings:
    """
    Configuration consumed by the Console and the Shell.

    The file uses a ``cowsh:`` root key; a bare mapping is accepted as well.
    """

    def __init__(self, config_path: str = "config.yaml"):
        """
        Initialize settings.

        Args:
            config_path: Path to the YAML configuration file
        """
        self.config_path = Path(config_path)
        self.config = self._load_config()

        self.show_commands = False
        self.skip_commands = False
        self.show_outputs = False
        self.indentator = " "
        self.indent_width = 3
        self.directory_mode = 0o755
        self.audit_log = "data/audit_log.jsonl"

        self._apply_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from the YAML file."""
        if not self.config_path.exists():
            return self._default_config()

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError):
            return self._default_config()

        if not isinstance(config, dict):
            return self._default_config()
        return config.get("cowsh", config)

    def _default_config(self) -> Dict[str, Any]:
        return {
            "console": {
                "show_commands": False,
                "skip_commands": False,
                "show_outputs": False,
                "indentator": " ",
                "indent_width": 3,
            },
            "shell": {
                "directory_mode": "0755",
                "audit_log": "data/audit_log.jsonl",
            }
        }

    def _apply_config(self) -> None:
        """Copy configuration values onto attributes, keeping defaults for absent keys."""
        console = self.config.get("console") or {}
        shell = self.config.get("shell") or {}

        self.show_commands = bool(console.get("show_commands", self.show_commands))
        self.skip_commands = bool(console.get("skip_commands", self.skip_commands))
        self.show_outputs = bool(console.get("show_outputs", self.show_outputs))
        self.indentator = str(console.get("indentator", self.indentator))
        self.indent_width = int(console.get("indent_width", self.indent_width))

        self.directory_mode = parse_mode(shell.get("directory_mode", self.directory_mode))
        self.audit_log = str(shell.get("audit_log", self.audit_log))

    def override(self, **values: Any) -> "Settings":
        """Replace attributes with the given values, ignoring ``None``. Returns self."""
        for key, value in values.items():
            if value is None:
                continue
            if key not in SETTING_KEYS:
                raise AttributeError(f"Unknown setting: {key}")
            setattr(self, key, value)
        return self

    def as_dict(self) -> Dict[str, Any]:
        return {
            "console": {
                "show_commands": self.show_commands,
                "skip_commands": self.skip_commands,
                "show_outputs": self.show_outputs,
                "indentator": self.indentator,
                "indent_width": self.indent_width,
            },
            "shell": {
                "directory_mode": format(self.directory_mode, "04o"),
                "audit_log": self.audit_log,
            }
        }

    def save_config(self) -> None:
        """Write current settings to the config file, merging into existing content."""
        config = {"cowsh": self.as_dict()}

        if self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    existing = yaml.safe_load(f) or {}
                if isinstance(existing, dict) and isinstance(existing.get("cowsh"), dict):
                    existing["cowsh"].update(config["cowsh"])
                    config = existing
            except (OSError, yaml.YAMLError):
                pass

        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.dump(config, f, default_flow_style=False)
