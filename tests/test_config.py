"""
Tests for the Settings module.
"""

import os
import tempfile
from pathlib import Path

import pytest
import yaml

# Add parent directory to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import Settings, parse_mode


class TestParseMode:
    """Test mode parsing."""

    def test_octal_strings(self):
        assert parse_mode("0755") == 0o755
        assert parse_mode("700") == 0o700

    def test_int_passthrough(self):
        assert parse_mode(0o644) == 0o644


class TestSettings:
    """Test Settings loading and saving."""

    @pytest.fixture
    def temp_config(self):
        """Create a temporary config file."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            f.write("""cowsh:
  console:
    show_commands: true
    indentator: "."
  shell:
    directory_mode: "0700"
    audit_log: logs/ops.jsonl
""")
        yield f.name
        os.unlink(f.name)

    def test_defaults_when_missing(self, tmp_path):
        settings = Settings(config_path=str(tmp_path / "missing.yaml"))

        assert not settings.show_commands
        assert not settings.skip_commands
        assert settings.indentator == " "
        assert settings.directory_mode == 0o755
        assert settings.audit_log == "data/audit_log.jsonl"

    def test_load_file(self, temp_config):
        settings = Settings(config_path=temp_config)

        assert settings.show_commands
        assert not settings.skip_commands
        assert settings.indentator == "."
        assert settings.indent_width == 3
        assert settings.directory_mode == 0o700
        assert settings.audit_log == "logs/ops.jsonl"

    def test_bare_mapping(self, tmp_path):
        path = tmp_path / "bare.yaml"
        path.write_text("console:\n  skip_commands: true\n")

        assert Settings(config_path=str(path)).skip_commands

    def test_invalid_yaml_falls_back(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("console: [unclosed\n")

        settings = Settings(config_path=str(path))

        assert settings.directory_mode == 0o755

    def test_override(self, tmp_path):
        settings = Settings(config_path=str(tmp_path / "missing.yaml"))
        settings.override(skip_commands=True, show_outputs=None)

        assert settings.skip_commands
        assert not settings.show_outputs

    def test_override_unknown(self, tmp_path):
        settings = Settings(config_path=str(tmp_path / "missing.yaml"))

        with pytest.raises(AttributeError):
            settings.override(colour=True)

    def test_save_config(self, tmp_path):
        path = tmp_path / "saved.yaml"
        path.write_text("other_tool:\n  key: value\ncowsh:\n  console:\n    show_outputs: false\n")

        settings = Settings(config_path=str(path))
        settings.override(show_outputs=True, directory_mode=0o750)
        settings.save_config()

        data = yaml.safe_load(path.read_text())
        assert data["other_tool"] == {"key": "value"}
        assert data["cowsh"]["console"]["show_outputs"] is True
        assert data["cowsh"]["shell"]["directory_mode"] == "0750"

        reloaded = Settings(config_path=str(path))
        assert reloaded.show_outputs
        assert reloaded.directory_mode == 0o750


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
