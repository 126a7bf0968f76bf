"""
Tests for the OptionParser module.
"""

import io
from pathlib import Path

import pytest

# Add parent directory to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.console import Console
from core.options import OptionParser


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def parser(output):
    parser = OptionParser("deploy", version="1.2.3", description="Deploy things.",
                          console=Console(file=output))
    parser.add_option("target", "-t", "--target", help="Where to deploy")
    parser.add_option("dry_run", "-n", "--dry-run", is_flag=True)
    parser.add_option("retries", type=int, default=3)
    parser.add_option("mode", "-m", "--mode", choices=["fast", "safe"], default="safe")
    parser.add_option("tag", "--tag", multiple=True)
    return parser


class TestOptionParser:
    """Test option declaration and parsing."""

    def test_defaults(self, parser):
        values = parser.parse([])

        assert values == {
            "target": None,
            "dry_run": False,
            "retries": 3,
            "mode": "safe",
            "tag": (),
        }
        assert parser.args == []

    def test_parse_values(self, parser):
        parser.parse(["-t", "prod", "--dry-run", "--retries", "5", "--tag", "a", "--tag", "b"])

        assert parser["target"] == "prod"
        assert parser.get("dry_run") is True
        assert parser["retries"] == 5
        assert parser["tag"] == ("a", "b")

    def test_positional_arguments(self, parser):
        parser.parse(["one", "-n", "two"])

        assert parser.args == ["one", "two"]
        assert parser["dry_run"]

    def test_default_flag_name(self, parser):
        parser.parse(["--retries", "1"])

        assert "retries" in parser
        assert parser.get("missing", "fallback") == "fallback"

    def test_invalid_choice_exits(self, parser, output):
        with pytest.raises(SystemExit) as exc:
            parser.parse(["--mode", "reckless"])

        assert exc.value.code == 2
        assert "deploy:" in output.getvalue()

    def test_required_option(self, output):
        parser = OptionParser("strict", console=Console(file=output))
        parser.add_option("name", "--name", required=True)

        with pytest.raises(SystemExit) as exc:
            parser.parse([])

        assert exc.value.code == 2
        assert "--name" in output.getvalue()

    def test_required_option_given(self, output):
        parser = OptionParser("strict", console=Console(file=output))
        parser.add_option("name", "--name", required=True)
        parser.add_option("count", "--count", type=int, required=True)

        assert parser.parse(["--name", "x", "--count", "2"]) == {"name": "x", "count": 2}

    def test_version(self, parser, capsys):
        with pytest.raises(SystemExit) as exc:
            parser.parse(["--version"])

        assert exc.value.code == 0
        assert "1.2.3" in capsys.readouterr().out

    def test_help(self, parser, capsys):
        with pytest.raises(SystemExit) as exc:
            parser.parse(["--help"])

        assert exc.value.code == 0
        assert "Where to deploy" in capsys.readouterr().out

    def test_help_text(self, parser):
        text = parser.help()

        assert "Deploy things." in text
        assert "--dry-run" in text

    def test_duplicate_option(self, parser):
        with pytest.raises(ValueError):
            parser.add_option("target", "--other")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
