"""
Tests for the Audit Logger module.
"""

import csv
import io
import json
import os
import tempfile
from pathlib import Path

import pytest

# Add parent directory to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.logger import AuditLogger, AuditEntry, ActionType, ActionStatus


class TestAuditLogger:
    """Test AuditLogger class."""

    @pytest.fixture
    def temp_log(self):
        """Create a temporary log file."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.jsonl', delete=False) as f:
            yield f.name
        os.unlink(f.name)

    @pytest.fixture
    def logger(self, temp_log):
        """Create a logger with temp file."""
        return AuditLogger(log_path=temp_log)

    def test_file_created_on_first_write(self, tmp_path):
        logger = AuditLogger(log_path=str(tmp_path / "nested" / "audit.jsonl"))

        assert not (tmp_path / "nested").exists()
        assert logger.get_recent() == []

        logger.log_action(action_type=ActionType.RUN, description="Run: true")

        assert logger.log_path.exists()
        assert len(logger.get_recent()) == 1

    def test_log_action(self, logger):
        entry = logger.log_action(
            action_type=ActionType.DELETE,
            description="Delete: /tmp/x",
            status=ActionStatus.EXECUTED,
            metadata={"paths": ["/tmp/x"]}
        )

        assert entry.action_description == "Delete: /tmp/x"
        assert entry.status == "executed"

        lines = Path(logger.log_path).read_text().splitlines()
        assert json.loads(lines[-1])["metadata"] == {"paths": ["/tmp/x"]}

    def test_get_recent(self, logger):
        for i in range(5):
            logger.log_action(action_type=ActionType.RUN, description=f"Run {i}")

        entries = logger.get_recent(limit=3)

        assert [e.action_description for e in entries] == ["Run 4", "Run 3", "Run 2"]

    def test_skips_corrupt_lines(self, logger):
        logger.log_action(action_type=ActionType.RUN, description="Before")
        with open(logger.log_path, "a", encoding="utf-8") as f:
            f.write("not json\n")
        logger.log_action(action_type=ActionType.RUN, description="After")

        assert [e.action_description for e in logger.get_recent()] == ["After", "Before"]

    def test_get_by_action_type(self, logger):
        logger.log_action(action_type=ActionType.COPY, description="Copy a")
        logger.log_action(action_type=ActionType.MOVE, description="Move b")
        logger.log_action(action_type=ActionType.COPY, description="Copy c")

        entries = logger.get_by_action_type(ActionType.COPY)

        assert [e.action_description for e in entries] == ["Copy a", "Copy c"]

    def test_get_failed_actions(self, logger):
        logger.log_action(action_type=ActionType.MKDIR, description="Made", status=ActionStatus.EXECUTED)
        logger.log_action(action_type=ActionType.MKDIR, description="Failed", status=ActionStatus.FAILED)

        failed = logger.get_failed_actions()

        assert len(failed) == 1
        assert failed[0].action_description == "Failed"

    def test_export(self, logger):
        logger.log_action(action_type=ActionType.FIND, description="Find in: src", result="2 entries")

        exported = json.loads(logger.export("json"))
        assert exported[0]["action_type"] == "find"

        rows = list(csv.reader(io.StringIO(logger.export("csv"))))
        assert rows[0] == ["timestamp", "action_type", "action_description", "status", "result"]
        assert rows[1][1:] == ["find", "Find in: src", "executed", "2 entries"]

        with pytest.raises(ValueError):
            logger.export("xml")

    def test_csv_export_quotes_fields(self, logger):
        logger.log_action(action_type=ActionType.RUN, description='Run: echo "hi, there"',
                          result="exit status 0")

        rows = list(csv.reader(io.StringIO(logger.export("csv"))))

        assert len(rows) == 2
        assert rows[1][1:] == ["run", 'Run: echo "hi, there"', "executed", "exit status 0"]

    def test_entry_round_trip(self):
        entry = AuditEntry.create(ActionType.RUN, "Run: ls", status=ActionStatus.DRY_RUN)

        assert AuditEntry.from_json(entry.to_json()) == entry


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
