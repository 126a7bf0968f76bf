"""
Audit Logger for cowsh.

Keeps an append-only JSONL record of every shell operation (commands run,
entries deleted, copied, moved, directories created) so a session can be
reviewed after the fact.
"""

import csv
import io
import json
from dataclasses import dataclass, asdict
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Dict, Any, Iterator
from enum import Enum


class ActionType(Enum):
    """Kinds of shell operations recorded in the log."""
    RUN = "run"
    DELETE = "delete"
    MKDIR = "mkdir"
    COPY = "copy"
    MOVE = "move"
    FIND = "find"


class ActionStatus(Enum):
    """Outcome of a recorded operation."""
    EXECUTED = "executed"
    FAILED = "failed"
    DRY_RUN = "dry_run"


@dataclass
class AuditEntry:
    """A single line of the audit log."""
    timestamp: str
    action_type: str
    action_description: str
    status: str
    result: Optional[str]
    metadata: Dict[str, Any]

    @classmethod
    def create(
        cls,
        action_type: ActionType,
        action_description: str,
        status: ActionStatus = ActionStatus.EXECUTED,
        result: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> "AuditEntry":
        """Build an entry stamped with the current time."""
        return cls(
            timestamp=datetime.now().isoformat(),
            action_type=action_type.value,
            action_description=action_description,
            status=status.value,
            result=result,
            metadata=metadata or {}
        )

    def to_json(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)

    @classmethod
    def from_json(cls, json_str: str) -> "AuditEntry":
        return cls(**json.loads(json_str))


class AuditLogger:
    """
    Append-only operation log.

    Entries are written one per line as JSON. Lines that fail to parse are
    skipped when reading back.
    """

    def __init__(self, log_path: str = "data/audit_log.jsonl"):
        """
        Initialize the audit logger.

        Args:
            log_path: Path to the JSONL log file, created on the first write
        """
        self.log_path = Path(log_path)

    def log(self, entry: AuditEntry) -> None:
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(entry.to_json() + "\n")

    def log_action(
        self,
        action_type: ActionType,
        description: str,
        status: ActionStatus = ActionStatus.EXECUTED,
        result: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> AuditEntry:
        """
        Create and append an entry in one call.

        Returns the created AuditEntry.
        """
        entry = AuditEntry.create(
            action_type=action_type,
            action_description=description,
            status=status,
            result=result,
            metadata=metadata
        )
        self.log(entry)
        return entry

    def _iter_entries(self) -> Iterator[AuditEntry]:
        """Yield entries in file order, oldest first."""
        if not self.log_path.exists():
            return

        with open(self.log_path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    yield AuditEntry.from_json(line)
                except (json.JSONDecodeError, TypeError):
                    continue

    def get_recent(self, limit: int = 100) -> List[AuditEntry]:
        """
        Get the most recent entries.

        Args:
            limit: Maximum number of entries to return

        Returns:
            List of AuditEntry objects, most recent first
        """
        entries = list(self._iter_entries())
        return list(reversed(entries[-limit:])) if limit > 0 else []

    def get_by_action_type(self, action_type: ActionType, limit: int = 100) -> List[AuditEntry]:
        """Get entries of one action type, oldest first."""
        matches = []
        for entry in self._iter_entries():
            if len(matches) >= limit:
                break
            if entry.action_type == action_type.value:
                matches.append(entry)
        return matches

    def get_failed_actions(self, limit: int = 50) -> List[AuditEntry]:
        """Get operations that ended in failure, oldest first."""
        failed = []
        for entry in self._iter_entries():
            if len(failed) >= limit:
                break
            if entry.status == ActionStatus.FAILED.value:
                failed.append(entry)
        return failed

    def export(self, format: str = "json") -> str:
        """
        Export the whole log.

        Args:
            format: Export format ("json" or "csv")

        Returns:
            String containing the exported data
        """
        entries = list(self._iter_entries())

        if format == "json":
            return json.dumps([asdict(e) for e in entries], indent=2)
        elif format == "csv":
            buffer = io.StringIO()
            writer = csv.writer(buffer, lineterminator="\n")
            writer.writerow(["timestamp", "action_type", "action_description", "status", "result"])
            for e in entries:
                writer.writerow([e.timestamp, e.action_type, e.action_description, e.status, e.result or ""])
            return buffer.getvalue()
        else:
            raise ValueError(f"Unsupported export format: {format}")
