from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path


@dataclass
class AuditEntry:
    """One audit-log line describing a scan and the suppressions it applied.

    Columns are identified by index only; the log never holds cell values.
    """
    timestamp: str
    action: str
    source: str = ""
    column_reasons: dict[str, str] = field(default_factory=dict)
    exported_count: int = 0
    suppressed_count: int = 0


class AuditLog:
    """Append-only audit trail persisted as a JSONL file.

    Each line in the log file is a JSON-encoded :class:`AuditEntry`.
    """

    def __init__(self, log_path: str | Path | None = None) -> None:
        """Initialize the audit log.

        Parameters
        ----------
        log_path:
            Path to the JSONL log file.  Defaults to
            ``./audit/ertmanifest.audit.jsonl``.  The parent directory is
            created automatically if it does not exist.
        """
        if log_path is None:
            self._path = Path("./audit/ertmanifest.audit.jsonl")
        else:
            self._path = Path(log_path)

        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def log(self, entry: AuditEntry) -> None:
        """Append an :class:`AuditEntry` to the log file."""
        with self._path.open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(asdict(entry), sort_keys=True) + "\n")

    def log_scan(
        self,
        source: str,
        column_reasons: dict[int, str | None],
        action: str = "scan",
    ) -> AuditEntry:
        """Record one scan.

        Parameters
        ----------
        source:
            Input file name as given on the command line.
        column_reasons:
            Column index -> suppression reason, ``None`` for exported columns.
        action:
            High-level description of the action performed.
        """
        reasons = {str(i): r for i, r in sorted(column_reasons.items()) if r is not None}
        entry = AuditEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            action=action,
            source=source,
            column_reasons=reasons,
            exported_count=len(column_reasons) - len(reasons),
            suppressed_count=len(reasons),
        )
        self.log(entry)
        return entry

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def get_entries(self, since: str | None = None) -> list[AuditEntry]:
        """Read entries from the log, optionally filtered by ISO timestamp."""
        entries: list[AuditEntry] = []
        if not self._path.exists():
            return entries

        with self._path.open("r", encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line:
                    continue
                entry = AuditEntry(**json.loads(line))
                if since is not None and entry.timestamp < since:
                    continue
                entries.append(entry)
        return entries

    def summary(self) -> dict:
        """Return ``total_entries``, ``entries_by_action`` and ``total_suppressions``."""
        entries = self.get_entries()
        by_action: dict[str, int] = {}
        total_suppressions = 0
        for entry in entries:
            by_action[entry.action] = by_action.get(entry.action, 0) + 1
            total_suppressions += entry.suppressed_count

        return {
            "total_entries": len(entries),
            "entries_by_action": by_action,
            "total_suppressions": total_suppressions,
        }
