"""Append-only visit log backed by a newline-delimited JSON file.

Every record is one line. There is no index and no locking: reads scan the
whole file, and concurrent appends rely on the filesystem's append-mode
behaviour for small writes.
"""

import json
from os import PathLike
from pathlib import Path
from typing import Any


class VisitLogCorruptError(ValueError):
    """A line in the visit log is not a JSON object."""

    def __init__(self, path: Path, line_no: int, reason: str) -> None:
        self.path = path
        self.line_no = line_no
        super().__init__(f"{path}:{line_no}: {reason}")


def encode_record(record: dict[str, Any]) -> str:
    """Serialise a record to one ASCII log line.

    Raises ``UnicodeEncodeError`` for text that is not valid UTF-8, such as a
    lone surrogate; it could be stored escaped but never served back.
    """
    json.dumps(record, ensure_ascii=False).encode("utf-8")
    return json.dumps(record)


class VisitLogStore:
    def __init__(self, path: str | PathLike[str]) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def append(self, record: dict[str, Any]) -> None:
        """Append one record. Creates the file if absent; ``OSError`` propagates."""
        self.append_line(encode_record(record))

    def append_line(self, line: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as fh:
            fh.write(line + "\n")

    def read_all(self) -> list[dict[str, Any]]:
        """Return every record, most recent first.

        A missing file is an empty log. A single malformed line aborts the
        whole read with ``VisitLogCorruptError``.
        """
        if not self.path.exists():
            return []
        text = self.path.read_text(encoding="utf-8")
        records: list[dict[str, Any]] = []
        # Records end at "\n" only, never at U+2028, U+2029 or U+0085
        for line_no, line in enumerate(text.split("\n"), start=1):
            if not line.strip():
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as e:
                raise VisitLogCorruptError(self.path, line_no, e.msg) from e
            if not isinstance(record, dict):
                raise VisitLogCorruptError(self.path, line_no, "not a JSON object")
            records.append(record)
        records.reverse()
        return records
