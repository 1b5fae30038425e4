from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Optional, TextIO

from .errors import OutputWriteError


LOG = logging.getLogger("ytdata")


class JSONLWriter:
    """
    Write one compact JSON document per line.

    The file is truncated on open and closed on every exit path. Records
    written before a failure stay in the file.
    """

    def __init__(self, path) -> None:
        self.path = Path(path)
        self.count = 0
        self._fh: Optional[TextIO] = None

    def __enter__(self) -> "JSONLWriter":
        try:
            self._fh = open(self.path, "w", encoding="utf-8", newline="\n")
        except OSError as e:
            raise OutputWriteError(f"Failed to create output file {self.path}: {e}") from e
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        fh, self._fh = self._fh, None
        if fh is None:
            return
        try:
            fh.close()
        except OSError as e:
            if exc_type is None:
                raise OutputWriteError(f"Failed to close output file {self.path}: {e}") from e
            LOG.warning("Failed to close file %s: %s", self.path, e)

    def write(self, record: Any) -> None:
        if self._fh is None:
            raise OutputWriteError(f"Output file {self.path} is not open")

        try:
            line = json.dumps(record, ensure_ascii=False, separators=(",", ":"))
        except (TypeError, ValueError) as e:
            raise OutputWriteError(
                f"Failed to write record {self.count + 1} to {self.path}: {e}") from e

        try:
            self._fh.write(line + "\n")
        except OSError as e:
            raise OutputWriteError(f"Failed to write to {self.path}: {e}") from e
        self.count += 1


def write_jsonl(path, records: Iterable[Any]) -> int:
    with JSONLWriter(path) as w:
        for r in records:
            w.write(r)
    return w.count
