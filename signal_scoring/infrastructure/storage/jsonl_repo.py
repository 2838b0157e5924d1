# signal_scoring/infrastructure/storage/jsonl_repo.py
from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Iterator


logger = logging.getLogger("jsonl_repo")


class JsonlRepo:
    """Append-only JSONL file, one object per line (UTF-8).

    Unreadable lines are skipped with a warning so one torn write does not
    hide the rest of the file.
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, obj: Dict[str, Any]) -> None:
        if not isinstance(obj, dict):
            raise TypeError("JsonlRepo.append expects a dict")
        row = dict(obj)
        row.setdefault("_write_time_ms", int(time.time() * 1000))
        line = json.dumps(row, ensure_ascii=False, separators=(",", ":"))
        with self.path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")
            f.flush()

    def iter(self) -> Iterator[Dict[str, Any]]:
        if not self.path.exists():
            return
        with self.path.open("r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    obj = json.loads(line)
                except json.JSONDecodeError:
                    logger.warning("%s:%d: skipping malformed line", self.path, lineno)
                    continue
                if isinstance(obj, dict):
                    yield obj

    def read_all(self) -> list[Dict[str, Any]]:
        return list(self.iter())
