from __future__ import annotations
import json
from datetime import datetime, timezone
from pathlib import Path


def log_event(log_file: Path | None, kind: str, payload: dict):
    """Дописать событие в журнал (JSON lines). log_file=None: журнал выключен."""
    if log_file is None:
        return
    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    record = {
        "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "kind": kind,
        "payload": payload,
    }
    with open(log_file, "a", encoding="utf-8") as f:
        f.write(json.dumps(record, ensure_ascii=False) + "\n")
