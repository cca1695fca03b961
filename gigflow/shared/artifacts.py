from pathlib import Path
import uuid, json
from datetime import datetime, timezone

from gigflow.shared.config import settings

def outbox_dir() -> Path:
    path = Path(settings.STORAGE_DIR) / "outbox"
    path.mkdir(parents=True, exist_ok=True)
    return path

def draft_name(prefix: str, at: datetime) -> str:
    # sorts by creation time within a prefix
    return f"{prefix}-{at:%Y%m%dT%H%M%S}-{uuid.uuid4().hex[:8]}.json"

def save_json(prefix: str, payload: dict) -> str:
    """Write one outbox draft. The file appears complete or not at all."""
    at = datetime.now(timezone.utc)
    path = outbox_dir() / draft_name(prefix, at)
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps({"queued_at": at.isoformat(), **payload}, ensure_ascii=False, indent=2), encoding="utf-8")
    tmp.replace(path)
    return str(path)
