"""Persistence for completed assessment results saved to a user's profile.

Results are stored as JSON files under ``DATA_DIR`` with a small index so a
user's history can be listed without opening every file.  In-progress
sessions are never written here; they live in the engine's session store.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from civic_core.types import AssessmentSession, AxisScore


log = logging.getLogger(__name__)

DATA_ROOT = Path(os.getenv("DATA_DIR", "data")).resolve()
RESULTS_DIR = DATA_ROOT / "results"
RESULT_INDEX_PATH = DATA_ROOT / "results_index.json"

_LOCK = threading.Lock()


def _ensure_dirs() -> None:
    RESULTS_DIR.mkdir(parents=True, exist_ok=True)
    DATA_ROOT.mkdir(parents=True, exist_ok=True)


def _read_json(path: Path, default: Any) -> Any:
    if not path.exists():
        return default
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        log.warning("unreadable JSON at %s; using default", path)
        return default


def _write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    tmp.replace(path)


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def save_result(session: AssessmentSession, final_scores: List[AxisScore]) -> bool:
    """Persist final axis scores for the session's user. False if there is no user."""

    if not session.user_id:
        return False
    _ensure_dirs()
    saved_at = utcnow_iso()
    payload = {
        "sessionId": session.id,
        "userId": session.user_id,
        "selectedDomains": list(session.selected_domains),
        "completionReason": session.completion_reason,
        "questionsAnswered": len(session.swipes),
        "savedAt": saved_at,
        "scores": [asdict(s) for s in final_scores],
    }
    metadata = {
        "userId": session.user_id,
        "savedAt": saved_at,
        "completionReason": session.completion_reason,
        "questionsAnswered": len(session.swipes),
    }

    with _LOCK:
        index: Dict[str, Dict[str, Any]] = _read_json(RESULT_INDEX_PATH, {})
        index[session.id] = metadata
        _write_json(RESULT_INDEX_PATH, index)

    _write_json(RESULTS_DIR / f"{session.id}.json", payload)
    log.info("saved result for session %s user %s", session.id, session.user_id)
    return True


def load_result(session_id: str) -> Optional[Dict[str, Any]]:
    path = RESULTS_DIR / f"{session_id}.json"
    if not path.exists():
        return None
    return _read_json(path, None)


def delete_result(session_id: str) -> bool:
    removed = False
    with _LOCK:
        index: Dict[str, Dict[str, Any]] = _read_json(RESULT_INDEX_PATH, {})
        if session_id in index:
            index.pop(session_id, None)
            _write_json(RESULT_INDEX_PATH, index)
            removed = True
    path = RESULTS_DIR / f"{session_id}.json"
    if path.exists():
        path.unlink()
    return removed


def list_results_for_user(user_id: str) -> List[Dict[str, Any]]:
    index: Dict[str, Dict[str, Any]] = _read_json(RESULT_INDEX_PATH, {})
    out: List[Dict[str, Any]] = []
    for sid, meta in index.items():
        if meta.get("userId") == user_id:
            item = {"sessionId": sid}
            item.update(meta)
            out.append(item)
    out.sort(key=lambda r: r.get("savedAt", ""), reverse=True)
    return out
