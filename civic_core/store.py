"""Session storage behind one small contract.

The session manager never holds on to stored objects: it reads a copy,
mutates it, and writes it back with the version it read. A store refuses the
write if someone else saved in between, which turns a lost update into a
visible ``VersionConflict``.
"""
from __future__ import annotations

import copy
import threading
from typing import Dict, List, Optional

from .types import AssessmentSession


class VersionConflict(RuntimeError):
    def __init__(self, session_id: str, expected: Optional[int], actual: Optional[int]):
        super().__init__(
            f"session {session_id} was modified concurrently (expected v{expected}, found v{actual})"
        )
        self.session_id = session_id
        self.expected = expected
        self.actual = actual


class SessionStore:
    def get(self, session_id: str) -> Optional[AssessmentSession]:
        raise NotImplementedError

    def save(self, session: AssessmentSession, expected_version: Optional[int]) -> AssessmentSession:
        """Store ``session`` if the stored version still equals ``expected_version``.

        ``expected_version=None`` means the session must not exist yet.
        Returns the stored copy with its version bumped.
        """
        raise NotImplementedError

    def delete(self, session_id: str) -> bool:
        raise NotImplementedError

    def ids(self) -> List[str]:
        raise NotImplementedError

    def __contains__(self, session_id: object) -> bool:
        return isinstance(session_id, str) and self.get(session_id) is not None

    def __len__(self) -> int:
        return len(self.ids())


class InMemorySessionStore(SessionStore):
    """Process-local store. Sessions live until deleted or the process exits."""

    def __init__(self) -> None:
        self._data: Dict[str, AssessmentSession] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> Optional[AssessmentSession]:
        with self._lock:
            sess = self._data.get(session_id)
            return copy.deepcopy(sess) if sess is not None else None

    def save(self, session: AssessmentSession, expected_version: Optional[int]) -> AssessmentSession:
        with self._lock:
            current = self._data.get(session.id)
            actual = current.version if current is not None else None
            if actual != expected_version:
                raise VersionConflict(session.id, expected_version, actual)
            stored = copy.deepcopy(session)
            stored.version = 0 if actual is None else actual + 1
            self._data[session.id] = stored
            session.version = stored.version
            return copy.deepcopy(stored)

    def delete(self, session_id: str) -> bool:
        with self._lock:
            return self._data.pop(session_id, None) is not None

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._data)
