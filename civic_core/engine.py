# civic_core/engine.py
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence
import logging
import uuid

from . import config
from .policy import QuestionSelector
from .scoring import score_axes
from .spec_repository import CivicSpec, get_spec
from .stopping import get_progress, question_bounds, should_stop_early
from .store import InMemorySessionStore, SessionStore
from .types import (
    AdaptiveState,
    AssessmentProgress,
    AssessmentSession,
    AxisScore,
    CompletionReason,
    Item,
    RESPONSES,
    SwipeEvent,
)


log = logging.getLogger(__name__)

ProfileSink = Callable[[AssessmentSession, List[AxisScore]], bool]


def _emit_trace(**values: object) -> None:
    if not config.DEBUG_TRACE:
        return
    ordered = []
    for key in config.TRACE_FIELDS:
        if key in values:
            ordered.append(f"{key}={values[key]}")
    if ordered:
        log.info("trace %s", " ".join(str(val) for val in ordered))


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class StartResult:
    session: AssessmentSession
    first_question: Optional[Item]


@dataclass
class AnswerResult:
    session: AssessmentSession
    next_question: Optional[Item]
    scores: List[AxisScore]
    is_complete: bool


@dataclass
class CompletionResult:
    session: AssessmentSession
    final_scores: List[AxisScore]
    profile_saved: bool = False


class SessionManager:
    """Owns assessment sessions and drives selector, scorer and stopping rule.

    Expected failures (unknown session, finished session, unknown item) come
    back as ``None``. Each mutation is a read-copy, modify, compare-and-swap
    save against the injected store.
    """

    def __init__(
        self,
        store: Optional[SessionStore] = None,
        spec: Optional[CivicSpec] = None,
        selector: Optional[QuestionSelector] = None,
        profile_sink: Optional[ProfileSink] = None,
    ):
        self.spec = spec or get_spec()
        self.store = store if store is not None else InMemorySessionStore()
        self.selector = selector or QuestionSelector(self.spec)
        self.profile_sink = profile_sink

    # ---- lifecycle ----
    def _resolve_domains(self, selected: Optional[Sequence[str]]) -> List[str]:
        all_ids = self.spec.get_domain_ids()
        domains: List[str] = []
        for d in selected or []:
            if d in all_ids and d not in domains:
                domains.append(d)
        dropped = [d for d in (selected or []) if d not in all_ids]
        if dropped:
            log.debug("ignoring unknown domains %s", dropped)
        return domains or list(all_ids)

    def create_session(
        self, selected_domains: Optional[Sequence[str]] = None, user_id: Optional[str] = None
    ) -> AssessmentSession:
        domains = self._resolve_domains(selected_domains)
        now = _now_iso()
        session = AssessmentSession(
            id=str(uuid.uuid4()),
            user_id=user_id,
            status="in_progress",
            selected_domains=list(domains),
            adaptive_state=AdaptiveState(
                selected_domains=list(domains),
                domain_coverage={d: 0 for d in domains},
            ),
            created_at=now,
            updated_at=now,
        )
        return self.store.save(session, expected_version=None)

    def get_session(self, session_id: str) -> Optional[AssessmentSession]:
        return self.store.get(session_id)

    def delete_session(self, session_id: str) -> bool:
        removed = self.store.delete(session_id)
        if removed:
            log.info("session %s deleted", session_id)
        return removed

    def _save(self, session: AssessmentSession) -> AssessmentSession:
        session.updated_at = _now_iso()
        return self.store.save(session, expected_version=session.version)

    def start_assessment(
        self, selected_domains: Optional[Sequence[str]] = None, user_id: Optional[str] = None
    ) -> StartResult:
        session = self.create_session(selected_domains, user_id)
        first = self.selector.next_item(session.adaptive_state)
        if first is not None:
            session.current_item_id = first.id
            session = self._save(session)
        else:
            log.warning("no eligible items for domains %s", session.selected_domains)
        log.info(
            "session %s started domains=%s user=%s first=%s",
            session.id, session.selected_domains, user_id, first.id if first else None,
        )
        return StartResult(session=session, first_question=first)

    # ---- answering ----
    def _record_coverage(self, state: AdaptiveState, item: Item) -> None:
        selected = set(state.selected_domains)
        for axis_id in item.axis_keys:
            axis = self.spec.get_axis_by_id(axis_id)
            if axis is not None and axis.domain_id in selected:
                state.domain_coverage[axis.domain_id] = state.domain_coverage.get(axis.domain_id, 0) + 1

    def _score(self, swipes: Sequence[SwipeEvent]) -> List[AxisScore]:
        return score_axes(swipes, self.spec)

    def submit_answer(self, session_id: str, item_id: str, response: str) -> Optional[AnswerResult]:
        session = self.store.get(session_id)
        if session is None or session.status != "in_progress":
            return None
        if response not in RESPONSES:
            log.debug("session %s: rejected response %r", session_id, response)
            return None
        item = self.spec.get_item_by_id(item_id)
        state = session.adaptive_state
        if item is None or item_id in state.answered_items:
            log.debug("session %s: rejected item %s", session_id, item_id)
            return None

        session.swipes.append(SwipeEvent(item_id=item_id, response=response, timestamp=_now_iso()))  # type: ignore[arg-type]
        state.answered_items.append(item_id)
        state.total_questions += 1
        self._record_coverage(state, item)

        scores = self._score(session.swipes)
        state.axis_scores = {s.axis_id: s for s in scores}

        stop = should_stop_early(state)
        next_item: Optional[Item] = None
        if not stop:
            next_item = self.selector.next_item(state)

        reason: Optional[CompletionReason] = None
        if stop:
            _, max_q = question_bounds(len(state.selected_domains))
            reason = "completed_max_questions" if state.total_questions >= max_q else "completed_confident"
        elif next_item is None:
            reason = "completed_exhausted"

        if reason is not None:
            session.status = "completed"
            session.completion_reason = reason
            session.current_item_id = None
        else:
            session.current_item_id = next_item.id  # type: ignore[union-attr]

        session = self._save(session)

        log.debug(
            "answer session=%s item=%s response=%s total=%d coverage=%s phase=%s next=%s",
            session.id, item_id, response, state.total_questions, state.domain_coverage,
            self.selector.last_phase, next_item.id if next_item else None,
        )
        _emit_trace(
            session=session.id,
            item_id=item_id,
            response=response,
            total=state.total_questions,
            axes=len(scores),
            stop=int(stop),
            next_item=next_item.id if next_item else None,
            reason=reason,
        )
        if reason is not None:
            log.info("session %s completed after %d answers (%s)", session.id, state.total_questions, reason)

        return AnswerResult(
            session=session,
            next_question=next_item,
            scores=scores,
            is_complete=session.status == "completed",
        )

    def complete_assessment(self, session_id: str, save_to_profile: bool = False) -> Optional[CompletionResult]:
        session = self.store.get(session_id)
        if session is None:
            return None
        if session.status != "completed":
            session.status = "completed"
            session.completion_reason = "completed_manual"
            session.current_item_id = None
            session = self._save(session)
            log.info("session %s completed manually after %d answers", session.id, len(session.swipes))

        final_scores = self._score(session.swipes)
        saved = False
        if save_to_profile and session.user_id and self.profile_sink is not None:
            saved = bool(self.profile_sink(session, final_scores))
        return CompletionResult(session=session, final_scores=final_scores, profile_saved=saved)

    # ---- read-only views ----
    def get_current_question(self, session_id: str) -> Optional[Item]:
        session = self.store.get(session_id)
        if session is None or not session.current_item_id:
            return None
        return self.spec.get_item_by_id(session.current_item_id)

    def get_session_scores(self, session_id: str) -> List[AxisScore]:
        session = self.store.get(session_id)
        if session is None or not session.swipes:
            return []
        return self._score(session.swipes)

    def get_progress(self, session: AssessmentSession) -> AssessmentProgress:
        return get_progress(session.adaptive_state)

    def session_counts(self) -> Dict[str, int]:
        out = {"in_progress": 0, "completed": 0}
        for sid in self.store.ids():
            sess = self.store.get(sid)
            if sess is not None:
                out[sess.status] = out.get(sess.status, 0) + 1
        return out
