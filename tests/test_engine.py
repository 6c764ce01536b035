from __future__ import annotations

from civic_core import config
from civic_core.engine import SessionManager
from civic_core.scoring import score_axes
from civic_core.store import InMemorySessionStore

from tests.conftest import build_synthetic_spec


def _manager(spec, **kwargs) -> SessionManager:
    return SessionManager(store=InMemorySessionStore(), spec=spec, **kwargs)


def _assert_invariants(session) -> None:
    state = session.adaptive_state
    assert len(state.answered_items) == len(session.swipes) == state.total_questions
    assert session.current_item_id not in state.answered_items
    assert [s.item_id for s in session.swipes] == state.answered_items


def test_create_session_filters_and_falls_back(manager, civic_spec):
    sess = manager.create_session(["econ", "invalid_domain", "econ"], user_id="u1")
    assert sess.selected_domains == ["econ"]
    assert sess.adaptive_state.domain_coverage == {"econ": 0}
    assert sess.status == "in_progress" and sess.user_id == "u1"

    fallback = manager.create_session(["nope"])
    assert fallback.selected_domains == civic_spec.get_domain_ids()

    default = manager.create_session()
    assert default.selected_domains == civic_spec.get_domain_ids()
    assert default.id != fallback.id


def test_start_records_current_item(manager):
    res = manager.start_assessment(["econ", "health"])
    assert res.first_question is not None
    stored = manager.get_session(res.session.id)
    assert stored.current_item_id == res.first_question.id
    assert manager.get_current_question(res.session.id) == res.first_question


def test_start_without_eligible_items_is_not_an_error():
    spec = build_synthetic_spec(domains=["d0", "d1"], empty_domains=("d1",))
    mgr = _manager(spec)
    res = mgr.start_assessment(["d1"])
    assert res.first_question is None
    assert res.session.status == "in_progress"
    assert mgr.get_session(res.session.id) is not None


def test_end_to_end_econ_health(manager, civic_spec):
    start = manager.start_assessment(["econ", "health"])
    first = start.first_question
    assert first is not None
    domains = {civic_spec.get_axis_by_id(a).domain_id for a in first.axis_keys}
    assert domains & {"econ", "health"}

    res = manager.submit_answer(start.session.id, first.id, "agree")
    assert res is not None
    state = res.session.adaptive_state
    assert state.total_questions == 1
    assert state.answered_items == [first.id]
    touched = {s.axis_id: s for s in res.scores if s.axis_id in first.axis_keys}
    assert touched and all(s.n_answered == 1 for s in touched.values())

    nxt = res.next_question
    for question in range(2, 9):
        res = manager.submit_answer(start.session.id, nxt.id, "unsure")
        assert res is not None
        _assert_invariants(res.session)
        if question < 8:
            assert res.is_complete is False
            nxt = res.next_question
            assert nxt is not None

    done = manager.complete_assessment(start.session.id)
    assert done.session.status == "completed"
    assert done.final_scores == score_axes(done.session.swipes, civic_spec)
    assert manager.submit_answer(start.session.id, first.id, "agree") is None


def test_invariants_hold_through_a_full_run(manager):
    start = manager.start_assessment(["housing"])
    sid, item = start.session.id, start.first_question
    responses = ["agree", "strong_disagree", "unsure", "disagree", "strong_agree"]
    step = 0
    while item is not None:
        res = manager.submit_answer(sid, item.id, responses[step % len(responses)])
        step += 1
        _assert_invariants(res.session)
        assert res.scores == manager.get_session_scores(sid)
        item = res.next_question
    assert manager.get_session(sid).status == "completed"
    assert manager.get_current_question(sid) is None


def test_coverage_counts_only_selected_domains(civic_spec, manager):
    sess = manager.create_session(["justice"])
    res = manager.submit_answer(sess.id, "justice_pol_03", "agree")
    assert res.session.adaptive_state.domain_coverage == {"justice": 1}

    everything = manager.create_session()
    res = manager.submit_answer(everything.id, "cross_04", "agree")
    assert res.session.adaptive_state.domain_coverage["justice"] == 2
    assert res.session.adaptive_state.domain_coverage["health"] == 1


def test_completed_session_rejects_answers_without_mutation(manager):
    start = manager.start_assessment(["econ"])
    manager.complete_assessment(start.session.id)
    before = manager.get_session(start.session.id)

    assert manager.submit_answer(start.session.id, start.first_question.id, "agree") is None
    after = manager.get_session(start.session.id)
    assert after == before


def test_rejects_unknown_or_repeated_items(manager):
    start = manager.start_assessment(["econ"])
    sid = start.session.id
    assert manager.submit_answer(sid, "no_such_item", "agree") is None
    assert manager.submit_answer(sid, start.first_question.id, "maybe") is None
    assert manager.submit_answer("missing", start.first_question.id, "agree") is None

    assert manager.submit_answer(sid, start.first_question.id, "agree") is not None
    assert manager.submit_answer(sid, start.first_question.id, "agree") is None
    assert manager.get_session(sid).adaptive_state.total_questions == 1


def test_exhausted_pool_completes_session():
    spec = build_synthetic_spec(domains=["d0"], axes_per_domain=1, items_per_axis=2)
    mgr = _manager(spec)
    start = mgr.start_assessment()
    r1 = mgr.submit_answer(start.session.id, start.first_question.id, "agree")
    assert not r1.is_complete
    r2 = mgr.submit_answer(start.session.id, r1.next_question.id, "agree")
    assert r2.is_complete and r2.next_question is None
    assert r2.session.completion_reason == "completed_exhausted"


def test_confident_answers_stop_at_minimum():
    spec = build_synthetic_spec(domains=["d0"], axes_per_domain=1, items_per_axis=20, alternate_keys=False)
    mgr = _manager(spec)
    start = mgr.start_assessment()
    sid, item = start.session.id, start.first_question
    while True:
        res = mgr.submit_answer(sid, item.id, "strong_agree")
        if res.is_complete:
            break
        item = res.next_question
    assert res.session.adaptive_state.total_questions == 8
    assert res.session.completion_reason == "completed_confident"


def test_cap_completes_session(monkeypatch):
    monkeypatch.setattr(config, "TARGET_CONFIDENCE", 1.01)
    spec = build_synthetic_spec(domains=["d0"], axes_per_domain=2, items_per_axis=12)
    mgr = _manager(spec)
    start = mgr.start_assessment()
    sid, item = start.session.id, start.first_question
    while True:
        res = mgr.submit_answer(sid, item.id, "agree")
        if res.is_complete:
            break
        item = res.next_question
    assert res.session.adaptive_state.total_questions == 15
    assert res.session.completion_reason == "completed_max_questions"


def test_complete_is_idempotent_and_keeps_reason():
    spec = build_synthetic_spec(domains=["d0"], axes_per_domain=1, items_per_axis=1)
    mgr = _manager(spec)
    start = mgr.start_assessment()
    res = mgr.submit_answer(start.session.id, start.first_question.id, "agree")
    assert res.session.completion_reason == "completed_exhausted"

    done = mgr.complete_assessment(start.session.id)
    assert done.session.completion_reason == "completed_exhausted"
    assert mgr.complete_assessment("missing") is None


def test_manual_completion_and_profile_sink(civic_spec):
    saved = []

    def sink(session, scores):
        saved.append((session.id, len(scores)))
        return True

    mgr = _manager(civic_spec, profile_sink=sink)
    with_user = mgr.start_assessment(["climate"], user_id="voter-1")
    mgr.submit_answer(with_user.session.id, with_user.first_question.id, "agree")
    done = mgr.complete_assessment(with_user.session.id, save_to_profile=True)
    assert done.session.completion_reason == "completed_manual"
    assert done.session.current_item_id is None
    assert done.profile_saved is True
    assert saved == [(with_user.session.id, len(done.final_scores))]

    anonymous = mgr.start_assessment(["climate"])
    assert mgr.complete_assessment(anonymous.session.id, save_to_profile=True).profile_saved is False
    assert len(saved) == 1


def test_delete_session(manager):
    start = manager.start_assessment()
    assert manager.delete_session(start.session.id) is True
    assert manager.get_session(start.session.id) is None
    assert manager.delete_session(start.session.id) is False
    assert manager.submit_answer(start.session.id, start.first_question.id, "agree") is None


def test_session_scores_rederived_from_swipes(manager, civic_spec):
    start = manager.start_assessment(["econ"])
    assert manager.get_session_scores(start.session.id) == []
    manager.submit_answer(start.session.id, start.first_question.id, "strong_agree")
    sess = manager.get_session(start.session.id)
    assert manager.get_session_scores(start.session.id) == score_axes(sess.swipes, civic_spec)
    assert manager.get_session_scores("missing") == []
