from __future__ import annotations

import pytest

from civic_core.store import InMemorySessionStore, VersionConflict


def test_new_session_must_not_exist(manager):
    sess = manager.create_session(["econ"])
    assert sess.version == 0
    with pytest.raises(VersionConflict):
        manager.store.save(sess, expected_version=None)


def test_save_bumps_version_and_rejects_stale_writes(manager):
    sess = manager.create_session(["econ"])
    first = manager.store.get(sess.id)
    second = manager.store.get(sess.id)

    first.current_item_id = "econ_sn_01"
    saved = manager.store.save(first, expected_version=first.version)
    assert saved.version == 1 and first.version == 1

    second.current_item_id = "econ_inv_01"
    with pytest.raises(VersionConflict) as exc:
        manager.store.save(second, expected_version=second.version)
    assert exc.value.expected == 0 and exc.value.actual == 1
    assert manager.store.get(sess.id).current_item_id == "econ_sn_01"


def test_get_returns_detached_copy(manager):
    sess = manager.create_session(["econ"])
    copy_a = manager.store.get(sess.id)
    copy_a.adaptive_state.answered_items.append("econ_sn_01")
    assert manager.store.get(sess.id).adaptive_state.answered_items == []


def test_delete_and_membership():
    store = InMemorySessionStore()
    assert store.get("nope") is None
    assert store.delete("nope") is False
    assert "nope" not in store and len(store) == 0


def test_engine_surfaces_interleaved_update(manager, monkeypatch):
    start = manager.start_assessment(["econ"])
    sid = start.session.id
    stale = manager.store.get(sid)

    # Another writer lands between our read and our write.
    manager.submit_answer(sid, start.first_question.id, "agree")
    monkeypatch.setattr(manager.store, "get", lambda _sid: stale)
    other = next(i for i in ("econ_sn_02", "econ_sc_02") if i != start.first_question.id)
    with pytest.raises(VersionConflict):
        manager.submit_answer(sid, other, "disagree")


def test_session_counts(manager):
    a = manager.start_assessment(["econ"])
    manager.start_assessment(["health"])
    manager.complete_assessment(a.session.id)
    assert manager.session_counts() == {"in_progress": 1, "completed": 1}
