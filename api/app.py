from __future__ import annotations
from dataclasses import asdict
from fastapi import FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
import logging, os, typing as t

# ---- Engine imports ----
from civic_core.engine import SessionManager
from civic_core.scoring import score_axes
from civic_core.store import VersionConflict
from civic_core.types import AssessmentProgress, AssessmentSession, AxisScore, GovernmentLevel, Item, SwipeResponse
from .storage import (
    delete_result,
    list_results_for_user,
    load_result,
    save_result,
)

log = logging.getLogger(__name__)

ENGINE = SessionManager(profile_sink=save_result)

app = FastAPI(title="Civic Blueprint Assessment API")


@app.get("/")
def root():
    return {"status": "ok", "service": "civic-assessment-api"}


ALLOWED_ORIGINS = [
    o.strip()
    for o in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:8081").split(",")
    if o.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)

# ---- Schemas ----
class StartReq(BaseModel):
    selectedDomains: list[str] | None = None
    userId: str | None = None

class AnswerReq(BaseModel):
    itemId: str
    response: SwipeResponse

class CompleteReq(BaseModel):
    saveToProfile: bool = False

class ScoredResponse(BaseModel):
    item_id: str = Field(min_length=1)
    response: SwipeResponse

class ScoreReq(BaseModel):
    responses: list[ScoredResponse] = Field(min_length=1)

# ---- Helpers ----
def _error(status: int, message: str, code: str) -> HTTPException:
    return HTTPException(status, {"error": message, "code": code})


def _serialize_item(it: Item | None) -> dict[str, t.Any] | None:
    if it is None: return None
    return {
        "id": it.id,
        "text": it.text,
        "axis_keys": dict(it.axis_keys),
        "level": it.level,
        "tags": list(it.tags),
        "tradeoff": it.tradeoff,
    }


def _serialize_scores(scores: list[AxisScore]) -> list[dict[str, t.Any]]:
    return [asdict(s) for s in scores]


def _serialize_progress(p: AssessmentProgress) -> dict[str, t.Any]:
    return {
        "percentage": p.percentage,
        "questionsAnswered": p.questions_answered,
        "estimatedTotal": p.estimated_total,
        "dominantStrategy": p.dominant_strategy,
    }


def _progress(session: AssessmentSession) -> dict[str, t.Any]:
    return _serialize_progress(ENGINE.get_progress(session))

# ---- Health ----
@app.get("/health")
def health():
    return {
        "spec_version": ENGINE.spec.spec_version,
        "sessions": ENGINE.session_counts(),
        "debug_trace": os.getenv("DEBUG_TRACE", "0"),
    }

# ---- Civic axes reference ----
@app.get("/api/civic-axes/spec")
def spec_full():
    return ENGINE.spec.as_dict()


@app.get("/api/civic-axes/summary")
def spec_summary():
    return ENGINE.spec.get_spec_summary()


@app.get("/api/civic-axes/domains")
def list_domains():
    domains = [asdict(d) for d in ENGINE.spec.domains]
    return {"domains": domains, "count": len(domains)}


@app.get("/api/civic-axes/domains/{domain_id}")
def get_domain(domain_id: str):
    domain = ENGINE.spec.get_domain_by_id(domain_id)
    if domain is None:
        raise _error(404, "Domain not found", "DOMAIN_NOT_FOUND")
    return {
        "domain": asdict(domain),
        "axes": [asdict(a) for a in ENGINE.spec.get_axes_by_domain_id(domain_id)],
    }


@app.get("/api/civic-axes/axes")
def list_axes():
    axes = [asdict(a) for a in ENGINE.spec.axes]
    return {"axes": axes, "count": len(axes)}


@app.get("/api/civic-axes/axes/{axis_id}")
def get_axis(axis_id: str):
    axis = ENGINE.spec.get_axis_by_id(axis_id)
    if axis is None:
        raise _error(404, "Axis not found", "AXIS_NOT_FOUND")
    return asdict(axis)


@app.get("/api/civic-axes/items")
def list_items(level: GovernmentLevel | None = None, tag: str | None = None, axisId: str | None = None):
    spec = ENGINE.spec
    if level:
        items = spec.get_items_by_level(level)
    elif tag:
        items = spec.get_items_by_tag(tag)
    elif axisId:
        items = spec.get_items_by_axis_id(axisId)
    else:
        items = list(spec.items)
    return {"items": [_serialize_item(it) for it in items], "count": len(items)}


@app.get("/api/civic-axes/items/{item_id}")
def get_item(item_id: str):
    item = ENGINE.spec.get_item_by_id(item_id)
    if item is None:
        raise _error(404, "Item not found", "ITEM_NOT_FOUND")
    return _serialize_item(item)


@app.get("/api/civic-axes/tags")
def list_tags():
    tags = ENGINE.spec.get_tags()
    return {"tags": tags, "count": len(tags)}


@app.get("/api/civic-axes/response-scale")
def response_scale():
    return {"responseScale": dict(ENGINE.spec.response_scale)}


@app.post("/api/civic-axes/score")
def score(req: ScoreReq):
    scores = score_axes([(r.item_id, r.response) for r in req.responses], ENGINE.spec)
    return {
        "scores": _serialize_scores(scores),
        "scoringConfig": asdict(ENGINE.spec.scoring),
    }

# ---- Assessment sessions ----
@app.post("/api/assessment/start", status_code=201)
def start(req: StartReq | None = None):
    req = req or StartReq()
    res = ENGINE.start_assessment(req.selectedDomains, req.userId)
    if res.first_question is None:
        ENGINE.delete_session(res.session.id)
        raise _error(400, "No questions available for the selected domains", "NO_QUESTIONS_AVAILABLE")
    return {
        "sessionId": res.session.id,
        "firstQuestion": _serialize_item(res.first_question),
        "progress": _progress(res.session),
        "selectedDomains": res.session.selected_domains,
    }


@app.get("/api/assessment/{session_id}")
def get_session(session_id: str):
    sess = ENGINE.get_session(session_id)
    if not sess:
        raise _error(404, "Session not found", "SESSION_NOT_FOUND")
    return {
        "sessionId": sess.id,
        "status": sess.status,
        "completionReason": sess.completion_reason,
        "currentQuestion": _serialize_item(ENGINE.get_current_question(session_id)),
        "answeredItems": list(sess.adaptive_state.answered_items),
        "scores": _serialize_scores(ENGINE.get_session_scores(session_id)),
        "progress": _progress(sess),
        "selectedDomains": sess.selected_domains,
    }


@app.post("/api/assessment/{session_id}/answer")
def answer(session_id: str, req: AnswerReq):
    sess = ENGINE.get_session(session_id)
    if sess is None or sess.status != "in_progress":
        raise _error(404, "Session not found or already completed", "SESSION_NOT_FOUND_OR_COMPLETED")
    if ENGINE.spec.get_item_by_id(req.itemId) is None:
        raise _error(404, "Item not found", "ITEM_NOT_FOUND")
    if req.itemId in sess.adaptive_state.answered_items:
        raise _error(409, "Item already answered in this session", "ITEM_ALREADY_ANSWERED")
    try:
        res = ENGINE.submit_answer(session_id, req.itemId, req.response)
    except VersionConflict as e:
        log.warning("conflicting update on session %s", session_id)
        raise _error(409, str(e), "SESSION_CONFLICT") from e
    if res is None:
        raise _error(404, "Session not found or already completed", "SESSION_NOT_FOUND_OR_COMPLETED")
    return {
        "nextQuestion": _serialize_item(res.next_question),
        "scores": _serialize_scores(res.scores),
        "progress": _progress(res.session),
        "isComplete": res.is_complete,
        "completionReason": res.session.completion_reason,
    }


@app.post("/api/assessment/{session_id}/complete")
def complete(session_id: str, req: CompleteReq | None = None):
    req = req or CompleteReq()
    try:
        res = ENGINE.complete_assessment(session_id, req.saveToProfile)
    except VersionConflict as e:
        log.warning("conflicting update on session %s", session_id)
        raise _error(409, str(e), "SESSION_CONFLICT") from e
    if res is None:
        raise _error(404, "Session not found", "SESSION_NOT_FOUND")
    return {
        "sessionId": res.session.id,
        "finalScores": _serialize_scores(res.final_scores),
        "profileSaved": res.profile_saved,
        "completionReason": res.session.completion_reason,
    }


@app.delete("/api/assessment/{session_id}", status_code=204)
def delete_session(session_id: str):
    if not ENGINE.delete_session(session_id):
        raise _error(404, "Session not found", "SESSION_NOT_FOUND")
    return Response(status_code=204)

# ---- Saved results ----
@app.get("/results/{session_id}")
def get_result(session_id: str):
    result = load_result(session_id)
    if not result:
        raise _error(404, "Result not found", "RESULT_NOT_FOUND")
    return result


@app.delete("/results/{session_id}")
def delete_result_endpoint(session_id: str):
    if not delete_result(session_id):
        raise _error(404, "Result not found", "RESULT_NOT_FOUND")
    return {"ok": True}


@app.get("/users/{user_id}/results")
def list_results(user_id: str):
    return {"results": list_results_for_user(user_id)}
