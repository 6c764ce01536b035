from __future__ import annotations

from typing import Optional

from . import config
from .types import AdaptiveState, AssessmentProgress


def question_bounds(num_domains: int) -> tuple[int, int]:
    """(min_questions, max_questions) for a session over ``num_domains`` domains."""
    min_q = max(config.MIN_QUESTIONS_FLOOR, round(num_domains * config.MIN_PER_DOMAIN))
    max_q = max(config.MAX_QUESTIONS_FLOOR, round(num_domains * config.MAX_PER_DOMAIN))
    return int(min_q), int(max_q)


def all_axes_confident(state: AdaptiveState, target_confidence: float) -> bool:
    scores = list(state.axis_scores.values())
    if not scores:
        return False
    return all(
        s.n_answered >= config.MIN_ANSWERS_PER_AXIS and s.confidence >= target_confidence
        for s in scores
    )


def should_stop_early(state: AdaptiveState, target_confidence: Optional[float] = None) -> bool:
    target = config.TARGET_CONFIDENCE if target_confidence is None else target_confidence
    min_q, max_q = question_bounds(len(state.selected_domains))
    if state.total_questions < min_q:
        return False
    if state.total_questions >= max_q:
        return True
    return all_axes_confident(state, target)


def get_progress(state: AdaptiveState) -> AssessmentProgress:
    num_domains = len(state.selected_domains)
    min_q, max_q = question_bounds(num_domains)
    current = state.total_questions

    if current < min_q:
        estimated = max(min_q, current + round(num_domains * 2))
    else:
        scores = list(state.axis_scores.values())
        mean_conf = sum(s.confidence for s in scores) / len(scores) if scores else 0.0
        step = (
            config.PROGRESS_CONFIDENT_STEP
            if mean_conf > config.PROGRESS_CONFIDENT_MEAN
            else config.PROGRESS_UNCERTAIN_STEP
        )
        estimated = min(current + step, max_q)

    if current < round(num_domains * 2):
        strategy = "Building your civic profile"
    elif current < round(num_domains * 4):
        strategy = "Refining your positions"
    else:
        strategy = "Finalizing your blueprint"

    pct = min(current / estimated * 100.0, 100.0) if estimated > 0 else 100.0
    return AssessmentProgress(
        percentage=pct,
        questions_answered=current,
        estimated_total=int(estimated),
        dominant_strategy=strategy,
    )
