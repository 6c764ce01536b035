# civic_core/policy.py
from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Set

from . import config
from .spec_repository import CivicSpec, get_spec
from .types import AdaptiveState, AxisScore, Item


def _best_by(candidates: Sequence[Item], key) -> Optional[Item]:
    """Highest ``key`` wins; ties go to the earliest candidate."""
    best: Optional[Item] = None
    best_val = None
    for it in candidates:
        val = key(it)
        if best is None or val > best_val:
            best, best_val = it, val
    return best


class SelectionPhase:
    """One step of the selection ladder: propose an item or pass."""

    name = "phase"

    def __init__(self, spec: CivicSpec):
        self.spec = spec

    def propose(self, state: AdaptiveState, candidates: Sequence[Item]) -> Optional[Item]:
        raise NotImplementedError


class DomainCoveragePhase(SelectionPhase):
    """Early questions spread across the selected domains."""

    name = "domain_coverage"

    def __init__(self, spec: CivicSpec, limit: Optional[int] = None):
        super().__init__(spec)
        self.limit = config.COVERAGE_PHASE_LIMIT if limit is None else limit

    def underrepresented(self, state: AdaptiveState) -> List[str]:
        values = [state.domain_coverage.get(d, 0) for d in state.selected_domains]
        mean = sum(values) / len(values) if values else 0.0
        return [d for d in state.selected_domains if state.domain_coverage.get(d, 0) < mean + 1]

    def propose(self, state: AdaptiveState, candidates: Sequence[Item]) -> Optional[Item]:
        if state.total_questions >= self.limit:
            return None
        domains = set(self.underrepresented(state))
        if not domains:
            return None
        axes = self.spec.axes_for_domains(domains)
        pool = [it for it in candidates if any(a in axes for a in it.axis_keys)]
        return _best_by(pool, lambda it: len(it.axis_keys))


def uncertain_axes(axis_scores: Dict[str, AxisScore]) -> List[str]:
    return [
        axis_id
        for axis_id, score in axis_scores.items()
        if score.confidence < config.UNCERTAIN_CONFIDENCE
        or score.n_answered < config.UNCERTAIN_MIN_ANSWERS
    ]


class UncertainAxisPhase(SelectionPhase):
    """Mid-session questions go after the axes the scorer is least sure of."""

    name = "uncertain_axis"

    def __init__(self, spec: CivicSpec, limit: Optional[int] = None):
        super().__init__(spec)
        self.limit = config.UNCERTAIN_PHASE_LIMIT if limit is None else limit

    def propose(self, state: AdaptiveState, candidates: Sequence[Item]) -> Optional[Item]:
        if state.total_questions >= self.limit:
            return None
        targets = set(uncertain_axes(state.axis_scores))
        if not targets:
            return None
        pool = [it for it in candidates if any(a in targets for a in it.axis_keys)]
        return _best_by(pool, lambda it: sum(1 for a in it.axis_keys if a in targets))


class MaxInformationPhase(SelectionPhase):
    """Fallback: always answers if any candidate is left."""

    name = "max_information"

    @staticmethod
    def information(item: Item, axis_scores: Dict[str, AxisScore]) -> int:
        score = config.INFO_AXIS_BONUS * len(item.axis_keys)
        for axis_id in item.axis_keys:
            s = axis_scores.get(axis_id)
            if s is None or s.n_answered < config.UNCERTAIN_MIN_ANSWERS:
                score += config.INFO_FEW_ANSWERS_BONUS
            elif s.confidence < config.UNCERTAIN_CONFIDENCE:
                score += config.INFO_LOW_CONFIDENCE_BONUS
        return score

    def propose(self, state: AdaptiveState, candidates: Sequence[Item]) -> Optional[Item]:
        return _best_by(candidates, lambda it: self.information(it, state.axis_scores))


class QuestionSelector:
    """Ordered phase list; the first phase with a proposal wins."""

    def __init__(self, spec: Optional[CivicSpec] = None, phases: Optional[List[SelectionPhase]] = None):
        self.spec = spec or get_spec()
        if phases is None:
            phases = [
                DomainCoveragePhase(self.spec),
                UncertainAxisPhase(self.spec),
                MaxInformationPhase(self.spec),
            ]
        self.phases = phases
        self.last_phase: Optional[str] = None

    def candidates(self, state: AdaptiveState) -> List[Item]:
        answered: Set[str] = set(state.answered_items)
        pool = [it for it in self.spec.items if it.id not in answered]
        if set(state.selected_domains) >= set(self.spec.get_domain_ids()):
            return pool
        axes = self.spec.axes_for_domains(state.selected_domains)
        return [it for it in pool if any(a in axes for a in it.axis_keys)]

    def next_item(self, state: AdaptiveState) -> Optional[Item]:
        self.last_phase = None
        pool = self.candidates(state)
        if not pool:
            return None
        for phase in self.phases:
            item = phase.propose(state, pool)
            if item is not None:
                self.last_phase = phase.name
                return item
        return None


def select_next_question(state: AdaptiveState, spec: Optional[CivicSpec] = None) -> Optional[Item]:
    return QuestionSelector(spec).next_item(state)
