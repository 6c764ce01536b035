from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from . import config
from .spec_repository import CivicSpec, get_spec
from .types import AxisScore, SwipeEvent

ResponseLike = Union[SwipeEvent, Mapping[str, str], Tuple[str, str]]


@dataclass
class _AxisTally:
    raw_sum: float = 0.0
    abs_sum: float = 0.0
    weight_sum: float = 0.0
    n_answered: int = 0
    n_unsure: int = 0
    contributions: List[Tuple[str, float]] = field(default_factory=list)


def _unpack(entry: ResponseLike) -> Tuple[str, str]:
    if isinstance(entry, SwipeEvent):
        return entry.item_id, entry.response
    if isinstance(entry, Mapping):
        return str(entry["item_id"]), str(entry["response"])
    item_id, response = entry
    return str(item_id), str(response)


def _to_range(shrunk: float, axis_range: Tuple[float, float]) -> float:
    lo, hi = axis_range
    return lo + (shrunk + 1.0) / 2.0 * (hi - lo)


def _clamp01(x: float) -> float:
    if x < 0.0: return 0.0
    if x > 1.0: return 1.0
    return x


def score_axes(responses: Iterable[ResponseLike], spec: Optional[CivicSpec] = None) -> List[AxisScore]:
    """
    Score every axis touched by at least one response.

    responses: ordered (item_id, response) pairs, as SwipeEvents, dicts or tuples.
    Unsure answers count toward n_answered but only add ``unsure_weight`` of
    evidence and no direction. Confidence is n_eff/(n_eff+k) scaled down by
    disagreement between decisive answers. Every term is a sum over the
    history and drivers tie-break on spec order, so the result does not
    depend on answer order.
    Axes with no answers are left out.
    """
    spec = spec or get_spec()
    scale = spec.response_scale
    scoring = spec.scoring
    max_mag = max((abs(v) for v in scale.values()), default=1.0) or 1.0
    position = {it.id: i for i, it in enumerate(spec.items)}

    tallies: Dict[str, _AxisTally] = {}
    for entry in responses:
        item_id, response = _unpack(entry)
        item = spec.get_item_by_id(item_id)
        if item is None:
            continue
        r = float(scale.get(response, 0.0))
        for axis_id, weight in item.axis_keys.items():
            if spec.get_axis_by_id(axis_id) is None:
                continue
            t = tallies.setdefault(axis_id, _AxisTally())
            t.n_answered += 1
            if response == "unsure":
                t.n_unsure += 1
                continue
            contrib = r * weight
            t.raw_sum += contrib
            t.abs_sum += abs(contrib)
            t.weight_sum += abs(weight)
            t.contributions.append((item_id, contrib))

    k = scoring.shrinkage_k
    results: List[AxisScore] = []
    for axis_id in spec.get_axis_ids():
        t = tallies.get(axis_id)
        if t is None:
            continue
        n_decisive = t.n_answered - t.n_unsure
        max_possible = max_mag * t.weight_sum
        normalized = t.raw_sum / max_possible if max_possible > 0 else 0.0
        n_eff = n_decisive + scoring.unsure_weight * t.n_unsure
        evidence = n_eff / (n_eff + k) if (n_eff + k) > 0 else 0.0
        shrunk = normalized * evidence
        agreement = abs(t.raw_sum) / t.abs_sum if t.abs_sum > 0 else 1.0
        confidence = _clamp01(evidence * (1.0 - scoring.consistency_penalty * (1.0 - agreement)))
        # ties go to the item listed first in the spec, not the first answered
        drivers = sorted(t.contributions, key=lambda c: (-abs(c[1]), position.get(c[0], 0)))
        top: List[str] = []
        for iid, _ in drivers:
            if iid not in top:
                top.append(iid)
            if len(top) >= config.TOP_DRIVERS:
                break
        results.append(
            AxisScore(
                axis_id=axis_id,
                value=_to_range(shrunk, scoring.axis_range),
                raw_sum=t.raw_sum,
                n_answered=t.n_answered,
                n_unsure=t.n_unsure,
                normalized=normalized,
                shrunk=shrunk,
                confidence=confidence,
                top_drivers=top,
            )
        )
    return results
