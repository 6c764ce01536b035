"""Read-only access to the civic axes reference data.

Domains, axes and items ship as ``data/civic_spec.json`` inside the package.
The file is validated once on load and cached for the life of the process;
set ``CIVIC_SPEC_PATH`` to serve a different file.
"""
from __future__ import annotations

import json
import importlib.resources as ir
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

from . import config
from .types import Axis, AxisPole, Domain, Item, ScoringConfig

log = logging.getLogger(__name__)

_LEVELS = {"local", "state", "national", "international", "general"}


@dataclass
class CivicSpec:
    spec_version: str
    response_scale: Dict[str, float]
    scoring: ScoringConfig
    domains: List[Domain]
    axes: List[Axis]
    items: List[Item]
    _domain_index: Dict[str, Domain] = field(init=False, repr=False)
    _axis_index: Dict[str, Axis] = field(init=False, repr=False)
    _item_index: Dict[str, Item] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._domain_index = {d.id: d for d in self.domains}
        self._axis_index = {a.id: a for a in self.axes}
        self._item_index = {it.id: it for it in self.items}

    # ---- domains ----
    def get_domain_ids(self) -> List[str]:
        return [d.id for d in self.domains]

    def get_domain_by_id(self, domain_id: str) -> Optional[Domain]:
        return self._domain_index.get(domain_id)

    # ---- axes ----
    def get_axis_ids(self) -> List[str]:
        return [a.id for a in self.axes]

    def get_axis_by_id(self, axis_id: str) -> Optional[Axis]:
        return self._axis_index.get(axis_id)

    def get_axes_by_domain_id(self, domain_id: str) -> List[Axis]:
        return [a for a in self.axes if a.domain_id == domain_id]

    def axes_for_domains(self, domain_ids: Iterable[str]) -> Set[str]:
        wanted = set(domain_ids)
        return {a.id for a in self.axes if a.domain_id in wanted}

    # ---- items ----
    def get_item_by_id(self, item_id: str) -> Optional[Item]:
        return self._item_index.get(item_id)

    def get_items_by_axis_id(self, axis_id: str) -> List[Item]:
        return [it for it in self.items if axis_id in it.axis_keys]

    def get_items_by_level(self, level: str) -> List[Item]:
        return [it for it in self.items if it.level == level]

    def get_items_by_tag(self, tag: str) -> List[Item]:
        return [it for it in self.items if tag in it.tags]

    def get_tags(self) -> List[str]:
        return sorted({tag for it in self.items for tag in it.tags})

    def domains_for_item(self, item: Item) -> List[str]:
        """Domain ids touched by an item's axes, in axis-key order, no repeats."""
        out: List[str] = []
        for axis_id in item.axis_keys:
            axis = self._axis_index.get(axis_id)
            if axis is not None and axis.domain_id not in out:
                out.append(axis.domain_id)
        return out

    def as_dict(self) -> Dict[str, Any]:
        """Plain-JSON view of the whole reference spec."""
        return {
            "spec_version": self.spec_version,
            "response_scale": dict(self.response_scale),
            "scoring": asdict(self.scoring),
            "domains": [asdict(d) for d in self.domains],
            "axes": [asdict(a) for a in self.axes],
            "items": [asdict(it) for it in self.items],
        }

    def get_spec_summary(self) -> Dict[str, Any]:
        return {
            "version": self.spec_version,
            "domainCount": len(self.domains),
            "axisCount": len(self.axes),
            "itemCount": len(self.items),
            "domains": [
                {"id": d.id, "name": d.name, "axisCount": len(d.axes)} for d in self.domains
            ],
        }


def validate_spec(raw: Dict[str, Any]) -> List[str]:
    """Return a list of referential problems in a raw spec payload."""

    problems: List[str] = []
    domain_ids = [d.get("id") for d in raw.get("domains", [])]
    axis_ids = [a.get("id") for a in raw.get("axes", [])]
    item_ids = [it.get("id") for it in raw.get("items", [])]

    for label, ids in (("domain", domain_ids), ("axis", axis_ids), ("item", item_ids)):
        seen: Set[str] = set()
        for ident in ids:
            if not ident:
                problems.append(f"{label} without id")
            elif ident in seen:
                problems.append(f"duplicate {label} id {ident}")
            seen.add(ident)

    known_domains = set(domain_ids)
    known_axes = set(axis_ids)
    for a in raw.get("axes", []):
        if a.get("domain_id") not in known_domains:
            problems.append(f"axis {a.get('id')} references unknown domain {a.get('domain_id')}")
    for d in raw.get("domains", []):
        for axis_id in d.get("axes", []):
            if axis_id not in known_axes:
                problems.append(f"domain {d.get('id')} lists unknown axis {axis_id}")
    for it in raw.get("items", []):
        keys = it.get("axis_keys") or {}
        if not keys:
            problems.append(f"item {it.get('id')} has no axis_keys")
        for axis_id, weight in keys.items():
            if axis_id not in known_axes:
                problems.append(f"item {it.get('id')} references unknown axis {axis_id}")
            if weight not in (1, -1):
                problems.append(f"item {it.get('id')} has weight {weight!r} on {axis_id}")
        if it.get("level", "general") not in _LEVELS:
            problems.append(f"item {it.get('id')} has unknown level {it.get('level')!r}")

    scale = raw.get("response_scale") or {}
    for response in ("strong_disagree", "disagree", "agree", "strong_agree", "unsure"):
        if response not in scale:
            problems.append(f"response_scale missing {response}")
    return problems


def _pole(raw: Dict[str, Any]) -> AxisPole:
    return AxisPole(label=str(raw.get("label", "")), interpretation=str(raw.get("interpretation", "")))


def parse_spec(raw: Dict[str, Any]) -> CivicSpec:
    problems = validate_spec(raw)
    if problems:
        raise ValueError("invalid civic spec: " + "; ".join(problems))

    sc = raw.get("scoring") or {}
    lo, hi = sc.get("axis_range", [-1.0, 1.0])
    scoring = ScoringConfig(
        axis_range=(float(lo), float(hi)),
        shrinkage_k=float(sc.get("shrinkage_k", 1.5)),
        unsure_weight=float(sc.get("unsure_weight", 0.25)),
        consistency_penalty=float(sc.get("consistency_penalty", 0.5)),
    )
    domains = [
        Domain(id=d["id"], name=d.get("name", d["id"]), why=d.get("why", ""), axes=tuple(d.get("axes", [])))
        for d in raw["domains"]
    ]
    axes = [
        Axis(
            id=a["id"],
            domain_id=a["domain_id"],
            name=a.get("name", a["id"]),
            description=a.get("description", ""),
            pole_a=_pole(a.get("poleA") or {}),
            pole_b=_pole(a.get("poleB") or {}),
        )
        for a in raw["axes"]
    ]
    items = [
        Item(
            id=it["id"],
            text=it.get("text", ""),
            axis_keys={k: int(v) for k, v in it["axis_keys"].items()},
            level=it.get("level", "general"),
            tags=tuple(it.get("tags", [])),
            tradeoff=it.get("tradeoff"),
        )
        for it in raw.get("items", [])
    ]
    return CivicSpec(
        spec_version=str(raw.get("spec_version", "0")),
        response_scale={k: float(v) for k, v in raw["response_scale"].items()},
        scoring=scoring,
        domains=domains,
        axes=axes,
        items=items,
    )


def load_spec(path: str | Path | None = None) -> CivicSpec:
    if path is not None:
        text = Path(path).read_text(encoding="utf-8")
    else:
        text = ir.files(__package__).joinpath("data/civic_spec.json").read_text(encoding="utf-8")
    spec = parse_spec(json.loads(text))
    log.info(
        "civic spec %s loaded: %d domains, %d axes, %d items",
        spec.spec_version, len(spec.domains), len(spec.axes), len(spec.items),
    )
    return spec


_SPEC_CACHE: Optional[CivicSpec] = None


def get_spec() -> CivicSpec:
    global _SPEC_CACHE
    if _SPEC_CACHE is None:
        _SPEC_CACHE = load_spec(config.CIVIC_SPEC_PATH)
    return _SPEC_CACHE
