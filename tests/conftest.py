from __future__ import annotations

import pytest

from civic_core.engine import SessionManager
from civic_core.spec_repository import CivicSpec, get_spec, parse_spec
from civic_core.store import InMemorySessionStore

RESPONSE_SCALE = {
    "strong_disagree": -2,
    "disagree": -1,
    "agree": 1,
    "strong_agree": 2,
    "unsure": 0,
}


def build_raw_spec(
    *,
    domains: list[str] | None = None,
    axes_per_domain: int = 2,
    items_per_axis: int = 4,
    alternate_keys: bool = True,
    cross_items: bool = False,
    empty_domains: tuple[str, ...] = (),
    axis_range: tuple[float, float] = (-1.0, 1.0),
) -> dict:
    """Deterministic raw spec payload: ``<domain>_a<j>`` axes, ``<axis>_i<k>`` items."""

    target_domains = list(domains or ["d0", "d1"])
    raw: dict = {
        "spec_version": "test",
        "response_scale": dict(RESPONSE_SCALE),
        "scoring": {
            "axis_range": list(axis_range),
            "shrinkage_k": 1.5,
            "unsure_weight": 0.25,
            "consistency_penalty": 0.5,
        },
        "domains": [],
        "axes": [],
        "items": [],
    }
    for domain in target_domains:
        axis_ids = [f"{domain}_a{j}" for j in range(axes_per_domain)]
        raw["domains"].append({"id": domain, "name": domain.upper(), "axes": axis_ids})
        for axis_id in axis_ids:
            raw["axes"].append(
                {
                    "id": axis_id,
                    "domain_id": domain,
                    "name": axis_id,
                    "poleA": {"label": f"{axis_id} A"},
                    "poleB": {"label": f"{axis_id} B"},
                }
            )
            if domain in empty_domains:
                continue
            for k in range(items_per_axis):
                key = -1 if (alternate_keys and k % 2) else 1
                raw["items"].append(
                    {
                        "id": f"{axis_id}_i{k}",
                        "text": f"Statement {k} about {axis_id}",
                        "axis_keys": {axis_id: key},
                        "level": "general",
                        "tags": [domain],
                    }
                )
        if cross_items and domain not in empty_domains:
            raw["items"].append(
                {
                    "id": f"{domain}_cross",
                    "text": f"Statement touching every {domain} axis",
                    "axis_keys": {axis_id: 1 for axis_id in axis_ids},
                    "level": "state",
                    "tags": [domain, "cross"],
                }
            )
    return raw


def build_synthetic_spec(**kwargs) -> CivicSpec:
    return parse_spec(build_raw_spec(**kwargs))


@pytest.fixture
def synthetic_spec() -> CivicSpec:
    return build_synthetic_spec()


@pytest.fixture
def civic_spec() -> CivicSpec:
    return get_spec()


@pytest.fixture
def manager(civic_spec) -> SessionManager:
    return SessionManager(store=InMemorySessionStore(), spec=civic_spec)
