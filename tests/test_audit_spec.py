from __future__ import annotations

import json

from civic_core.audit_spec import audit_spec, main

from tests.conftest import build_synthetic_spec


def test_shipped_spec_has_no_warnings(civic_spec):
    summary = audit_spec(civic_spec)
    assert summary["warnings"] == []
    assert summary["totals"]["items"] == 66
    assert summary["totals"]["multi_axis_items"] > 0
    assert sum(summary["levels"].values()) == 66


def test_sparse_and_one_sided_axes_are_flagged():
    spec = build_synthetic_spec(
        domains=["d0", "d1"], axes_per_domain=1, items_per_axis=2, alternate_keys=False, empty_domains=("d1",)
    )
    summary = audit_spec(spec)
    assert "d1_a0 has no items" in summary["warnings"]
    assert any(w.startswith("d0_a0 has 2 items") for w in summary["warnings"])
    assert "d0_a0 items only push toward one pole" in summary["warnings"]
    assert summary["axes"]["d0_a0"] == {"items": 2, "pole_a": 2, "pole_b": 0, "shared": 0}


def test_main_writes_summary(tmp_path, capsys):
    out = tmp_path / "audit.json"
    rc = main([str(out)], spec=build_synthetic_spec(items_per_axis=1))
    assert rc == 2
    payload = json.loads(out.read_text(encoding="utf-8"))
    assert payload["totals"]["axes"] == 4
    assert "Warnings:" in capsys.readouterr().out

    clean = tmp_path / "clean.json"
    assert main([str(clean)], spec=build_synthetic_spec(items_per_axis=4)) == 0
