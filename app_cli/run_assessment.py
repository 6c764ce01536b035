from __future__ import annotations
import sys
from civic_core.engine import SessionManager
from civic_core.types import RESPONSES
KEYS = {"1": "strong_disagree", "2": "disagree", "3": "unsure", "4": "agree", "5": "strong_agree"}
def ask_domains(mgr: SessionManager) -> list[str]:
    print("Domains:")
    for d in mgr.spec.domains: print(f"  {d.id:8s} {d.name}")
    raw = input("Domain ids separated by commas (blank = all): ").strip()
    return [x.strip() for x in raw.split(",") if x.strip()]
def ask(prompt: str) -> str:
    print(prompt)
    while True:
        v = input("  [1=strongly disagree 2=disagree 3=unsure 4=agree 5=strongly agree] ").strip()
        if v in KEYS: return KEYS[v]
        if v in RESPONSES: return v
        print("Enter 1-5.")
def main() -> int:
    mgr = SessionManager()
    print("Civic Blueprint assessment")
    start = mgr.start_assessment(ask_domains(mgr))
    session, item = start.session, start.first_question
    if item is None:
        print("No questions available for those domains."); return 1
    while item is not None:
        prog = mgr.get_progress(session)
        res = mgr.submit_answer(session.id, item.id, ask(f"\n({prog.questions_answered + 1}/~{prog.estimated_total}) {item.text}"))
        if res is None: break
        session, item = res.session, res.next_question
    done = mgr.complete_assessment(session.id)
    if done is None: return 1
    print(f"\nDone after {len(done.session.swipes)} answers ({done.session.completion_reason}).")
    for s in done.final_scores:
        axis = mgr.spec.get_axis_by_id(s.axis_id)
        pole = axis.pole_a.label if s.shrunk >= 0 else axis.pole_b.label
        print(f"  {axis.name:24s} {s.shrunk:+.2f} toward {pole:22s} confidence {s.confidence:.2f}")
    return 0
if __name__ == "__main__": sys.exit(main())
