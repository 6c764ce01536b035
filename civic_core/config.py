from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


# Stopping rule
TARGET_CONFIDENCE: float = 0.7
MIN_ANSWERS_PER_AXIS: int = 2
MIN_QUESTIONS_FLOOR: int = 8
MAX_QUESTIONS_FLOOR: int = 15
MIN_PER_DOMAIN: float = 3.0
MAX_PER_DOMAIN: float = 6.0

# Selector phases
COVERAGE_PHASE_LIMIT: int = 10
UNCERTAIN_PHASE_LIMIT: int = 20
UNCERTAIN_CONFIDENCE: float = 0.7
UNCERTAIN_MIN_ANSWERS: int = 3
INFO_AXIS_BONUS: int = 2
INFO_FEW_ANSWERS_BONUS: int = 3
INFO_LOW_CONFIDENCE_BONUS: int = 2

# Progress estimate
PROGRESS_CONFIDENT_MEAN: float = 0.7
PROGRESS_CONFIDENT_STEP: int = 3
PROGRESS_UNCERTAIN_STEP: int = 8

TOP_DRIVERS: int = 5

AUDIT_MIN_ITEMS_PER_AXIS: int = 4

CIVIC_SPEC_PATH: str | None = None

DEBUG_TRACE: bool = False
TRACE_FIELDS: tuple[str, ...] = (
    "session",
    "item_id",
    "response",
    "total",
    "axes",
    "stop",
    "next_item",
    "reason",
)
# // env overrides for staging/ops; defaults match the published rule.
TARGET_CONFIDENCE = _env_float("TARGET_CONFIDENCE", TARGET_CONFIDENCE)
COVERAGE_PHASE_LIMIT = _env_int("COVERAGE_PHASE_LIMIT", COVERAGE_PHASE_LIMIT)
UNCERTAIN_PHASE_LIMIT = _env_int("UNCERTAIN_PHASE_LIMIT", UNCERTAIN_PHASE_LIMIT)
UNCERTAIN_CONFIDENCE = _env_float("UNCERTAIN_CONFIDENCE", UNCERTAIN_CONFIDENCE)
UNCERTAIN_MIN_ANSWERS = _env_int("UNCERTAIN_MIN_ANSWERS", UNCERTAIN_MIN_ANSWERS)
MIN_ANSWERS_PER_AXIS = _env_int("MIN_ANSWERS_PER_AXIS", MIN_ANSWERS_PER_AXIS)
MIN_QUESTIONS_FLOOR = _env_int("MIN_QUESTIONS_FLOOR", MIN_QUESTIONS_FLOOR)
MAX_QUESTIONS_FLOOR = _env_int("MAX_QUESTIONS_FLOOR", MAX_QUESTIONS_FLOOR)
MIN_PER_DOMAIN = _env_float("MIN_PER_DOMAIN", MIN_PER_DOMAIN)
MAX_PER_DOMAIN = _env_float("MAX_PER_DOMAIN", MAX_PER_DOMAIN)
AUDIT_MIN_ITEMS_PER_AXIS = _env_int("AUDIT_MIN_ITEMS_PER_AXIS", AUDIT_MIN_ITEMS_PER_AXIS)
CIVIC_SPEC_PATH = os.getenv("CIVIC_SPEC_PATH") or None
DEBUG_TRACE = _env_bool("DEBUG_TRACE", False)
