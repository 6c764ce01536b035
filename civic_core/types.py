from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Dict, Optional, Literal

SwipeResponse = Literal["strong_disagree", "disagree", "agree", "strong_agree", "unsure"]
RESPONSES: tuple[str, ...] = ("strong_disagree", "disagree", "agree", "strong_agree", "unsure")
GovernmentLevel = Literal["local", "state", "national", "international", "general"]
SessionStatus = Literal["in_progress", "completed"]
CompletionReason = Literal[
    "completed_confident",
    "completed_max_questions",
    "completed_exhausted",
    "completed_manual",
]


@dataclass(frozen=True)
class AxisPole:
    label: str; interpretation: str = ""


@dataclass(frozen=True)
class Domain:
    id: str; name: str
    why: str = ""
    axes: tuple[str, ...] = ()


@dataclass(frozen=True)
class Axis:
    id: str; domain_id: str; name: str
    pole_a: AxisPole
    pole_b: AxisPole
    description: str = ""


@dataclass(frozen=True)
class Item:
    id: str; text: str
    axis_keys: Dict[str, int]
    level: GovernmentLevel = "general"
    tags: tuple[str, ...] = ()
    tradeoff: Optional[str] = None


@dataclass(frozen=True)
class ScoringConfig:
    axis_range: tuple[float, float] = (-1.0, 1.0)
    shrinkage_k: float = 1.5
    unsure_weight: float = 0.25
    consistency_penalty: float = 0.5


@dataclass
class SwipeEvent:
    item_id: str; response: SwipeResponse; timestamp: str


@dataclass
class AxisScore:
    axis_id: str
    value: float
    raw_sum: float
    n_answered: int
    n_unsure: int
    normalized: float
    shrunk: float
    confidence: float
    top_drivers: List[str] = field(default_factory=list)


@dataclass
class AdaptiveState:
    selected_domains: List[str]
    answered_items: List[str] = field(default_factory=list)
    axis_scores: Dict[str, AxisScore] = field(default_factory=dict)
    domain_coverage: Dict[str, int] = field(default_factory=dict)
    total_questions: int = 0


@dataclass
class AssessmentSession:
    id: str
    status: SessionStatus
    selected_domains: List[str]
    adaptive_state: AdaptiveState
    created_at: str
    updated_at: str
    user_id: Optional[str] = None
    swipes: List[SwipeEvent] = field(default_factory=list)
    current_item_id: Optional[str] = None
    completion_reason: Optional[CompletionReason] = None
    version: int = 0


@dataclass
class AssessmentProgress:
    percentage: float
    questions_answered: int
    estimated_total: int
    dominant_strategy: str
