"""
Orchestrator - Models.

============================================================
PURPOSE
============================================================
Data structures for one pipeline cycle:

- PipelineStage: the stages of a cycle, in strict order
- StageResult: outcome and timing of one stage
- PipelineReport: everything a cycle produced

============================================================
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from event_sources.models import CollectionBatch
from scoring_engine.power_score import CurrencyPowerScore
from scoring_engine.strength_score import CurrencyStrengthResult


# ============================================================
# PIPELINE STAGES
# ============================================================

class PipelineStage(Enum):
    """
    Stages of a signal cycle.

    Each stage has (order, stage_id, description).
    """

    COLLECT = (1, "collect", "Collect and normalize events from all sources")
    SCORE_STRENGTH = (2, "score_strength", "Compute tiered currency strength")
    RANK_POWER = (3, "rank_power", "Rank currencies by power score")

    def __init__(self, order: int, stage_id: str, description: str):
        self._order = order
        self._stage_id = stage_id
        self._description = description

    @property
    def order(self) -> int:
        return self._order

    @property
    def stage_id(self) -> str:
        return self._stage_id

    @property
    def description(self) -> str:
        return self._description

    @classmethod
    def get_ordered_stages(cls) -> List["PipelineStage"]:
        return sorted(cls, key=lambda s: s.order)


# ============================================================
# STAGE RESULT
# ============================================================

@dataclass
class StageResult:
    """Result of executing a stage."""

    stage: PipelineStage
    success: bool
    started_at: datetime
    completed_at: datetime
    duration_ms: float
    error: Optional[str] = None
    error_type: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "stage": self.stage.stage_id,
            "success": self.success,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat(),
            "duration_ms": round(self.duration_ms, 2),
            "error": self.error,
            "error_type": self.error_type,
            "context": self.context,
        }


# ============================================================
# PIPELINE REPORT
# ============================================================

@dataclass
class PipelineReport:
    """
    Output of one complete cycle.

    A cycle with every source failing still succeeds: the batch is
    empty and every currency gets its neutral default.
    """

    cycle_id: str
    started_at: datetime
    batch: Optional[CollectionBatch] = None
    strength: List[CurrencyStrengthResult] = field(default_factory=list)
    power: List[CurrencyPowerScore] = field(default_factory=list)
    stage_results: List[StageResult] = field(default_factory=list)
    completed_at: Optional[datetime] = None

    @property
    def success(self) -> bool:
        return all(r.success for r in self.stage_results)

    @property
    def event_count(self) -> int:
        return len(self.batch.events) if self.batch else 0

    @property
    def timings_ms(self) -> Dict[str, float]:
        return {r.stage.stage_id: round(r.duration_ms, 2) for r in self.stage_results}

    @property
    def duration_seconds(self) -> float:
        if self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return 0.0

    def add_stage_result(self, result: StageResult) -> None:
        self.stage_results.append(result)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "cycle_id": self.cycle_id,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "success": self.success,
            "event_count": self.event_count,
            "timings_ms": self.timings_ms,
            "collection": self.batch.to_dict() if self.batch else None,
            "strength": [r.to_dict() for r in self.strength],
            "power": [s.to_dict() for s in self.power],
            "stage_results": [r.to_dict() for r in self.stage_results],
        }
