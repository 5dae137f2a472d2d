"""
Orchestrator Package - Signal Pipeline Layer.

============================================================
PACKAGE OVERVIEW
============================================================
Wires collection and scoring into one cycle and exposes the
command-line entry point.

============================================================
ARCHITECTURE
============================================================

    +-----------------------------------------------------+
    |               CurrencySignalPipeline                |
    |-----------------------------------------------------|
    |  COLLECT         |  CollectionOrchestrator          |
    |  SCORE_STRENGTH  |  TieredStrengthAggregator        |
    |  RANK_POWER      |  PowerRankingEngine              |
    +-----------------------------------------------------+

============================================================
USAGE
============================================================
    python -m orchestrator.cli --include-simulated --report

============================================================
"""

from .models import PipelineReport, PipelineStage, StageResult
from .pipeline import CurrencySignalPipeline, CycleHistory


__all__ = [
    "CurrencySignalPipeline",
    "CycleHistory",
    "PipelineReport",
    "PipelineStage",
    "StageResult",
]
